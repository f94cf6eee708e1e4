"""Launch provisioning: resolve key pair, security groups and placement group.

Given a region, a logical group name and a template, the strategy makes sure
the supporting resources exist and returns the ``LaunchParameters`` for
``RunInstances``. Resources are created through get-or-create caches, so each
one is created at most once per context and concurrent launches for the same
group wait on the same creation instead of racing.

Generated resources are named after a marker derived from group and region::

    stratus#web#eu-west-1
"""

from __future__ import annotations

from loguru import logger

from stratus.errors import CredentialsNotAvailableError
from stratus.infra.cache import Loader, LoadingCache

from .loaders import ImportExistingKeyPair
from .options import LaunchParameters, RunInstancesOptions
from .types import (
    KeyPair,
    RegionAndName,
    RegionNameAndIngressRules,
    RegionNameAndPublicKeyMaterial,
    SecurityGroupSelection,
    Template,
    TemplateOptions,
)


class KeyPairCache(LoadingCache[RegionAndName, KeyPair]):
    def __init__(self, loader: Loader[RegionAndName, KeyPair] | None = None) -> None:
        super().__init__("key_pairs", loader)


class SecurityGroupCache(LoadingCache[RegionNameAndIngressRules, str]):
    def __init__(self, loader: Loader[RegionNameAndIngressRules, str] | None = None) -> None:
        super().__init__("security_groups", loader)


class PlacementGroupCache(LoadingCache[RegionAndName, str]):
    def __init__(self, loader: Loader[RegionAndName, str] | None = None) -> None:
        super().__init__("placement_groups", loader)


def marker_name(group: str, region: str, prefix: str = "stratus") -> str:
    return f"{prefix}#{group}#{region}"


class LaunchProvisioner:
    """Creates key pairs, security groups and placement groups as needed.

    Args:
        key_pairs: Key pairs by (region, group) for generated and imported
            pairs, and by (region, key name) for user supplied ones.
        security_groups: Group names by ingress rules key.
        placement_groups: Placement group names by (region, marker).
        import_key_pair: Imports a public key as a key pair.
        prefix: Prefix of marker names.
        auto_create_key_pair: Default for templates that leave
            ``auto_create_key_pair`` unset.
        auto_create_placement_group: Default for templates that leave
            ``auto_create_placement_group`` unset.
    """

    def __init__(
        self,
        key_pairs: KeyPairCache,
        security_groups: SecurityGroupCache,
        placement_groups: PlacementGroupCache,
        import_key_pair: ImportExistingKeyPair,
        prefix: str = "stratus",
        auto_create_key_pair: bool = True,
        auto_create_placement_group: bool = True,
    ) -> None:
        self.key_pairs = key_pairs
        self.security_groups = security_groups
        self.placement_groups = placement_groups
        self._import_key_pair = import_key_pair
        self._prefix = prefix
        self._auto_create_key_pair = auto_create_key_pair
        self._auto_create_placement_group = auto_create_placement_group
        self._log = logger.bind(component="provisioner")

    def execute(self, region: str, group: str, template: Template) -> LaunchParameters:
        """Resolve every resource the launch needs and build its parameters.

        Raises:
            CredentialsNotAvailableError: The template has a run script but no
                private key is resolvable for its key pair.
            ResourceResolutionError: Creating a resource failed.
        """
        options = template.options
        log = self._log.bind(region=region, group=group)

        key_name = self.resolve_key_pair(region, group, options)

        placement_group = None
        if template.hardware.supports_cluster_placement:
            placement_group = self.resolve_placement_group(region, group, options)

        launch = RunInstancesOptions.as_type(template.hardware.type_name)

        if options.subnet_id is None:
            selection = self.resolve_security_groups(region, group, options)
            launch.with_security_groups(*selection.names)
        else:
            if options.groups:
                log.warning(
                    "Ignoring security group names {names} for launch into subnet {subnet}",
                    names=options.groups, subnet=options.subnet_id,
                )
            selection = SecurityGroupSelection(ids=tuple(options.group_ids))
        launch.with_security_group_ids(*selection.ids)

        if options.subnet_id is not None:
            launch.with_subnet_id(options.subnet_id)
        if key_name is not None:
            launch.with_key_name(key_name)
        if placement_group is not None:
            launch.in_placement_group(placement_group)
        if options.user_data is not None:
            launch.with_user_data(options.user_data)
        if options.monitoring:
            launch.enable_monitoring()
        if options.block_device_mappings:
            launch.with_block_device_mappings(*options.block_device_mappings)

        params = launch.build()
        log.debug("Launch parameters for {type}: {params}", type=params.instance_type, params=params)
        return params

    # ─── Key pairs ───────────────────────────────────────────────────

    def resolve_key_pair(self, region: str, group: str, options: TemplateOptions) -> str | None:
        """Name of the key pair to launch with, or None to launch without one."""
        group_key = RegionAndName(region, group)

        if options.public_key is not None:
            return self._import(group_key, options)

        if options.key_pair is not None:
            return self._user_supplied(region, options.key_pair, options)

        existing = self.key_pairs.get_if_present(group_key)
        if existing is not None:
            return existing.key_name

        auto_create = options.auto_create_key_pair
        if auto_create is None:
            auto_create = self._auto_create_key_pair
        if not auto_create:
            if options.run_script is not None:
                raise CredentialsNotAvailableError(region, None)
            return None
        return self.key_pairs.get_or_create(group_key).key_name

    def _import(self, group_key: RegionAndName, options: TemplateOptions) -> str:
        public_key = options.public_key
        assert public_key is not None
        private_key = options.login_private_key

        def load(key: RegionAndName) -> KeyPair:
            pair = self._import_key_pair(
                RegionNameAndPublicKeyMaterial(key.region, key.name, public_key)
            )
            return pair.with_key_material(private_key) if private_key is not None else pair

        pair = self.key_pairs.get_or_create(group_key, load)
        options.dont_authorize_public_key()
        return pair.key_name

    def _user_supplied(self, region: str, key_name: str, options: TemplateOptions) -> str:
        key = RegionAndName(region, key_name)
        if options.login_private_key is not None:
            material = options.login_private_key
            self.key_pairs.get_or_create(
                key, lambda k: KeyPair(k.region, k.name, None, material)
            )

        if options.run_script is not None:
            pair = self.key_pairs.get_if_present(key)
            if pair is None or pair.key_material is None:
                raise CredentialsNotAvailableError(region, key_name)
        return key_name

    # ─── Security groups ─────────────────────────────────────────────

    def resolve_security_groups(
        self, region: str, group: str, options: TemplateOptions
    ) -> SecurityGroupSelection:
        """Generated group first, then user named groups; ids passed through."""
        marker = marker_name(group, region, self._prefix)
        key = RegionNameAndIngressRules(
            region, marker, tuple(options.inbound_ports), authorize_self=True
        )
        resolved = self.security_groups.get_or_create(key)

        names = [resolved]
        for name in options.groups:
            if name not in names:
                names.append(name)
        return SecurityGroupSelection(names=tuple(names), ids=tuple(options.group_ids))

    # ─── Placement groups ────────────────────────────────────────────

    def resolve_placement_group(
        self, region: str, group: str, options: TemplateOptions
    ) -> str | None:
        if options.placement_group is not None:
            return options.placement_group
        auto_create = options.auto_create_placement_group
        if auto_create is None:
            auto_create = self._auto_create_placement_group
        if not auto_create:
            return None
        marker = marker_name(group, region, self._prefix)
        return self.placement_groups.get_or_create(RegionAndName(region, marker))


__all__ = [
    "KeyPairCache",
    "LaunchProvisioner",
    "PlacementGroupCache",
    "SecurityGroupCache",
    "marker_name",
]
