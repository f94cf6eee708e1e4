"""EC2 domain types: cache keys, key pairs, templates and launch inputs.

Cache keys and resource descriptors are frozen. ``TemplateOptions`` is the
one mutable type: it belongs to the caller building a launch and is adjusted
by the provisioning strategy (e.g. after a public key import).
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace


# =============================================================================
# Cache keys
# =============================================================================


@dataclass(frozen=True, slots=True)
class RegionAndName:
    region: str
    name: str

    def __str__(self) -> str:
        return f"{self.region}/{self.name}"


@dataclass(frozen=True, slots=True)
class RegionNameAndIngressRules:
    """Security group cache key.

    Ports and self authorization are part of the key, so a template asking
    for other ports resolves again and gets its rules added to the group.
    """

    region: str
    name: str
    ports: tuple[int, ...] = ()
    authorize_self: bool = True

    def __str__(self) -> str:
        return f"{self.region}/{self.name}"


@dataclass(frozen=True, slots=True)
class RegionNameAndPublicKeyMaterial:
    region: str
    name: str
    public_key: str = field(repr=False)

    def __str__(self) -> str:
        return f"{self.region}/{self.name}"


# =============================================================================
# Resources
# =============================================================================


@dataclass(frozen=True, slots=True)
class KeyPair:
    """EC2 key pair.

    ``key_material`` is the private key. EC2 only returns it from
    ``CreateKeyPair``; imported or user supplied pairs carry it only when the
    caller provided it.
    """

    region: str
    key_name: str
    fingerprint: str | None = None
    key_material: str | None = field(default=None, repr=False)

    def with_key_material(self, key_material: str) -> KeyPair:
        return replace(self, key_material=key_material)


@dataclass(frozen=True, slots=True)
class SecurityGroup:
    region: str
    group_name: str
    group_id: str | None = None
    description: str = ""


@dataclass(frozen=True, slots=True)
class PlacementGroup:
    region: str
    name: str
    strategy: str = "cluster"
    state: str = "pending"


@dataclass(frozen=True, slots=True)
class Reservation:
    """Result of ``RunInstances``."""

    reservation_id: str
    instance_ids: tuple[str, ...] = ()


# =============================================================================
# Launch inputs
# =============================================================================


@dataclass(frozen=True, slots=True)
class InstanceSpec:
    """Hardware descriptor of an instance type.

    Args:
        type_name: EC2 instance type (e.g. "m5.large").
        vcpu: Virtual CPUs.
        memory_gb: Memory in GiB.
        supports_cluster_placement: Whether the type can join a cluster placement group.
    """

    type_name: str
    vcpu: int = 0
    memory_gb: float = 0.0
    supports_cluster_placement: bool = False


@dataclass(frozen=True, slots=True)
class BlockDeviceMapping:
    device_name: str
    virtual_name: str | None = None
    volume_size: int | None = None
    delete_on_termination: bool = True
    no_device: bool = False


@dataclass(slots=True)
class TemplateOptions:
    """Per-launch options.

    Args:
        key_pair: Existing key pair name to launch with.
        public_key: OpenSSH public key to import as the group's key pair.
        login_private_key: Private key matching ``key_pair`` or ``public_key``.
        run_script: Script run after boot; requires a resolvable private key.
        groups: Additional security group names, in launch order.
        group_ids: Security group ids passed verbatim.
        inbound_ports: TCP ports opened on the generated security group.
        subnet_id: VPC subnet to launch into.
        placement_group: Existing placement group name.
        user_data: Raw user data; base64 encoded at launch.
        monitoring: Enable detailed monitoring.
        block_device_mappings: Extra block device mappings.
        auto_create_key_pair: Create a key pair when none is given. None
            falls back to the provider default.
        auto_create_placement_group: Create a placement group for cluster
            instance types. None falls back to the provider default.
    """

    key_pair: str | None = None
    public_key: str | None = None
    login_private_key: str | None = field(default=None, repr=False)
    run_script: str | None = None
    groups: list[str] = field(default_factory=list)
    group_ids: list[str] = field(default_factory=list)
    inbound_ports: list[int] = field(default_factory=lambda: [22])
    subnet_id: str | None = None
    placement_group: str | None = None
    user_data: bytes | None = None
    monitoring: bool = False
    block_device_mappings: list[BlockDeviceMapping] = field(default_factory=list)
    auto_create_key_pair: bool | None = None
    auto_create_placement_group: bool | None = None

    def dont_authorize_public_key(self) -> TemplateOptions:
        """Stop importing ``public_key`` once it is registered as a key pair."""
        self.public_key = None
        return self


@dataclass(frozen=True, slots=True)
class Template:
    image_id: str
    hardware: InstanceSpec
    options: TemplateOptions = field(default_factory=TemplateOptions)


@dataclass(frozen=True, slots=True)
class SecurityGroupSelection:
    """Resolved security groups: names in launch order, ids verbatim."""

    names: tuple[str, ...] = ()
    ids: tuple[str, ...] = ()

    def __bool__(self) -> bool:
        return bool(self.names or self.ids)


__all__ = [
    "BlockDeviceMapping",
    "InstanceSpec",
    "KeyPair",
    "PlacementGroup",
    "RegionAndName",
    "RegionNameAndIngressRules",
    "RegionNameAndPublicKeyMaterial",
    "Reservation",
    "SecurityGroup",
    "SecurityGroupSelection",
    "Template",
    "TemplateOptions",
]
