"""``RunInstances`` launch parameters.

``RunInstancesOptions`` is a mutable builder owned by one launch;
``build()`` freezes it into ``LaunchParameters``, whose ``form_parameters()``
renders the ordered Query API fields:

    InstanceType, SecurityGroup.N, SecurityGroupId.N, SubnetId, KeyName,
    Placement.GroupName, UserData, Monitoring.Enabled, BlockDeviceMapping.N.*
"""

from __future__ import annotations

import base64
from dataclasses import dataclass

from stratus.rest.builders import numbered

from .types import BlockDeviceMapping

type FormParameters = tuple[tuple[str, str], ...]


@dataclass(frozen=True, slots=True)
class LaunchParameters:
    instance_type: str
    security_groups: tuple[str, ...] = ()
    security_group_ids: tuple[str, ...] = ()
    subnet_id: str | None = None
    key_name: str | None = None
    placement_group: str | None = None
    user_data: str | None = None
    monitoring: bool = False
    block_device_mappings: tuple[BlockDeviceMapping, ...] = ()

    def form_parameters(self) -> FormParameters:
        fields: list[tuple[str, str]] = [("InstanceType", self.instance_type)]
        fields += numbered("SecurityGroup", self.security_groups)
        fields += numbered("SecurityGroupId", self.security_group_ids)
        if self.subnet_id is not None:
            fields.append(("SubnetId", self.subnet_id))
        if self.key_name is not None:
            fields.append(("KeyName", self.key_name))
        if self.placement_group is not None:
            fields.append(("Placement.GroupName", self.placement_group))
        if self.user_data is not None:
            fields.append(("UserData", self.user_data))
        if self.monitoring:
            fields.append(("Monitoring.Enabled", "true"))
        for i, mapping in enumerate(self.block_device_mappings, start=1):
            fields += _block_device_fields(f"BlockDeviceMapping.{i}", mapping)
        return tuple(fields)

    def as_dict(self) -> dict[str, str]:
        return dict(self.form_parameters())


def _block_device_fields(prefix: str, mapping: BlockDeviceMapping) -> list[tuple[str, str]]:
    fields = [(f"{prefix}.DeviceName", mapping.device_name)]
    if mapping.virtual_name is not None:
        fields.append((f"{prefix}.VirtualName", mapping.virtual_name))
    if mapping.no_device:
        fields.append((f"{prefix}.NoDevice", ""))
        return fields
    if mapping.volume_size is not None:
        fields.append((f"{prefix}.Ebs.VolumeSize", str(mapping.volume_size)))
        fields.append(
            (f"{prefix}.Ebs.DeleteOnTermination", "true" if mapping.delete_on_termination else "false")
        )
    return fields


class RunInstancesOptions:
    """Accumulates launch parameters for one ``RunInstances`` call.

    Example:
        >>> params = (
        ...     RunInstancesOptions.as_type("m5.large")
        ...     .with_key_name("stratus#web")
        ...     .with_user_data(b"hello")
        ...     .build()
        ... )
        >>> params.as_dict()["UserData"]
        'aGVsbG8='
    """

    def __init__(self, instance_type: str) -> None:
        self._instance_type = instance_type
        self._security_groups: list[str] = []
        self._security_group_ids: list[str] = []
        self._subnet_id: str | None = None
        self._key_name: str | None = None
        self._placement_group: str | None = None
        self._user_data: str | None = None
        self._monitoring = False
        self._block_device_mappings: list[BlockDeviceMapping] = []

    @classmethod
    def as_type(cls, instance_type: str) -> RunInstancesOptions:
        return cls(instance_type)

    def with_security_groups(self, *names: str) -> RunInstancesOptions:
        for name in names:
            if name not in self._security_groups:
                self._security_groups.append(name)
        return self

    def with_security_group_ids(self, *ids: str) -> RunInstancesOptions:
        self._security_group_ids.extend(ids)
        return self

    def with_subnet_id(self, subnet_id: str) -> RunInstancesOptions:
        self._subnet_id = subnet_id
        return self

    def with_key_name(self, key_name: str) -> RunInstancesOptions:
        self._key_name = key_name
        return self

    def in_placement_group(self, name: str) -> RunInstancesOptions:
        self._placement_group = name
        return self

    def with_user_data(self, data: bytes) -> RunInstancesOptions:
        """Raw user data; stored base64 encoded."""
        self._user_data = base64.b64encode(data).decode("ascii")
        return self

    def enable_monitoring(self) -> RunInstancesOptions:
        self._monitoring = True
        return self

    def with_block_device_mappings(self, *mappings: BlockDeviceMapping) -> RunInstancesOptions:
        self._block_device_mappings.extend(mappings)
        return self

    def build(self) -> LaunchParameters:
        return LaunchParameters(
            instance_type=self._instance_type,
            security_groups=tuple(self._security_groups),
            security_group_ids=tuple(self._security_group_ids),
            subnet_id=self._subnet_id,
            key_name=self._key_name,
            placement_group=self._placement_group,
            user_data=self._user_data,
            monitoring=self._monitoring,
            block_device_mappings=tuple(self._block_device_mappings),
        )
