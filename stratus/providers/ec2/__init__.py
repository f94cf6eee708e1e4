"""AWS EC2 provider for stratus.

Example:
    from stratus.providers.ec2 import EC2, InstanceSpec, Template, TemplateOptions

    with ComputeContext(EC2(region="eu-west-1")) as ctx:
        params = ctx.provisioner.execute(
            "eu-west-1",
            "web",
            Template("ami-123", InstanceSpec("m5.large"), TemplateOptions(inbound_ports=[22, 80])),
        )
"""

from stratus.providers.ec2.client import API_VERSION, DEFAULT_ENDPOINT, EC2Api
from stratus.providers.ec2.config import EC2
from stratus.providers.ec2.loaders import (
    CreatePlacementGroupIfNeeded,
    CreateSecurityGroupIfNeeded,
    CreateUniqueKeyPair,
    ImportExistingKeyPair,
)
from stratus.providers.ec2.module import EC2Module
from stratus.providers.ec2.options import LaunchParameters, RunInstancesOptions
from stratus.providers.ec2.strategy import (
    KeyPairCache,
    LaunchProvisioner,
    PlacementGroupCache,
    SecurityGroupCache,
    marker_name,
)
from stratus.providers.ec2.types import (
    BlockDeviceMapping,
    InstanceSpec,
    KeyPair,
    PlacementGroup,
    RegionAndName,
    RegionNameAndIngressRules,
    RegionNameAndPublicKeyMaterial,
    Reservation,
    SecurityGroup,
    SecurityGroupSelection,
    Template,
    TemplateOptions,
)

__all__ = [
    "API_VERSION",
    "BlockDeviceMapping",
    "CreatePlacementGroupIfNeeded",
    "CreateSecurityGroupIfNeeded",
    "CreateUniqueKeyPair",
    "DEFAULT_ENDPOINT",
    "EC2",
    "EC2Api",
    "EC2Module",
    "ImportExistingKeyPair",
    "InstanceSpec",
    "KeyPair",
    "KeyPairCache",
    "LaunchParameters",
    "LaunchProvisioner",
    "PlacementGroup",
    "PlacementGroupCache",
    "RegionAndName",
    "RegionNameAndIngressRules",
    "RegionNameAndPublicKeyMaterial",
    "Reservation",
    "RunInstancesOptions",
    "SecurityGroup",
    "SecurityGroupCache",
    "SecurityGroupSelection",
    "Template",
    "TemplateOptions",
    "marker_name",
]
