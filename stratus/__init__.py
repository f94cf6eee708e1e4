"""Stratus - asynchronous cloud clients and launch provisioning.

Example:

    from stratus import ComputeContext
    from stratus.providers.ec2 import EC2, InstanceSpec, Template, TemplateOptions

    with ComputeContext(EC2(region="eu-west-1")) as ctx:
        template = Template(
            "ami-0abcdef",
            InstanceSpec("c5n.18xlarge", supports_cluster_placement=True),
            TemplateOptions(inbound_ports=[22, 8080], user_data=b"#!/bin/sh\n"),
        )
        reservation = ctx.launch("eu-west-1", "web", template).result()
"""

from stratus.config import ClientConfig, load_config
from stratus.context import ComputeContext
from stratus.errors import (
    ContractViolationError,
    CredentialsNotAvailableError,
    EC2Error,
    HttpResponseError,
    ResourceNotFoundError,
    ResourceResolutionError,
    StratusError,
    TransportError,
)
from stratus.observability import LogConfig, setup_logging, teardown_logging
from stratus.rest import AsyncClient, Dispatcher, Operation

__version__ = "0.1.0"

__all__ = [
    "AsyncClient",
    "ClientConfig",
    "ComputeContext",
    "ContractViolationError",
    "CredentialsNotAvailableError",
    "Dispatcher",
    "EC2Error",
    "HttpResponseError",
    "LogConfig",
    "Operation",
    "ResourceNotFoundError",
    "ResourceResolutionError",
    "StratusError",
    "TransportError",
    "load_config",
    "setup_logging",
    "teardown_logging",
]
