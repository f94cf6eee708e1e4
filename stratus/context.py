"""Compute context: owns the worker loop, transport, clients and caches.

Example:
    >>> from stratus import ComputeContext
    >>> from stratus.providers.ec2 import EC2, InstanceSpec, Template
    >>>
    >>> with ComputeContext(EC2(region="eu-west-1")) as ctx:
    ...     reservation = ctx.launch(
    ...         "eu-west-1", "web", Template("ami-123", InstanceSpec("m5.large"))
    ...     ).result()

Closing the context closes the HTTP session and stops the event loop
thread.
"""

from __future__ import annotations

from concurrent.futures import Future
from pathlib import Path
from typing import Any

from loguru import logger

from stratus.config import (
    ClientConfig,
    load_config,
    resolve_client_config,
    resolve_log_config,
    resolve_provider,
)
from stratus.infra.auth import SigV4Signer
from stratus.infra.http import HttpTransport
from stratus.infra.loop import EventLoopThread
from stratus.observability.logging import setup_logging, teardown_logging
from stratus.providers.ec2.client import EC2Api, region_from_invocation
from stratus.providers.ec2.config import EC2
from stratus.providers.ec2.loaders import (
    CreatePlacementGroupIfNeeded,
    CreateSecurityGroupIfNeeded,
    CreateUniqueKeyPair,
    ImportExistingKeyPair,
)
from stratus.providers.ec2.strategy import (
    KeyPairCache,
    LaunchProvisioner,
    PlacementGroupCache,
    SecurityGroupCache,
)
from stratus.providers.ec2.types import Reservation, Template
from stratus.rest import Dispatcher, RequestExecutor, RequestFilter, Transport


class ComputeContext:
    """Composition root for one EC2 account.

    Args:
        config: EC2 provider configuration.
        client: Transport settings.
        transport: Replaces the aiohttp transport (tests, emulators).
        filters: Request filters; defaults to SigV4 signing with ``config``'s credentials.
    """

    def __init__(
        self,
        config: EC2 | None = None,
        client: ClientConfig | None = None,
        *,
        transport: Transport | None = None,
        filters: list[RequestFilter] | None = None,
    ) -> None:
        self.config = config or EC2()
        self.client_config = client or ClientConfig()
        self._log = logger.bind(component="context")
        self._log_handlers: list[int] = []
        self._closed = False

        self.loop = EventLoopThread()
        self.transport: Transport = transport or HttpTransport(self.client_config)
        self.dispatcher = Dispatcher(RequestExecutor(self.transport, self.loop))

        if filters is None:
            filters = [
                SigV4Signer(
                    "ec2",
                    self.config.region,
                    access_key_id=self.config.access_key_id,
                    secret_access_key=self.config.secret_access_key,
                    session_token=self.config.session_token,
                    region_of=region_from_invocation,
                )
            ]
        self.api = EC2Api(self.dispatcher, self.config.endpoint_template, filters=filters)

        self.key_pairs = KeyPairCache(CreateUniqueKeyPair(self.api, self.config.prefix))
        self.security_groups = SecurityGroupCache(CreateSecurityGroupIfNeeded(self.api))
        self.placement_groups = PlacementGroupCache(CreatePlacementGroupIfNeeded(self.api))
        self.provisioner = LaunchProvisioner(
            self.key_pairs,
            self.security_groups,
            self.placement_groups,
            ImportExistingKeyPair(self.api, self.config.prefix),
            prefix=self.config.prefix,
            auto_create_key_pair=self.config.auto_create_key_pair,
            auto_create_placement_group=self.config.auto_create_placement_group,
        )

    @classmethod
    def from_config(
        cls,
        provider: str,
        *,
        project_dir: Path | None = None,
        global_path: Path | None = None,
    ) -> ComputeContext:
        """Build a context from ``stratus.toml`` / ``~/.stratus/defaults.toml``.

        Enables logging as configured by the ``[logging]`` section.
        """
        raw = load_config(project_dir=project_dir, global_path=global_path)
        config = resolve_provider(provider, project_dir=project_dir, global_path=global_path)
        if not isinstance(config, EC2):
            raise ValueError(f"Provider '{provider}' is not an EC2 provider")
        ctx = cls(config, resolve_client_config(raw))
        if raw["logging"]:
            ctx._log_handlers = setup_logging(resolve_log_config(raw))
        return ctx

    def launch(
        self,
        region: str,
        group: str,
        template: Template,
        count: int = 1,
    ) -> Future[Reservation]:
        """Provision supporting resources, then start ``count`` instances.

        Resource resolution blocks the caller; the ``RunInstances`` call itself
        is returned as a future.
        """
        params = self.provisioner.execute(region, group, template)
        self._log.info(
            "Launching {count} x {type} for {group} in {region}",
            count=count, type=params.instance_type, group=group, region=region,
        )
        return self.api.run_instances(region, template.image_id, count, count, params)

    # ─── Lifecycle ───────────────────────────────────────────────────

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        close = getattr(self.transport, "close", None)
        if self.loop.started and close is not None:
            self.loop.run_sync(close(), timeout=10)
        self.loop.stop()
        self._log.debug("Context closed")
        if self._log_handlers:
            teardown_logging(self._log_handlers)
            self._log_handlers = []

    def __enter__(self) -> ComputeContext:
        return self

    def __exit__(self, *_: Any) -> None:
        self.close()
