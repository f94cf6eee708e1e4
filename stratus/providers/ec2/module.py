"""Dependency injection wiring for the EC2 provider.

Usage:
    >>> from injector import Injector
    >>> from stratus.providers.ec2 import EC2, EC2Module
    >>>
    >>> injector = Injector([EC2Module(EC2(region="eu-west-1"))])
    >>> provisioner = injector.get(LaunchProvisioner)
"""

from __future__ import annotations

from injector import Binder, Module, provider, singleton

from stratus.config import ClientConfig
from stratus.infra.auth import SigV4Signer
from stratus.infra.http import HttpTransport
from stratus.infra.loop import EventLoopThread
from stratus.rest import Dispatcher, RequestExecutor

from .client import EC2Api, region_from_invocation
from .config import EC2
from .loaders import (
    CreatePlacementGroupIfNeeded,
    CreateSecurityGroupIfNeeded,
    CreateUniqueKeyPair,
    ImportExistingKeyPair,
)
from .strategy import KeyPairCache, LaunchProvisioner, PlacementGroupCache, SecurityGroupCache


class EC2Module(Module):
    """Provides the EC2 client, the provisioning caches and ``LaunchProvisioner``.

    Everything is a singleton, so the caches are shared by every consumer of
    the injector.
    """

    def __init__(self, config: EC2 | None = None, client: ClientConfig | None = None) -> None:
        self._config = config or EC2()
        self._client = client or ClientConfig()

    def configure(self, binder: Binder) -> None:
        binder.bind(EC2, to=self._config)
        binder.bind(ClientConfig, to=self._client)

    @singleton
    @provider
    def provide_loop(self) -> EventLoopThread:
        return EventLoopThread()

    @singleton
    @provider
    def provide_transport(self, config: ClientConfig) -> HttpTransport:
        return HttpTransport(config)

    @singleton
    @provider
    def provide_dispatcher(self, transport: HttpTransport, loop: EventLoopThread) -> Dispatcher:
        return Dispatcher(RequestExecutor(transport, loop))

    @singleton
    @provider
    def provide_signer(self, config: EC2) -> SigV4Signer:
        return SigV4Signer(
            "ec2",
            config.region,
            access_key_id=config.access_key_id,
            secret_access_key=config.secret_access_key,
            session_token=config.session_token,
            region_of=region_from_invocation,
        )

    @singleton
    @provider
    def provide_api(self, dispatcher: Dispatcher, signer: SigV4Signer, config: EC2) -> EC2Api:
        return EC2Api(dispatcher, config.endpoint_template, filters=[signer])

    @singleton
    @provider
    def provide_key_pairs(self, api: EC2Api, config: EC2) -> KeyPairCache:
        return KeyPairCache(CreateUniqueKeyPair(api, config.prefix))

    @singleton
    @provider
    def provide_security_groups(self, api: EC2Api) -> SecurityGroupCache:
        return SecurityGroupCache(CreateSecurityGroupIfNeeded(api))

    @singleton
    @provider
    def provide_placement_groups(self, api: EC2Api) -> PlacementGroupCache:
        return PlacementGroupCache(CreatePlacementGroupIfNeeded(api))

    @singleton
    @provider
    def provide_provisioner(
        self,
        key_pairs: KeyPairCache,
        security_groups: SecurityGroupCache,
        placement_groups: PlacementGroupCache,
        api: EC2Api,
        config: EC2,
    ) -> LaunchProvisioner:
        return LaunchProvisioner(
            key_pairs,
            security_groups,
            placement_groups,
            ImportExistingKeyPair(api, config.prefix),
            prefix=config.prefix,
            auto_create_key_pair=config.auto_create_key_pair,
            auto_create_placement_group=config.auto_create_placement_group,
        )
