"""Get-or-create loaders backing the provisioning caches.

Each loader runs at most once per cache key (the cache guarantees it) and
blocks on the ``EC2Api`` futures it issues. Loaders tolerate resources that
already exist remotely, so a cold cache in a fresh process reuses what a
previous process created.
"""

from __future__ import annotations

import secrets
from collections.abc import Callable

from loguru import logger
from tenacity import (
    RetryError,
    retry,
    retry_if_exception,
    retry_if_result,
    stop_after_attempt,
    stop_after_delay,
    wait_fixed,
)

from stratus.errors import EC2Error

from .client import EC2Api
from .types import KeyPair, RegionAndName, RegionNameAndIngressRules, RegionNameAndPublicKeyMaterial


def _is_code(*codes: str) -> Callable[[BaseException], bool]:
    def matches(exc: BaseException) -> bool:
        return isinstance(exc, EC2Error) and exc.code in codes

    return matches


_key_pair_duplicate = _is_code("InvalidKeyPair.Duplicate")
_group_duplicate = _is_code("InvalidGroup.Duplicate")
_placement_group_duplicate = _is_code("InvalidPlacementGroup.Duplicate")


# =============================================================================
# Key pairs
# =============================================================================


class CreateUniqueKeyPair:
    """Creates ``{prefix}#{group}#{suffix}`` key pairs, retrying on name clashes."""

    def __init__(self, api: EC2Api, prefix: str = "stratus", max_attempts: int = 5) -> None:
        self._api = api
        self._prefix = prefix
        self._max_attempts = max_attempts
        self._log = logger.bind(component="loader", resource="key_pair")

    def __call__(self, key: RegionAndName) -> KeyPair:
        @retry(
            stop=stop_after_attempt(self._max_attempts),
            retry=retry_if_exception(_key_pair_duplicate),
            reraise=True,
        )
        def _create() -> KeyPair:
            name = f"{self._prefix}#{key.name}#{secrets.token_hex(3)}"
            self._log.debug("Creating key pair {name} in {region}", name=name, region=key.region)
            return self._api.create_key_pair(key.region, name).result()

        pair = _create()
        self._log.info("Created key pair {name} in {region}", name=pair.key_name, region=key.region)
        return pair


class ImportExistingKeyPair:
    """Imports a public key as ``{prefix}#{group}``, reusing an existing pair of that name."""

    def __init__(self, api: EC2Api, prefix: str = "stratus") -> None:
        self._api = api
        self._prefix = prefix
        self._log = logger.bind(component="loader", resource="key_pair")

    def __call__(self, key: RegionNameAndPublicKeyMaterial) -> KeyPair:
        name = f"{self._prefix}#{key.name}"
        try:
            pair = self._api.import_key_pair(key.region, name, key.public_key).result()
        except EC2Error as e:
            if not _key_pair_duplicate(e):
                raise
            self._log.debug("Key pair {name} already imported in {region}", name=name, region=key.region)
            existing = self._api.describe_key_pairs(key.region, [name]).result()
            if not existing:
                raise
            return existing[0]
        self._log.info("Imported key pair {name} in {region}", name=name, region=key.region)
        return pair


# =============================================================================
# Security groups
# =============================================================================


class CreateSecurityGroupIfNeeded:
    """Creates a security group and opens its ingress rules; returns the group name.

    Each inbound port is opened for TCP from anywhere. With ``authorize_self``
    all TCP and UDP traffic between members of the group is allowed too.
    """

    def __init__(self, api: EC2Api, vpc_id: str | None = None) -> None:
        self._api = api
        self._vpc_id = vpc_id
        self._log = logger.bind(component="loader", resource="security_group")

    def __call__(self, key: RegionNameAndIngressRules) -> str:
        region, name = key.region, key.name
        try:
            self._api.create_security_group(region, name, name, self._vpc_id).result()
            self._log.info("Created security group {name} in {region}", name=name, region=region)
        except EC2Error as e:
            if not _group_duplicate(e):
                raise
            self._log.debug("Security group {name} exists in {region}", name=name, region=region)

        pending = [
            self._api.authorize_ingress(region, name, "tcp", port, port, "0.0.0.0/0")
            for port in key.ports
        ]
        if key.authorize_self:
            pending += [
                self._api.authorize_ingress(region, name, protocol, 1, 65535, None, name)
                for protocol in ("tcp", "udp")
            ]
        for future in pending:
            future.result()
        return name


# =============================================================================
# Placement groups
# =============================================================================


class CreatePlacementGroupIfNeeded:
    """Creates a ``cluster`` placement group and waits until it is available."""

    def __init__(self, api: EC2Api, poll_interval: float = 1.0, timeout: float = 120.0) -> None:
        self._api = api
        self._poll_interval = poll_interval
        self._timeout = timeout
        self._log = logger.bind(component="loader", resource="placement_group")

    def __call__(self, key: RegionAndName) -> str:
        region, name = key.region, key.name
        try:
            self._api.create_placement_group(region, name, "cluster").result()
            self._log.info("Created placement group {name} in {region}", name=name, region=region)
        except EC2Error as e:
            if not _placement_group_duplicate(e):
                raise
            self._log.debug("Placement group {name} exists in {region}", name=name, region=region)

        @retry(
            stop=stop_after_delay(self._timeout),
            wait=wait_fixed(self._poll_interval),
            retry=retry_if_result(lambda state: state != "available"),
        )
        def _wait_available() -> str | None:
            groups = self._api.describe_placement_groups(region, [name]).result()
            return groups[0].state if groups else None

        try:
            _wait_available()
        except RetryError as e:
            raise TimeoutError(
                f"placement group {name} in {region} not available after {self._timeout}s"
            ) from e
        return name


__all__ = [
    "CreatePlacementGroupIfNeeded",
    "CreateSecurityGroupIfNeeded",
    "CreateUniqueKeyPair",
    "ImportExistingKeyPair",
]
