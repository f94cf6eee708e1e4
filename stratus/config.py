"""TOML-based client and provider configuration.

Loads ~/.stratus/defaults.toml (global) and stratus.toml (project),
merges them, and builds typed configuration objects.

Example stratus.toml::

    [client]
    request_timeout = 60

    [providers.prod]
    type = "ec2"
    region = "eu-west-1"

    [logging]
    level = "DEBUG"
    console = true
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

from stratus.observability.logging import LogConfig

if TYPE_CHECKING:
    from stratus.providers.ec2.config import EC2

    type ProviderConfig = EC2

type RawConfig = dict[str, Any]

GLOBAL_CONFIG_PATH = Path.home() / ".stratus" / "defaults.toml"
PROJECT_CONFIG_NAME = "stratus.toml"


@dataclass(frozen=True, slots=True)
class ClientConfig:
    """Transport settings shared by every client of a context.

    Args:
        request_timeout: Total timeout of one HTTP exchange, in seconds.
        max_retries: Attempts for retryable transport faults (429, 5xx, connection errors).
        retry_base_delay: Initial backoff delay in seconds, doubled per attempt.
        max_connections: Connection pool size of the HTTP session.
    """

    request_timeout: float = 30.0
    max_retries: int = 3
    retry_base_delay: float = 0.5
    max_connections: int = 20


def _deep_merge(base: RawConfig, override: RawConfig) -> RawConfig:
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _read_toml(path: Path) -> RawConfig:
    if not path.is_file():
        return {}
    with path.open("rb") as f:
        return tomllib.load(f)


def load_config(
    *,
    project_dir: Path | None = None,
    global_path: Path | None = None,
) -> RawConfig:
    global_cfg = _read_toml(global_path or GLOBAL_CONFIG_PATH)
    project_path = (project_dir or Path.cwd()) / PROJECT_CONFIG_NAME
    project_cfg = _read_toml(project_path)

    merged = _deep_merge(global_cfg, project_cfg)
    merged.setdefault("client", {})
    merged.setdefault("providers", {})
    merged.setdefault("logging", {})
    return merged


def _get_provider_map() -> dict[str, type]:
    from stratus.providers.ec2.config import EC2

    return {
        "ec2": EC2,
    }


def build_provider(name: str, raw: RawConfig) -> ProviderConfig:
    raw = dict(raw)
    provider_type = raw.pop("type", None)
    if provider_type is None:
        raise ValueError(f"Provider '{name}' missing 'type' field")

    provider_map = _get_provider_map()
    cls = provider_map.get(provider_type)
    if cls is None:
        raise ValueError(
            f"Unknown provider type '{provider_type}'. "
            f"Valid: {', '.join(provider_map)}"
        )
    return cls(**raw)


def resolve_client_config(config: RawConfig) -> ClientConfig:
    return ClientConfig(**config.get("client", {}))


def resolve_log_config(config: RawConfig) -> LogConfig:
    return LogConfig(**config.get("logging", {}))


def resolve_provider(
    name: str,
    *,
    project_dir: Path | None = None,
    global_path: Path | None = None,
) -> ProviderConfig:
    config = load_config(project_dir=project_dir, global_path=global_path)

    providers = config["providers"]
    if name not in providers:
        raise KeyError(
            f"Provider '{name}' not found. Available: {', '.join(providers) or 'none'}"
        )
    return build_provider(name, providers[name])
