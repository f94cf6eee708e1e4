"""Error hierarchy for stratus.

Faults fall into a small taxonomy: contract violations (programming errors),
transport faults (network and HTTP status failures), provider faults carrying
an error code, resource precondition faults, and cache resolution faults.
"""

from __future__ import annotations

from typing import Any


class StratusError(Exception):
    """Base class for all stratus errors."""


class ContractViolationError(StratusError):
    """A client method is neither handled locally nor a declared operation.

    Indicates a programming error. Never passed to exception parsers.
    """


class TransportError(StratusError):
    """The request could not be delivered or the connection failed."""

    def __init__(self, message: str, *, request_line: str | None = None) -> None:
        super().__init__(message)
        self.request_line = request_line


class HttpResponseError(TransportError):
    """The server answered with an error status."""

    def __init__(self, status: int, body: str, *, request_line: str | None = None) -> None:
        super().__init__(f"HTTP {status}: {body[:500]}", request_line=request_line)
        self.status = status
        self.body = body


class ResourceNotFoundError(HttpResponseError):
    """The server answered 404."""


class EC2Error(StratusError):
    """EC2 Query API error response."""

    def __init__(self, code: str, message: str, *, status: int = 400) -> None:
        super().__init__(f"{code}: {message}")
        self.code = code
        self.message = message
        self.status = status


class CredentialsNotAvailableError(StratusError, ValueError):
    """A run script needs a private key that is not resolvable for the key pair."""

    def __init__(self, region: str, key_name: str | None) -> None:
        super().__init__(
            f"credentials required for key pair {key_name!r} in {region} are not available; "
            "set login_private_key on the template options"
        )
        self.region = region
        self.key_name = key_name


class ResourceResolutionError(StratusError):
    """A get-or-create cache failed to create the value for a key."""

    def __init__(self, cache: str, key: Any, cause: BaseException) -> None:
        super().__init__(f"{cache}: could not resolve {key}: {cause}")
        self.cache = cache
        self.key = key


__all__ = [
    "ContractViolationError",
    "CredentialsNotAvailableError",
    "EC2Error",
    "HttpResponseError",
    "ResourceNotFoundError",
    "ResourceResolutionError",
    "StratusError",
    "TransportError",
]
