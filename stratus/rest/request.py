"""Immutable request and response descriptors."""

from __future__ import annotations

import json as jsonlib
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any
from urllib.parse import urlencode

type Pairs = tuple[tuple[str, str], ...]

_MISSING: Any = object()


@dataclass(frozen=True, slots=True)
class Invocation:
    """One call of a declared client operation."""

    client: str
    operation: str
    args: tuple[Any, ...]
    kwargs: tuple[tuple[str, Any], ...]
    endpoint: str

    @property
    def kwargs_dict(self) -> dict[str, Any]:
        return dict(self.kwargs)

    def arg(self, index: int, name: str, default: Any = _MISSING) -> Any:
        """Look up an argument by position, falling back to its keyword."""
        if index < len(self.args):
            return self.args[index]
        kwargs = self.kwargs_dict
        if name in kwargs:
            return kwargs[name]
        if default is _MISSING:
            raise TypeError(f"{self.client}.{self.operation}() missing argument '{name}'")
        return default

    def __str__(self) -> str:
        return f"{self.client}.{self.operation}"


@dataclass(frozen=True, slots=True)
class Request:
    """HTTP request ready for the transport.

    ``form`` holds ordered form fields; when set it takes precedence over
    ``body`` and is sent url-encoded. Requests that are not ``idempotent``
    are only resent after throttling.
    """

    method: str
    endpoint: str
    path: str = "/"
    headers: Pairs = ()
    params: Pairs = ()
    form: Pairs | None = None
    body: bytes | None = None
    invocation: Invocation | None = field(default=None, compare=False)
    idempotent: bool = field(default=True, compare=False)

    @property
    def url(self) -> str:
        return f"{self.endpoint.rstrip('/')}{self.path}"

    @property
    def request_line(self) -> str:
        query = f"?{urlencode(self.params)}" if self.params else ""
        return f"{self.method} {self.url}{query}"

    def header(self, name: str) -> str | None:
        lowered = name.lower()
        for key, value in self.headers:
            if key.lower() == lowered:
                return value
        return None

    def with_headers(self, headers: Mapping[str, str]) -> Request:
        """Return a copy with ``headers`` added, replacing same-named ones."""
        names = {k.lower() for k in headers}
        kept = tuple((k, v) for k, v in self.headers if k.lower() not in names)
        return replace(self, headers=kept + tuple(headers.items()))

    def payload(self) -> bytes | None:
        if self.form is not None:
            return urlencode(self.form).encode()
        return self.body


@dataclass(frozen=True, slots=True)
class Response:
    """Raw HTTP response handed to response transformers.

    ``request`` is the request that produced it, so transformers can read the
    invocation context (e.g. the region argument).
    """

    status: int
    headers: Mapping[str, str] = field(default_factory=dict, hash=False)
    body: bytes = b""
    request: Request | None = field(default=None, compare=False, repr=False)

    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def json(self) -> Any:
        return jsonlib.loads(self.body) if self.body else None
