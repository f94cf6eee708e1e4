"""Request builders: turn an ``Invocation`` into a ``Request``."""

from __future__ import annotations

import json
from collections.abc import Callable, Iterable
from typing import Any

from .operation import RequestBuilder
from .request import Invocation, Request

type FormFields = Callable[[Invocation], Iterable[tuple[str, str]]]


def form_request(
    action: str, version: str, fields: FormFields | None = None, idempotent: bool = True
) -> RequestBuilder:
    """Query-style API call: ``POST /`` with ``Action`` and ``Version`` form fields first."""

    def build(invocation: Invocation) -> Request:
        extra = tuple(fields(invocation)) if fields else ()
        return Request(
            method="POST",
            endpoint=invocation.endpoint,
            path="/",
            form=(("Action", action), ("Version", version), *extra),
            invocation=invocation,
            idempotent=idempotent,
        )

    build.__name__ = f"form_request[{action}]"
    return build


def json_request(
    method: str,
    path: str | Callable[[Invocation], str],
    body: Callable[[Invocation], Any] | None = None,
) -> RequestBuilder:
    """REST-style call with an optional JSON body."""

    def build(invocation: Invocation) -> Request:
        resolved = path(invocation) if callable(path) else path
        payload = body(invocation) if body else None
        return Request(
            method=method,
            endpoint=invocation.endpoint,
            path=resolved,
            headers=(("Accept", "application/json"),)
            + ((("Content-Type", "application/json"),) if payload is not None else ()),
            body=json.dumps(payload).encode() if payload is not None else None,
            invocation=invocation,
        )

    build.__name__ = f"json_request[{method}]"
    return build


def numbered(prefix: str, values: Iterable[Any]) -> list[tuple[str, str]]:
    """``[("SecurityGroup.1", "a"), ("SecurityGroup.2", "b")]`` style fields."""
    return [(f"{prefix}.{i}", str(v)) for i, v in enumerate(values, start=1)]
