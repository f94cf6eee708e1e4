from __future__ import annotations

from collections.abc import Callable
from concurrent.futures import Future
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .futures import ExceptionParser
from .request import Invocation, Request, Response

if TYPE_CHECKING:
    from .client import AsyncClient

type RequestBuilder = Callable[[Invocation], Request]
type ResponseTransformer[T] = Callable[[Response], T]
type RequestFilter = Callable[[Request], Request]


@dataclass(frozen=True, slots=True)
class Operation[T]:
    """A remote operation declared on an ``AsyncClient`` subclass.

    Composes a request builder, a response transformer and an optional
    exception parser. Accessed through a client instance it becomes a
    callable returning ``Future[T]``:

        class PingApi(AsyncClient):
            ping = Operation(json_request("GET", "/ping"), parse_json)

        api.ping().result()
    """

    build: RequestBuilder
    transform: ResponseTransformer[T] | None
    on_error: ExceptionParser[T] | None = None
    name: str = ""

    def __set_name__(self, owner: type, name: str) -> None:
        if not self.name:
            object.__setattr__(self, "name", name)

    def __get__(self, instance: AsyncClient | None, owner: type | None = None) -> Any:
        if instance is None:
            return self
        return BoundOperation(instance, self)


@dataclass(frozen=True, slots=True)
class BoundOperation[T]:
    client: AsyncClient
    operation: Operation[T]

    def __call__(self, *args: Any, **kwargs: Any) -> Future[T]:
        return self.client.invoke(self.operation, *args, **kwargs)

    def __repr__(self) -> str:
        return f"<operation {type(self.client).__name__}.{self.operation.name}>"
