"""Base class for declared asynchronous clients."""

from __future__ import annotations

from collections.abc import Sequence
from concurrent.futures import Future
from typing import Any, ClassVar

from stratus.errors import ContractViolationError

from .dispatcher import Dispatcher, ErrorHandler
from .operation import Operation, RequestFilter
from .request import Invocation


class AsyncClient:
    """Client whose remote operations are declared as ``Operation`` attributes.

    Equality, hashing, ``repr`` and ``new`` are answered locally; only
    declared operations reach the dispatcher.

    Attributes:
        error_handler: Translates HTTP error responses into provider errors
            before exception parsers see them.
    """

    error_handler: ClassVar[ErrorHandler | None] = None

    def __init__(
        self,
        dispatcher: Dispatcher,
        endpoint: str,
        *,
        filters: Sequence[RequestFilter] = (),
    ) -> None:
        self._dispatcher = dispatcher
        self._endpoint = endpoint
        self._filters = tuple(filters)

    @property
    def endpoint(self) -> str:
        return self._endpoint

    @classmethod
    def operations(cls) -> dict[str, Operation[Any]]:
        return {
            name: attr
            for klass in reversed(cls.__mro__)
            for name, attr in vars(klass).items()
            if isinstance(attr, Operation)
        }

    def invoke[T](self, operation: Operation[T], *args: Any, **kwargs: Any) -> Future[T]:
        invocation = Invocation(
            client=type(self).__name__,
            operation=operation.name if isinstance(operation, Operation) else repr(operation),
            args=args,
            kwargs=tuple(kwargs.items()),
            endpoint=self._endpoint,
        )
        return self._dispatcher.invoke(
            operation,
            invocation,
            filters=self._filters,
            error_handler=type(self).error_handler,
        )

    def invoke_named(self, name: str, *args: Any, **kwargs: Any) -> Future[Any]:
        """Invoke an operation by name.

        Raises:
            ContractViolationError: ``name`` is not a declared operation.
        """
        operation = self.operations().get(name)
        if operation is None:
            raise ContractViolationError(
                f"{type(self).__name__}.{name} is not a declared operation"
            )
        return self.invoke(operation, *args, **kwargs)

    def new[C: AsyncClient](self, client_type: type[C], endpoint: str | None = None) -> C:
        """Related client sharing this client's dispatcher and filters."""
        return client_type(self._dispatcher, endpoint or self._endpoint, filters=self._filters)

    def __eq__(self, other: object) -> bool:
        if other is self:
            return True
        if not isinstance(other, AsyncClient) or type(other) is not type(self):
            return False
        return other._dispatcher is self._dispatcher and other._endpoint == self._endpoint

    def __hash__(self) -> int:
        return hash((type(self), self._endpoint))

    def __repr__(self) -> str:
        return f"<{type(self).__qualname__} client for {self._endpoint}>"
