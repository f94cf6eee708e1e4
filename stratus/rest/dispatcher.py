"""Async invocation dispatcher.

Turns an ``Operation`` call into an asynchronous HTTP exchange:

    build request -> apply filters -> submit to executor -> transform response
                                                          \\-> exception parser

Request building happens on the caller's thread. Execution and response
transformation run on the executor's event loop, so ``invoke`` never waits
on the network.
"""

from __future__ import annotations

from collections.abc import Callable, Coroutine, Sequence
from concurrent.futures import Future
from dataclasses import replace
from typing import Any, Protocol

from loguru import logger

from stratus.errors import ContractViolationError, HttpResponseError

from .futures import immediate, immediate_failed, recover
from .operation import Operation, RequestFilter, ResponseTransformer
from .request import Invocation, Request, Response

type ErrorHandler = Callable[[HttpResponseError], BaseException]


class Transport(Protocol):
    async def execute(self, request: Request) -> Response: ...


class CoroutineRunner(Protocol):
    def submit[T](self, coro: Coroutine[Any, Any, T]) -> Future[T]: ...


class RequestExecutor:
    """Runs requests on an event loop and applies the response transformer there."""

    def __init__(self, transport: Transport, runner: CoroutineRunner) -> None:
        self._transport = transport
        self._runner = runner

    def submit[T](
        self,
        request: Request,
        transform: ResponseTransformer[T],
        error_handler: ErrorHandler | None = None,
    ) -> Future[T]:
        return self._runner.submit(self._execute(request, transform, error_handler))

    async def _execute[T](
        self,
        request: Request,
        transform: ResponseTransformer[T],
        error_handler: ErrorHandler | None,
    ) -> T:
        try:
            response = await self._transport.execute(request)
        except HttpResponseError as e:
            if error_handler is None:
                raise
            translated = error_handler(e)
            if translated is e:
                raise
            raise translated from e
        if response.request is None:
            response = replace(response, request=request)
        return transform(response)


class Executor(Protocol):
    def submit[T](
        self,
        request: Request,
        transform: ResponseTransformer[T],
        error_handler: ErrorHandler | None = None,
    ) -> Future[T]: ...


class Dispatcher:
    """Dispatches declared operations to an executor."""

    def __init__(self, executor: Executor) -> None:
        self._executor = executor
        self._log = logger.bind(component="dispatcher")

    def invoke[T](
        self,
        operation: Operation[T],
        invocation: Invocation,
        *,
        filters: Sequence[RequestFilter] = (),
        error_handler: ErrorHandler | None = None,
    ) -> Future[T]:
        """Issue one call and return its pending result.

        Raises:
            ContractViolationError: ``operation`` is not a declared operation with
                a response transformer.
        """
        if not isinstance(operation, Operation):
            raise ContractViolationError(
                f"{invocation} is not a declared operation: {operation!r}"
            )
        if operation.transform is None:
            raise ContractViolationError(f"{invocation} declares no response transformer")

        log = self._log.bind(client=invocation.client, operation=invocation.operation)
        log.trace("Converting {invocation}", invocation=invocation)

        try:
            request = operation.build(invocation)
            for apply_filter in filters:
                request = apply_filter(request)
        except ContractViolationError:
            raise
        except Exception as e:
            if operation.on_error is None:
                log.debug("Building {invocation} failed: {err}", invocation=invocation, err=e)
                return immediate_failed(e)
            try:
                return immediate(operation.on_error(e))
            except Exception as parse_error:
                return immediate_failed(parse_error)

        log.trace(
            "Converted {invocation} to {line}",
            invocation=invocation, line=request.request_line,
        )
        log.trace(
            "Response from {invocation} is parsed by {fn}",
            invocation=invocation, fn=getattr(operation.transform, "__name__", operation.transform),
        )
        log.debug("Invoking {invocation}", invocation=invocation)

        result = self._executor.submit(request, operation.transform, error_handler)

        if operation.on_error is not None:
            log.trace(
                "Exceptions from {invocation} are parsed by {fn}",
                invocation=invocation, fn=getattr(operation.on_error, "__name__", operation.on_error),
            )
            result = recover(result, operation.on_error)
        return result
