"""Future combinators for invocation results.

Results are plain ``concurrent.futures.Future`` objects. The combinators here
attach continuations instead of blocking, and cancelling a derived future
cancels its source. Cancellation of a request already on the wire is best
effort: the remote side effect may still happen.
"""

from __future__ import annotations

from collections.abc import Callable
from concurrent.futures import CancelledError, Future
from typing import Any

type ExceptionParser[T] = Callable[[BaseException], T]


def immediate[T](value: T) -> Future[T]:
    """An already-completed future."""
    future: Future[T] = Future()
    future.set_result(value)
    return future


def immediate_failed(error: BaseException) -> Future[Any]:
    """An already-failed future."""
    future: Future[Any] = Future()
    future.set_exception(error)
    return future


def _link_cancel(derived: Future[Any], source: Future[Any]) -> None:
    def on_done(f: Future[Any]) -> None:
        if f.cancelled():
            source.cancel()

    derived.add_done_callback(on_done)


def _settle[T](derived: Future[T], fn: Callable[[], T]) -> None:
    if not derived.set_running_or_notify_cancel():
        return
    try:
        derived.set_result(fn())
    except BaseException as e:
        derived.set_exception(e)


def transform[T, R](source: Future[T], fn: Callable[[T], R]) -> Future[R]:
    """Map the success value of ``source`` with ``fn``."""
    derived: Future[R] = Future()

    def on_done(f: Future[T]) -> None:
        if f.cancelled():
            derived.cancel()
            return
        error = f.exception()
        if error is not None:
            if derived.set_running_or_notify_cancel():
                derived.set_exception(error)
            return
        _settle(derived, lambda: fn(f.result()))

    _link_cancel(derived, source)
    source.add_done_callback(on_done)
    return derived


def recover[T](source: Future[T], parser: ExceptionParser[T]) -> Future[T]:
    """Replace a failure of ``source`` with the parser's value.

    If the parser raises, the derived future fails with that error.
    Cancellation is never passed to the parser.
    """
    derived: Future[T] = Future()

    def on_done(f: Future[T]) -> None:
        if f.cancelled():
            derived.cancel()
            return
        error = f.exception()
        if error is None:
            _settle(derived, f.result)
            return
        if isinstance(error, CancelledError):
            if derived.set_running_or_notify_cancel():
                derived.set_exception(error)
            return
        _settle(derived, lambda: parser(error))

    _link_cancel(derived, source)
    source.add_done_callback(on_done)
    return derived


__all__ = [
    "ExceptionParser",
    "immediate",
    "immediate_failed",
    "recover",
    "transform",
]
