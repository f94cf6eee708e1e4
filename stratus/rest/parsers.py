"""Exception parsers: turn selected faults into benign return values.

A parser receives the fault raised while building or executing a request
and either returns a substitute value or re-raises.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from stratus.errors import EC2Error, ResourceNotFoundError

from .futures import ExceptionParser


def is_not_found(error: BaseException) -> bool:
    """True for HTTP 404s and provider ``*.NotFound`` or ``*.Unknown`` error codes."""
    match error:
        case ResourceNotFoundError():
            return True
        case EC2Error(code=code):
            return code.endswith((".NotFound", ".Unknown")) or ".NotFound." in code
        case _:
            return False


def return_on[T](value: T, predicate: Callable[[BaseException], bool]) -> ExceptionParser[T]:
    """Build a parser returning ``value`` when ``predicate`` matches, re-raising otherwise."""

    def parse(error: BaseException) -> T:
        if predicate(error):
            return value
        raise error

    parse.__name__ = f"return_{value!r}_on_{getattr(predicate, '__name__', 'match')}"
    return parse


def _codes(*codes: str) -> Callable[[BaseException], bool]:
    def matches(error: BaseException) -> bool:
        return isinstance(error, EC2Error) and error.code in codes

    matches.__name__ = "_or_".join(codes)
    return matches


def return_on_codes[T](value: T, *codes: str) -> ExceptionParser[T]:
    """Return ``value`` for the given provider error codes."""
    return return_on(value, _codes(*codes))


return_none_on_not_found: ExceptionParser[Any] = return_on(None, is_not_found)
return_false_on_not_found: ExceptionParser[bool] = return_on(False, is_not_found)
return_true_on_not_found: ExceptionParser[bool] = return_on(True, is_not_found)
return_empty_on_not_found: ExceptionParser[tuple[Any, ...]] = return_on((), is_not_found)


__all__ = [
    "is_not_found",
    "return_empty_on_not_found",
    "return_false_on_not_found",
    "return_none_on_not_found",
    "return_on",
    "return_on_codes",
    "return_true_on_not_found",
]
