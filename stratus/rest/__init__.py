"""Async invocation core: declared operations dispatched as futures."""

from .request import Invocation, Request, Response
from .futures import ExceptionParser, immediate, immediate_failed, recover, transform
from .operation import BoundOperation, Operation, RequestBuilder, RequestFilter, ResponseTransformer
from .dispatcher import Dispatcher, ErrorHandler, Executor, RequestExecutor, Transport
from .client import AsyncClient
from .builders import form_request, json_request, numbered
from .parsers import (
    is_not_found,
    return_empty_on_not_found,
    return_false_on_not_found,
    return_none_on_not_found,
    return_on,
    return_on_codes,
    return_true_on_not_found,
)
from .transformers import parse_json, parse_text, return_none, return_status, return_true

__all__ = [
    "AsyncClient",
    "BoundOperation",
    "Dispatcher",
    "ErrorHandler",
    "ExceptionParser",
    "Executor",
    "Invocation",
    "Operation",
    "Request",
    "RequestBuilder",
    "RequestExecutor",
    "RequestFilter",
    "Response",
    "ResponseTransformer",
    "Transport",
    "form_request",
    "immediate",
    "immediate_failed",
    "is_not_found",
    "json_request",
    "numbered",
    "parse_json",
    "parse_text",
    "recover",
    "return_empty_on_not_found",
    "return_false_on_not_found",
    "return_none",
    "return_none_on_not_found",
    "return_on",
    "return_on_codes",
    "return_status",
    "return_true",
    "return_true_on_not_found",
    "transform",
]
