"""Internal machinery: event loop, HTTP transport, signing, caches."""

from .auth import Signer, SigV4Signer
from .cache import LoadingCache
from .http import HttpTransport, is_retryable
from .loop import EventLoopThread

__all__ = [
    "EventLoopThread",
    "HttpTransport",
    "LoadingCache",
    "SigV4Signer",
    "Signer",
    "is_retryable",
]
