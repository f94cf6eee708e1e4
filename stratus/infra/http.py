from __future__ import annotations

import asyncio
from typing import Any

import aiohttp
from loguru import logger
from tenacity import (
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from stratus.config import ClientConfig
from stratus.errors import HttpResponseError, ResourceNotFoundError, TransportError
from stratus.rest.request import Request, Response

RETRYABLE_STATUS = frozenset({429, 500, 502, 503, 504})


def is_retryable(exc: BaseException, idempotent: bool = True) -> bool:
    """Whether to resend after ``exc``; non-idempotent requests only on 429."""
    match exc:
        case HttpResponseError(status=429):
            return True
        case HttpResponseError(status=status):
            return idempotent and status in RETRYABLE_STATUS
        case TransportError():
            return idempotent
        case _:
            return False


# ─── Transport ───────────────────────────────────────────────────────


class HttpTransport:
    """Executes ``Request`` descriptors over a shared aiohttp session.

    Error statuses raise ``HttpResponseError`` (``ResourceNotFoundError`` for
    404). Connection failures raise ``TransportError``. Both are retried with
    exponential backoff when retryable. Requests marked not ``idempotent``
    (e.g. ``CreateKeyPair``) are only retried on 429, since a 5xx or a
    dropped connection may follow a request the server already applied.
    """

    def __init__(self, config: ClientConfig | None = None) -> None:
        self._config = config or ClientConfig()
        self._timeout = aiohttp.ClientTimeout(total=self._config.request_timeout)
        self._session: aiohttp.ClientSession | None = None
        self._log = logger.bind(component="http")

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(limit=self._config.max_connections)
            self._session = aiohttp.ClientSession(timeout=self._timeout, connector=connector)
        return self._session

    async def execute(self, request: Request) -> Response:
        @retry(
            stop=stop_after_attempt(max(1, self._config.max_retries)),
            wait=wait_exponential(multiplier=self._config.retry_base_delay, max=30),
            retry=retry_if_exception(lambda e: is_retryable(e, request.idempotent)),
            before_sleep=lambda state: self._log.debug(
                "Retrying {line} (attempt {n})",
                line=request.request_line, n=state.attempt_number + 1,
            ),
            reraise=True,
        )
        async def _send_with_retry() -> Response:
            return await self._send(request)

        return await _send_with_retry()

    async def _send(self, request: Request) -> Response:
        session = await self._ensure_session()
        self._log.debug("{method} {url}", method=request.method, url=request.url)

        headers = dict(request.headers)
        if request.form is not None:
            headers.setdefault("Content-Type", "application/x-www-form-urlencoded; charset=utf-8")

        try:
            async with session.request(
                request.method,
                request.url,
                headers=headers,
                params=list(request.params) or None,
                data=request.payload(),
            ) as resp:
                return await self._parse(request, resp)
        except aiohttp.ClientResponseError as e:
            raise HttpResponseError(e.status, e.message, request_line=request.request_line) from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransportError(
                f"{request.request_line} failed: {e or type(e).__name__}",
                request_line=request.request_line,
            ) from e

    async def _parse(self, request: Request, resp: aiohttp.ClientResponse) -> Response:
        body = await resp.read()
        if resp.status >= 400:
            text = body.decode("utf-8", errors="replace")
            self._log.warning(
                "HTTP {status} from {url}: {body}",
                status=resp.status, url=str(resp.url), body=text[:500],
            )
            error = ResourceNotFoundError if resp.status == 404 else HttpResponseError
            raise error(resp.status, text, request_line=request.request_line)
        return Response(status=resp.status, headers=dict(resp.headers), body=body, request=request)

    # ─── Lifecycle ───────────────────────────────────────────────────

    async def close(self) -> None:
        if self._session and not self._session.closed:
            self._log.debug("Closing HTTP session")
            await self._session.close()

    async def __aenter__(self) -> HttpTransport:
        await self._ensure_session()
        return self

    async def __aexit__(self, *_: Any) -> None:
        await self.close()
