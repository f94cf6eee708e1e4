"""Request signers applied while a request is being built."""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol, runtime_checkable

from botocore.auth import SigV4Auth
from botocore.awsrequest import AWSRequest
from botocore.credentials import Credentials, ReadOnlyCredentials
from botocore.session import Session as BotocoreSession

from stratus.rest.request import Request


@runtime_checkable
class Signer(Protocol):
    def __call__(self, request: Request) -> Request: ...


class SigV4Signer:
    """Signs requests with AWS Signature Version 4.

    Explicit keys take precedence; otherwise credentials come from botocore's
    default chain (environment, shared config, instance metadata).

    ``region_of`` picks the signing region per request for clients that talk
    to several regional endpoints; ``region`` is the fallback.
    """

    def __init__(
        self,
        service: str,
        region: str,
        *,
        access_key_id: str | None = None,
        secret_access_key: str | None = None,
        session_token: str | None = None,
        region_of: Callable[[Request], str | None] | None = None,
    ) -> None:
        self._service = service
        self._region = region
        self._region_of = region_of
        self._credentials: Credentials | None = (
            Credentials(access_key_id, secret_access_key, session_token)
            if access_key_id and secret_access_key
            else None
        )

    def _resolve_credentials(self) -> ReadOnlyCredentials:
        if self._credentials is None:
            found = BotocoreSession().get_credentials()
            if found is None:
                raise RuntimeError(
                    f"No AWS credentials found for {self._service} in {self._region}"
                )
            self._credentials = found
        return self._credentials.get_frozen_credentials()

    def __call__(self, request: Request) -> Request:
        frozen = self._resolve_credentials()
        aws_request = AWSRequest(
            method=request.method,
            url=request.url,
            data=request.payload(),
            params=dict(request.params),
            headers=dict(request.headers),
        )
        if request.form is not None:
            aws_request.headers["Content-Type"] = (
                "application/x-www-form-urlencoded; charset=utf-8"
            )
        credentials = Credentials(frozen.access_key, frozen.secret_key, frozen.token)
        region = (self._region_of(request) if self._region_of else None) or self._region
        SigV4Auth(credentials, self._service, region).add_auth(aws_request)
        return request.with_headers(dict(aws_request.headers.items()))
