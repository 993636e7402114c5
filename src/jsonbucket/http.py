"""HTTP status classification and the per-call transport."""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field

import requests

from jsonbucket.config import BucketConfig
from jsonbucket.errors import ObjectNotFoundError, RedirectUnsupportedError, StoreError
from jsonbucket.signing import SignedRequest

logger = logging.getLogger(__name__)


class Outcome(enum.Enum):
    SUCCESS = "success"
    NOT_FOUND = "not_found"
    REDIRECT_UNSUPPORTED = "redirect_unsupported"
    STORE_ERROR = "store_error"


def classify(status: int) -> Outcome:
    """Map an HTTP status code onto the outcome the bridge acts on."""
    if status == 404:
        return Outcome.NOT_FOUND
    if 200 <= status < 300:
        return Outcome.SUCCESS
    if 300 <= status < 400:
        return Outcome.REDIRECT_UNSUPPORTED
    return Outcome.STORE_ERROR


@dataclass
class TransportResponse:
    status: int
    reason: str = ""
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b""

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    @property
    def content_type(self) -> str:
        for name, value in self.headers.items():
            if name.lower() == "content-type":
                return value
        return ""


def check_response(
    operation: str,
    request: SignedRequest,
    response: TransportResponse,
    *,
    not_found: bool = True,
) -> None:
    """Raise the error matching ``response``; return quietly on 2xx.

    With ``not_found=False`` a 404 is reported as a plain store error, which
    is what writes want.
    """
    outcome = classify(response.status)
    if outcome is Outcome.SUCCESS:
        return
    if outcome is Outcome.NOT_FOUND and not_found:
        raise ObjectNotFoundError(operation, request.url)
    if outcome is Outcome.REDIRECT_UNSUPPORTED:
        raise RedirectUnsupportedError(
            operation,
            verb=request.method,
            url=request.url,
            status=response.status,
            reason=response.reason,
        )
    raise StoreError(
        operation,
        f"Error on URL: '{request.url}' Request Method: {request.method} "
        f"HTTP Error code: {response.status} {response.reason} error: {response.text}",
        verb=request.method,
        url=request.url,
        status=response.status,
        reason=response.reason,
        body=response.text,
    )


class HttpTransport:
    """Sends one request over a session opened for that request alone.

    Sessions are never shared between calls, so no connection is reused.
    Redirects are not followed and both timeouts come from the config.
    """

    def __init__(
        self,
        config: BucketConfig,
        session_factory: Callable[[], requests.Session] = requests.Session,
    ) -> None:
        self._config = config
        self._session_factory = session_factory

    def send(self, operation: str, request: SignedRequest) -> TransportResponse:
        logger.debug(
            "Sending request",
            extra={"operation": operation, "verb": request.method, "url": request.url},
        )
        try:
            with self._session_factory() as session:
                resp = session.request(
                    request.method,
                    request.url,
                    headers=request.headers,
                    data=request.body,
                    timeout=self._config.timeout,
                    allow_redirects=False,
                    stream=request.method == "HEAD",
                )
                try:
                    body = b"" if request.method == "HEAD" else resp.content
                    result = TransportResponse(
                        status=resp.status_code,
                        reason=resp.reason or "",
                        headers=dict(resp.headers),
                        body=body or b"",
                    )
                finally:
                    resp.close()
        except requests.RequestException as e:
            raise StoreError(
                operation,
                f"{request.method} {request.url} failed: {e}",
                verb=request.method,
                url=request.url,
            ) from e
        logger.debug(
            "Received response",
            extra={"operation": operation, "url": request.url, "status": result.status},
        )
        return result
