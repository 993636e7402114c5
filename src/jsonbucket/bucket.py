"""Idempotent creation of the target bucket."""

from __future__ import annotations

import logging

from jsonbucket.config import BucketConfig
from jsonbucket.errors import RedirectUnsupportedError, StoreError
from jsonbucket.http import HttpTransport
from jsonbucket.signing import RequestSigner

logger = logging.getLogger(__name__)

# BucketAlreadyOwnedByYou
_ALREADY_OWNED = 409


class BucketLifecycle:
    def __init__(
        self,
        config: BucketConfig,
        transport: HttpTransport | None = None,
        signer: RequestSigner | None = None,
    ) -> None:
        self._config = config
        self._transport = transport or HttpTransport(config)
        self._signer = signer or RequestSigner(config)

    def ensure_bucket(self) -> None:
        """PUT the bucket root. A 409 means the caller already owns it."""
        request = self._signer.build("PUT", "/", content_length=0)
        logger.debug("Ensuring bucket exists", extra={"bucket": self._config.bucket})
        response = self._transport.send("ensure_bucket", request)
        code = response.status
        if code == _ALREADY_OWNED or 200 <= code < 300:
            return
        if code >= 400:
            raise StoreError(
                "ensure_bucket",
                f"HTTP Error code: {code} {response.reason} error: {response.text}",
                verb="PUT",
                url=request.url,
                status=code,
                reason=response.reason,
                body=response.text,
            )
        if code >= 300:
            raise RedirectUnsupportedError(
                "ensure_bucket", verb="PUT", url=request.url, status=code, reason=response.reason
            )
        raise StoreError(
            "ensure_bucket",
            f"Unexpected HTTP status {code}",
            verb="PUT",
            url=request.url,
            status=code,
            reason=response.reason,
        )
