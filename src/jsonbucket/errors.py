"""Structured error types for jsonbucket."""

from __future__ import annotations


class JsonBucketError(Exception):
    """Base error for all jsonbucket errors."""


class ConfigurationError(JsonBucketError):
    """Raised when client configuration or record metadata is unusable."""


class ObjectNotFoundError(JsonBucketError):
    """Raised when the backend answers 404 for a single-object operation."""

    def __init__(self, operation: str, url: str) -> None:
        self.operation = operation
        self.url = url
        super().__init__(f"Object not found during {operation}: {url}")


class StoreError(JsonBucketError):
    """Raised when a backend call fails.

    Covers HTTP 4xx/5xx answers other than 404, transport failures (timeouts
    included) and undecodable response bodies. The HTTP context is kept on
    the instance for diagnosis.
    """

    def __init__(
        self,
        operation: str,
        detail: str,
        *,
        verb: str | None = None,
        url: str | None = None,
        status: int | None = None,
        reason: str = "",
        body: str = "",
    ) -> None:
        self.operation = operation
        self.detail = detail
        self.verb = verb
        self.url = url
        self.status = status
        self.reason = reason
        self.body = body
        super().__init__(f"Store error during {operation}: {detail}")


class RedirectUnsupportedError(StoreError):
    """Raised for any 3xx answer. Redirects are never followed."""

    def __init__(
        self,
        operation: str,
        *,
        verb: str,
        url: str,
        status: int,
        reason: str = "",
    ) -> None:
        super().__init__(
            operation,
            f"Redirect not supported. HTTP {status} {reason}".rstrip(),
            verb=verb,
            url=url,
            status=status,
            reason=reason,
        )


class MalformedResponseError(StoreError):
    """Raised when a successful response body cannot be decoded."""
