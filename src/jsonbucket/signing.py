"""Canonical-string + HMAC request signing for S3-compatible backends.

The string to sign is::

    VERB \\n Content-MD5 \\n Content-Type \\n Date \\n /<bucket><path>

Content-MD5 is always signed as the empty string; the body is therefore not
covered by the signature. Backends validating the older HMAC scheme accept
this, and computing it would change what goes over the wire.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
from dataclasses import dataclass, field
from datetime import datetime
from email.utils import format_datetime, formatdate
from typing import Protocol, runtime_checkable

from jsonbucket.config import BucketConfig
from jsonbucket.errors import ConfigurationError


def http_date(now: datetime | None = None) -> str:
    """Return an RFC-1123 date (``Tue, 15 Nov 1994 08:12:31 GMT``)."""
    if now is None:
        return formatdate(usegmt=True)
    return format_datetime(now, usegmt=True)


def canonical_resource(bucket: str, path: str) -> str:
    path = path.split("?", 1)[0]
    if not path.startswith("/"):
        path = "/" + path
    return "/" + bucket + path


def string_to_sign(
    verb: str, content_md5: str, content_type: str, date: str, resource: str
) -> str:
    return "\n".join([verb, content_md5, content_type, date, resource])


def hmac_signature(secret_key: str, message: str) -> str:
    digest = hmac.new(secret_key.encode("utf-8"), message.encode("utf-8"), hashlib.sha1).digest()
    return base64.b64encode(digest).decode("ascii")


@runtime_checkable
class Realm(Protocol):
    """A signing scheme, identified by the prefix of the Authorization header."""

    name: str

    def compute_auth_header(
        self,
        *,
        verb: str,
        bucket: str,
        path: str,
        content_type: str,
        content_md5: str,
        date: str,
        access_key: str,
        secret_key: str,
    ) -> str: ...


@dataclass(frozen=True)
class HmacRealm:
    """HMAC-SHA1 signing shared by the AWS and Google interoperable APIs."""

    name: str

    def compute_auth_header(
        self,
        *,
        verb: str,
        bucket: str,
        path: str,
        content_type: str,
        content_md5: str,
        date: str,
        access_key: str,
        secret_key: str,
    ) -> str:
        message = string_to_sign(
            verb, content_md5, content_type, date, canonical_resource(bucket, path)
        )
        return f"{self.name} {access_key}:{hmac_signature(secret_key, message)}"


AWS_REALM = HmacRealm("AWS")
GOOGLE_REALM = HmacRealm("GOOG1")

_REALMS: dict[str, Realm] = {r.name: r for r in (AWS_REALM, GOOGLE_REALM)}


def realm_for_name(name: str) -> Realm:
    try:
        return _REALMS[name]
    except KeyError:
        raise ConfigurationError(
            f"Unknown signing realm '{name}'. Known realms: {sorted(_REALMS)}"
        ) from None


def sign(
    verb: str,
    bucket: str,
    path: str,
    content_type: str,
    content_md5: str,
    date: str,
    secret_key: str,
    access_key: str,
    realm: Realm | str = AWS_REALM,
) -> str:
    """Return the Authorization header value for one request."""
    if isinstance(realm, str):
        realm = realm_for_name(realm)
    return realm.compute_auth_header(
        verb=verb,
        bucket=bucket,
        path=path,
        content_type=content_type,
        content_md5=content_md5,
        date=date,
        access_key=access_key,
        secret_key=secret_key,
    )


@dataclass
class SignedRequest:
    """One outgoing HTTP call. Built per call and never reused."""

    method: str
    url: str
    path: str
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes | None = None


class RequestSigner:
    """Builds signed header sets for a configured bucket."""

    def __init__(self, config: BucketConfig, realm: Realm | None = None) -> None:
        self._config = config
        self.realm = realm or realm_for_name(config.realm)

    def headers_for(
        self,
        verb: str,
        path: str,
        *,
        content_type: str = "",
        content_length: int | None = None,
        date: str | None = None,
    ) -> dict[str, str]:
        # Date is generated once; the header and the signature must agree.
        date = date or http_date()
        headers: dict[str, str] = {"Date": date}
        if self._config.send_host_header:
            headers["Host"] = f"{self._config.bucket}.{self._config.host}"
        if content_type:
            headers["Content-Type"] = content_type
        if content_length is not None:
            headers["Content-Length"] = str(content_length)
        headers["Authorization"] = self.realm.compute_auth_header(
            verb=verb,
            bucket=self._config.bucket,
            path=path,
            content_type=content_type,
            content_md5="",
            date=date,
            access_key=self._config.access_key,
            secret_key=self._config.secret_key,
        )
        return headers

    def build(
        self,
        verb: str,
        path: str,
        *,
        body: bytes | None = None,
        content_type: str = "",
        content_length: int | None = None,
    ) -> SignedRequest:
        if body is not None:
            content_length = len(body)
        headers = self.headers_for(
            verb, path, content_type=content_type, content_length=content_length
        )
        return SignedRequest(
            method=verb,
            url=self._config.url_for(path),
            path=path,
            headers=headers,
            body=body,
        )
