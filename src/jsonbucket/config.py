"""Configuration for jsonbucket clients."""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from typing import Any
from urllib.parse import urlparse

import yaml

from jsonbucket.errors import ConfigurationError

ENV_PREFIX = "JSONBUCKET_"

# URI scheme prefix -> (realm, bridge variant)
_SCHEMES: dict[str, tuple[str, str]] = {
    "s3": ("AWS", "cloud"),
    "gs": ("GOOG1", "cloud"),
    "json": ("", "json"),
}


@dataclass(frozen=True)
class BucketConfig:
    """Read-only connection settings shared by every call of a client."""

    base_url: str
    bucket: str = ""
    access_key: str = ""
    secret_key: str = ""
    realm: str = "AWS"
    connect_timeout_s: float = 10.0
    read_timeout_s: float = 10.0
    send_host_header: bool = True
    variant: str = "cloud"
    read_only: bool = False

    @property
    def timeout(self) -> tuple[float, float]:
        return (self.connect_timeout_s, self.read_timeout_s)

    @property
    def host(self) -> str:
        return urlparse(self.base_url).netloc

    def url_for(self, path: str) -> str:
        """Join the base URL and a request path (which may carry a query)."""
        return self.base_url.rstrip("/") + "/" + path.lstrip("/")

    def validate(self) -> BucketConfig:
        parsed = urlparse(self.base_url)
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            raise ConfigurationError(f"Invalid base URL: {self.base_url!r}")
        if self.variant not in {"cloud", "json"}:
            raise ConfigurationError(f"Unknown bridge variant '{self.variant}'")
        if self.variant == "cloud":
            missing = [
                name for name in ("bucket", "access_key", "secret_key") if not getattr(self, name)
            ]
            if missing:
                raise ConfigurationError(
                    f"Cloud storage configuration is missing: {', '.join(missing)}"
                )
        if self.connect_timeout_s <= 0 or self.read_timeout_s <= 0:
            raise ConfigurationError("Timeouts must be positive")
        return self

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None, **overrides: Any) -> BucketConfig:
        """Build a config from ``JSONBUCKET_*`` environment variables."""
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}
        uri = env.get(f"{ENV_PREFIX}STORAGE_URI")
        if uri:
            values.update(storage_uri_values(uri))
        for f in fields(cls):
            raw = env.get(ENV_PREFIX + f.name.upper())
            if raw is None:
                continue
            values[f.name] = _coerce(f.name, raw)
        values.update({k: v for k, v in overrides.items() if v is not None})
        if "base_url" not in values:
            raise ConfigurationError(f"{ENV_PREFIX}BASE_URL or {ENV_PREFIX}STORAGE_URI is not set")
        return cls(**values)

    def with_overrides(self, **overrides: Any) -> BucketConfig:
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


def _coerce(name: str, raw: Any) -> Any:
    if name in {"connect_timeout_s", "read_timeout_s"}:
        try:
            return float(raw)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid value for {name}: {raw!r}") from e
    if name in {"send_host_header", "read_only"}:
        if isinstance(raw, bool):
            return raw
        return str(raw).strip().lower() in {"1", "true", "yes", "on"}
    return str(raw)


def storage_uri_values(uri: str) -> dict[str, Any]:
    parsed = urlparse(uri)
    scheme, _, transport = parsed.scheme.partition("+")
    if scheme not in _SCHEMES or transport not in {"http", "https"}:
        raise ConfigurationError(
            f"Unsupported storage URI scheme '{parsed.scheme}' for '{uri}'"
        )
    if not parsed.netloc:
        raise ConfigurationError(f"Storage URI has no host: '{uri}'")
    realm, variant = _SCHEMES[scheme]
    bucket = parsed.path.strip("/")
    values: dict[str, Any] = {
        "base_url": f"{transport}://{parsed.netloc}",
        "variant": variant,
    }
    if variant == "cloud":
        if not bucket:
            raise ConfigurationError(f"Storage URI has no bucket: '{uri}'")
        values["bucket"] = bucket
        values["realm"] = realm
    elif bucket:
        values["base_url"] = f"{transport}://{parsed.netloc}/{bucket}"
    return values


def parse_storage_uri(uri: str, **overrides: Any) -> BucketConfig:
    """Resolve ``s3+http://host/bucket``-style URIs into a config.

    ``s3+`` selects the AWS realm, ``gs+`` the Google realm, and ``json+``
    the generic JSON variant, where the path is kept as part of the base URL.
    """
    values = storage_uri_values(uri)
    values.update({k: v for k, v in overrides.items() if v is not None})
    return BucketConfig(**values)


def load_config(path: str, **overrides: Any) -> BucketConfig:
    """Load a config from a YAML mapping, e.g. ``{storage_uri: ..., access_key: ...}``."""
    try:
        with open(path, encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
    except OSError as e:
        raise ConfigurationError(f"Cannot read config file '{path}': {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in config file '{path}': {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file '{path}' must contain a mapping")

    known = {f.name for f in fields(BucketConfig)}
    values: dict[str, Any] = {}
    uri = data.pop("storage_uri", None)
    if uri:
        values.update(storage_uri_values(str(uri)))
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigurationError(f"Unknown config keys in '{path}': {unknown}")
    for name, raw in data.items():
        values[name] = _coerce(name, raw)
    values.update({k: v for k, v in overrides.items() if v is not None})
    if "base_url" not in values:
        raise ConfigurationError(f"Config file '{path}' sets neither base_url nor storage_uri")
    return BucketConfig(**values)
