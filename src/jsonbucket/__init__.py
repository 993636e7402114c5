"""jsonbucket: record persistence on S3-compatible buckets over signed HTTP."""

__version__ = "0.1.0"

from jsonbucket.bridge import BridgeStatistics, CloudStorageBridge, JsonBridge, open_bridge
from jsonbucket.bucket import BucketLifecycle
from jsonbucket.codec import JsonRecordCodec, RecordCodec
from jsonbucket.config import BucketConfig, load_config, parse_storage_uri
from jsonbucket.errors import (
    ConfigurationError,
    JsonBucketError,
    MalformedResponseError,
    ObjectNotFoundError,
    RedirectUnsupportedError,
    StoreError,
)
from jsonbucket.http import Outcome, classify
from jsonbucket.listing import ListingEntry, parse_xml_listing
from jsonbucket.model import (
    FieldMapping,
    IdentityKind,
    Record,
    TypeMapping,
    VersionStrategy,
)
from jsonbucket.signing import AWS_REALM, GOOGLE_REALM, HmacRealm, Realm, RequestSigner, sign

__all__ = [
    "__version__",
    "BucketConfig",
    "load_config",
    "parse_storage_uri",
    "JsonBridge",
    "CloudStorageBridge",
    "open_bridge",
    "BridgeStatistics",
    "BucketLifecycle",
    "RecordCodec",
    "JsonRecordCodec",
    "Record",
    "TypeMapping",
    "FieldMapping",
    "IdentityKind",
    "VersionStrategy",
    "ListingEntry",
    "parse_xml_listing",
    "Outcome",
    "classify",
    "Realm",
    "HmacRealm",
    "AWS_REALM",
    "GOOGLE_REALM",
    "RequestSigner",
    "sign",
    "JsonBucketError",
    "ConfigurationError",
    "ObjectNotFoundError",
    "StoreError",
    "RedirectUnsupportedError",
    "MalformedResponseError",
]
