"""Persistence bridge: maps record lifecycle operations onto HTTP calls.

``JsonBridge`` talks to a generic JSON REST store (inserts are POSTed,
listings are JSON arrays). ``CloudStorageBridge`` talks to an S3-compatible
bucket: every call is signed, the bucket is created on first write, inserts
are PUT, and listings may come back as the bucket's XML key listing.

Every operation opens its own HTTP session and closes it before returning,
whatever the outcome. Nothing is retried.
"""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

from jsonbucket.bucket import BucketLifecycle
from jsonbucket.codec import JsonDocument, JsonRecordCodec, RecordCodec
from jsonbucket.config import BucketConfig
from jsonbucket.errors import ConfigurationError, MalformedResponseError, ObjectNotFoundError
from jsonbucket.http import HttpTransport, TransportResponse, check_response
from jsonbucket.listing import parse_json_listing, parse_listing
from jsonbucket.model import (
    IdentityKind,
    Record,
    TypeMapping,
    initial_version,
    next_version,
)
from jsonbucket.signing import RequestSigner, SignedRequest, http_date

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json"

RegisterCallback = Callable[[TypeMapping], None]


@dataclass
class BridgeStatistics:
    """Operations a bridge has completed. Failed calls are not counted."""

    inserts: int = 0
    updates: int = 0
    deletes: int = 0
    fetches: int = 0
    locates: int = 0
    lists: int = 0

    @property
    def writes(self) -> int:
        return self.inserts + self.updates + self.deletes

    @property
    def reads(self) -> int:
        return self.fetches + self.locates + self.lists


def object_path_for(base_path: str, key: str) -> str:
    return f"{quote(base_path.strip('/'), safe='/')}/{quote(key, safe='')}"


def listing_path_for(base_path: str, prefix: str | None = None) -> str:
    """``<base>?prefix=<prefix>``; the prefix defaults to the base path itself."""
    base = base_path.strip("/")
    return f"{quote(base, safe='/')}?prefix={quote(prefix or base, safe='/')}"


class JsonBridge:
    """CRUD bridge for a generic JSON-over-HTTP store."""

    insert_verb = "POST"

    def __init__(
        self,
        config: BucketConfig,
        *,
        codec: RecordCodec | None = None,
        register_type: RegisterCallback | None = None,
        transport: HttpTransport | None = None,
    ) -> None:
        self._config = config
        self._codec = codec or JsonRecordCodec()
        self._register_type = register_type
        self._transport = transport or HttpTransport(config)
        self._registered: set[str] = set()
        self._lock = threading.Lock()
        self._statistics = BridgeStatistics()
        self._stats_lock = threading.Lock()

    @property
    def config(self) -> BucketConfig:
        return self._config

    @property
    def statistics(self) -> BridgeStatistics:
        return self._statistics

    def _count(self, counter: str) -> None:
        with self._stats_lock:
            setattr(self._statistics, counter, getattr(self._statistics, counter) + 1)

    def _check_writable(self, operation: str) -> None:
        if self._config.read_only:
            raise ConfigurationError(f"Store is read-only; {operation} is not allowed")

    # --- paths ---------------------------------------------------------

    def base_path(self, mapping: TypeMapping) -> str:
        return (mapping.url or mapping.type_name).strip("/")

    def key_text(self, record: Record) -> str:
        mapping = record.mapping
        if mapping.identity_kind is IdentityKind.DATASTORE:
            if record.identity_value is None:
                raise ConfigurationError(
                    f"Record of '{mapping.type_name}' has no datastore identity"
                )
            return str(record.identity_value)
        pk = mapping.leading_primary_key
        assert pk is not None
        encoded = self._codec.encode(mapping, record.fields, [pk.name]).get(pk.column_name)
        if encoded is None:
            raise ConfigurationError(
                f"Record of '{mapping.type_name}' has no value for primary key '{pk.name}'"
            )
        return str(encoded)

    def storage_key(self, record: Record) -> str:
        """``<base path>/<key>``, with the key escaped as a single path segment."""
        return object_path_for(self.base_path(record.mapping), self.key_text(record))

    def listing_path(self, mapping: TypeMapping, prefix: str | None = None) -> str:
        return listing_path_for(self.base_path(mapping), prefix)

    # --- registration --------------------------------------------------

    def register(self, mapping: TypeMapping) -> None:
        """Register ``mapping`` with the host and the backend, once per type."""
        with self._lock:
            if mapping.type_name in self._registered:
                return
            if self._register_type is not None:
                self._register_type(mapping)
            self._prepare_backend(mapping)
            self._registered.add(mapping.type_name)

    def is_registered(self, mapping: TypeMapping) -> bool:
        return mapping.type_name in self._registered

    def _prepare_backend(self, mapping: TypeMapping) -> None:
        pass

    # --- transport -----------------------------------------------------

    def _build_request(
        self, verb: str, path: str, *, body: bytes | None = None, content_type: str = ""
    ) -> SignedRequest:
        headers = {"Date": http_date()}
        if content_type:
            headers["Content-Type"] = content_type
        if body is not None:
            headers["Content-Length"] = str(len(body))
        return SignedRequest(
            method=verb, url=self._config.url_for(path), path=path, headers=headers, body=body
        )

    def _call(
        self,
        operation: str,
        verb: str,
        path: str,
        *,
        document: JsonDocument | None = None,
    ) -> tuple[SignedRequest, TransportResponse]:
        body = None
        content_type = ""
        if document is not None:
            body = json.dumps(document).encode("utf-8")
            content_type = JSON_CONTENT_TYPE
        request = self._build_request(verb, path, body=body, content_type=content_type)
        return request, self._transport.send(operation, request)

    # --- documents -----------------------------------------------------

    def identity_document(self, record: Record) -> JsonDocument:
        """Document holding only the identity of ``record``."""
        mapping = record.mapping
        if mapping.identity_kind is IdentityKind.DATASTORE:
            return {mapping.datastore_id_column: record.identity_value}
        return self._codec.encode(
            mapping, record.fields, [f.name for f in mapping.primary_key_fields]
        )

    def _version_from_document(self, mapping: TypeMapping, document: JsonDocument) -> int | None:
        if not mapping.is_versioned:
            return None
        raw = document.get(mapping.version_column)
        if isinstance(raw, bool):
            return None
        try:
            return int(raw)
        except (TypeError, ValueError):
            return None

    def _record_from_document(self, mapping: TypeMapping, document: JsonDocument) -> Record:
        values = self._codec.decode(mapping, document, [f.name for f in mapping.fields])
        identity_value = None
        if mapping.identity_kind is IdentityKind.DATASTORE:
            if mapping.datastore_id_column not in document:
                raise MalformedResponseError(
                    "list",
                    f"Listed '{mapping.type_name}' document has no "
                    f"'{mapping.datastore_id_column}' column",
                )
            identity_value = document[mapping.datastore_id_column]
        else:
            pk = mapping.leading_primary_key
            assert pk is not None
            if values.get(pk.name) is None:
                raise MalformedResponseError(
                    "list",
                    f"Listed '{mapping.type_name}' document has no '{pk.column_name}' column",
                )
        return Record(
            mapping=mapping,
            fields=values,
            identity_value=identity_value,
            version=self._version_from_document(mapping, document),
        )

    def _parse_listing(
        self, identity_column: str, response: TransportResponse
    ) -> list[JsonDocument]:
        if not response.body.strip():
            return []
        return parse_json_listing(response.body)

    # --- documents by path ---------------------------------------------

    def write_document(
        self,
        path: str,
        document: JsonDocument,
        *,
        verb: str = "PUT",
        operation: str = "write",
    ) -> None:
        self._check_writable(operation)
        request, response = self._call(operation, verb, path, document=document)
        check_response(operation, request, response, not_found=False)

    def read_document(self, path: str, *, operation: str = "read") -> JsonDocument:
        request, response = self._call(operation, "GET", path)
        check_response(operation, request, response)
        try:
            document = json.loads(response.body)
        except ValueError as e:
            raise MalformedResponseError(
                operation,
                f"Invalid JSON document at {request.url}: {e}",
                verb="GET",
                url=request.url,
            ) from e
        if not isinstance(document, dict):
            raise MalformedResponseError(
                operation,
                f"Document at {request.url} is not a JSON object",
                verb="GET",
                url=request.url,
            )
        return document

    def remove(self, path: str, *, operation: str = "delete") -> None:
        self._check_writable(operation)
        request, response = self._call(operation, "DELETE", path)
        check_response(operation, request, response)

    def head(self, path: str, *, operation: str = "locate") -> None:
        request, response = self._call(operation, "HEAD", path)
        check_response(operation, request, response)

    def list_documents(
        self, path: str, *, identity_column: str, operation: str = "list"
    ) -> list[JsonDocument]:
        """Documents returned by a listing request; a 404 yields ``[]``."""
        request, response = self._call(operation, "GET", path)
        if response.status == 404:
            return []
        check_response(operation, request, response)
        documents = self._parse_listing(identity_column, response)
        logger.debug("Listed documents", extra={"path": path, "count": len(documents)})
        return documents

    # --- record operations ---------------------------------------------

    def insert(self, record: Record) -> None:
        mapping = record.mapping
        self._check_writable("insert")
        self.register(mapping)

        document: JsonDocument = {}
        if mapping.identity_kind is IdentityKind.DATASTORE:
            if record.identity_value is None:
                raise ConfigurationError(
                    f"Record of '{mapping.type_name}' has no datastore identity"
                )
            document[mapping.datastore_id_column] = record.identity_value
        if mapping.is_versioned:
            version = initial_version(mapping.version_strategy)
            record.version = version
            if mapping.version_field is not None:
                record.fields[mapping.version_field] = version
            document[mapping.version_column] = version
        document.update(
            self._codec.encode(mapping, record.fields, [f.name for f in mapping.fields])
        )

        path = self.storage_key(record)
        logger.debug(
            "Inserting record",
            extra={"type_name": mapping.type_name, "path": path, "version": record.version},
        )
        self.write_document(path, document, verb=self.insert_verb, operation="insert")
        self._count("inserts")

    def update(self, record: Record, changed_fields: Iterable[str]) -> None:
        """Write the changed fields (plus version and primary key) of ``record``.

        The in-memory version is advanced before the write is attempted; after
        a failed update the record must be reloaded.
        """
        mapping = record.mapping
        self._check_writable("update")
        self.register(mapping)

        names = list(changed_fields)
        document: JsonDocument = {}
        if mapping.is_versioned:
            version = next_version(mapping.version_strategy, record.version)
            if mapping.version_field is not None:
                record.fields[mapping.version_field] = version
                if mapping.version_field not in names:
                    names.append(mapping.version_field)
            record.version = version
            document[mapping.version_column] = version
        document.update(self._codec.encode(mapping, record.fields, names))
        document.update(self.identity_document(record))

        path = self.storage_key(record)
        logger.debug(
            "Updating record",
            extra={"type_name": mapping.type_name, "path": path, "fields": names},
        )
        self.write_document(path, document, verb="PUT", operation="update")
        self._count("updates")

    def delete(self, record: Record) -> None:
        self._check_writable("delete")
        path = self.storage_key(record)
        logger.debug("Deleting record", extra={"type_name": record.type_name, "path": path})
        self.remove(path, operation="delete")
        self._count("deletes")

    def fetch(self, record: Record, fields: Iterable[str] | None = None) -> Record:
        """Load ``fields`` (all fields by default) of ``record`` from the store."""
        mapping = record.mapping
        names = [f.name for f in mapping.fields] if fields is None else list(fields)
        # GET carries no body; the identity document is only logged.
        identity = self.identity_document(record)
        path = self.storage_key(record)
        logger.debug(
            "Fetching record",
            extra={
                "type_name": mapping.type_name,
                "path": path,
                "identity": identity,
                "fields": names,
            },
        )
        document = self.read_document(path, operation="fetch")
        record.fields.update(self._codec.decode(mapping, document, names))
        version = self._version_from_document(mapping, document)
        if version is not None:
            record.version = version
        self._count("fetches")
        return record

    def locate(self, record: Record) -> None:
        """Check that ``record`` exists; raise ObjectNotFoundError otherwise."""
        self.head(self.storage_key(record), operation="locate")
        self._count("locates")

    def exists(self, record: Record) -> bool:
        try:
            self.locate(record)
        except ObjectNotFoundError:
            return False
        return True

    def list(
        self,
        mapping: TypeMapping,
        prefix: str | None = None,
        include_subtypes: bool = False,
    ) -> list[Record]:
        """All records stored under ``prefix`` (the type's base path by default).

        A 404 means nothing matches and yields an empty list. Datastore
        identities read from an XML key listing are key text (``"17"``);
        a JSON listing keeps the stored JSON value (``17``).
        """
        if include_subtypes:
            logger.warning(
                "Subtype listing is not supported; listing only the requested type",
                extra={"type_name": mapping.type_name},
            )
        documents = self.list_documents(
            self.listing_path(mapping, prefix),
            identity_column=mapping.identity_column,
            operation="list",
        )
        records = [self._record_from_document(mapping, doc) for doc in documents]
        self._count("lists")
        return records


class CloudStorageBridge(JsonBridge):
    """Bridge for S3-compatible buckets addressed over plain HTTP."""

    insert_verb = "PUT"

    def __init__(
        self,
        config: BucketConfig,
        *,
        codec: RecordCodec | None = None,
        register_type: RegisterCallback | None = None,
        transport: HttpTransport | None = None,
        signer: RequestSigner | None = None,
    ) -> None:
        super().__init__(config, codec=codec, register_type=register_type, transport=transport)
        self._signer = signer or RequestSigner(config)
        self._bucket = BucketLifecycle(config, self._transport, self._signer)
        self._bucket_ready = False

    @property
    def signer(self) -> RequestSigner:
        return self._signer

    def ensure_bucket(self) -> None:
        self._check_writable("ensure_bucket")
        self._bucket.ensure_bucket()
        self._bucket_ready = True

    def _prepare_backend(self, mapping: TypeMapping) -> None:
        if not self._bucket_ready:
            self.ensure_bucket()

    def _build_request(
        self, verb: str, path: str, *, body: bytes | None = None, content_type: str = ""
    ) -> SignedRequest:
        return self._signer.build(verb, path, body=body, content_type=content_type)

    def _parse_listing(
        self, identity_column: str, response: TransportResponse
    ) -> list[JsonDocument]:
        return parse_listing(response.body, response.content_type, identity_column)


def open_bridge(config: BucketConfig, **kwargs: Any) -> JsonBridge:
    """Construct the bridge variant selected by ``config.variant``."""
    config.validate()
    if config.variant == "json":
        return JsonBridge(config, **kwargs)
    return CloudStorageBridge(config, **kwargs)
