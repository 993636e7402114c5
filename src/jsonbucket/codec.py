"""Conversion between record field values and JSON documents."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any, Protocol, runtime_checkable

from pydantic import TypeAdapter, ValidationError

from jsonbucket.errors import MalformedResponseError
from jsonbucket.model import FieldMapping, TypeMapping

# JSON values as stored: str | int | float | bool | None | list | dict
JsonDocument = dict[str, Any]


@runtime_checkable
class RecordCodec(Protocol):
    def encode(
        self, mapping: TypeMapping, values: dict[str, Any], names: Iterable[str]
    ) -> JsonDocument: ...

    def decode(
        self, mapping: TypeMapping, document: JsonDocument, names: Iterable[str]
    ) -> dict[str, Any]: ...


class JsonRecordCodec:
    """Codec driven by each field's annotation through pydantic adapters.

    Encoding dumps values in JSON mode (datetimes become ISO strings, and so
    on); decoding validates stored JSON back into the annotated type. Columns
    absent from a document are left out of the decoded result.
    """

    def __init__(self) -> None:
        self._adapters: dict[tuple[str, str], TypeAdapter[Any]] = {}

    def _adapter(self, mapping: TypeMapping, f: FieldMapping) -> TypeAdapter[Any]:
        cache_key = (mapping.type_name, f.name)
        adapter = self._adapters.get(cache_key)
        if adapter is None:
            adapter = TypeAdapter(f.annotation)
            self._adapters[cache_key] = adapter
        return adapter

    def encode(
        self, mapping: TypeMapping, values: dict[str, Any], names: Iterable[str]
    ) -> JsonDocument:
        document: JsonDocument = {}
        for name in names:
            f = mapping.get_field(name)
            if name not in values:
                continue
            value = values[name]
            if value is None:
                document[f.column_name] = None
                continue
            document[f.column_name] = self._adapter(mapping, f).dump_python(value, mode="json")
        return document

    def decode(
        self, mapping: TypeMapping, document: JsonDocument, names: Iterable[str]
    ) -> dict[str, Any]:
        values: dict[str, Any] = {}
        for name in names:
            f = mapping.get_field(name)
            if f.column_name not in document:
                continue
            raw = document[f.column_name]
            if raw is None:
                values[name] = None
                continue
            try:
                values[name] = self._adapter(mapping, f).validate_python(raw)
            except ValidationError as e:
                raise MalformedResponseError(
                    "decode",
                    f"Cannot decode column '{f.column_name}' of '{mapping.type_name}': {e}",
                ) from e
        return values
