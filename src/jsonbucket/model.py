"""Record and type metadata handed to the bridge by the host persistence layer."""

from __future__ import annotations

import enum
import time
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel

from jsonbucket.errors import ConfigurationError


class IdentityKind(enum.Enum):
    DATASTORE = "datastore"
    APPLICATION = "application"


class VersionStrategy(enum.Enum):
    NONE = "none"
    NUMBER = "number"
    TIMESTAMP = "timestamp"


@dataclass(frozen=True)
class FieldMapping:
    """One persistent member and the JSON column it is stored under."""

    name: str
    annotation: Any = Any
    column: str = ""
    primary_key: bool = False

    @property
    def column_name(self) -> str:
        return self.column or self.name


@dataclass(frozen=True)
class TypeMapping:
    """Storage metadata for one record type."""

    type_name: str
    fields: tuple[FieldMapping, ...]
    identity_kind: IdentityKind = IdentityKind.APPLICATION
    datastore_id_column: str = "IDENTIFIER"
    version_strategy: VersionStrategy = VersionStrategy.NONE
    version_column: str = "VERSION"
    version_field: str | None = None
    url: str | None = None

    def __post_init__(self) -> None:
        names = [f.name for f in self.fields]
        if len(set(names)) != len(names):
            raise ConfigurationError(f"Duplicate field names in mapping for '{self.type_name}'")
        if self.identity_kind is IdentityKind.APPLICATION and not self.primary_key_fields:
            raise ConfigurationError(
                f"Type '{self.type_name}' uses application identity but declares no primary key"
            )
        if self.version_field is not None and self.version_field not in names:
            raise ConfigurationError(
                f"Version field '{self.version_field}' is not a field of '{self.type_name}'"
            )

    @property
    def is_versioned(self) -> bool:
        return self.version_strategy is not VersionStrategy.NONE

    @property
    def primary_key_fields(self) -> tuple[FieldMapping, ...]:
        return tuple(f for f in self.fields if f.primary_key)

    @property
    def leading_primary_key(self) -> FieldMapping | None:
        pks = self.primary_key_fields
        return pks[0] if pks else None

    @property
    def identity_column(self) -> str:
        """Column holding the identity in stored documents and listings."""
        if self.identity_kind is IdentityKind.DATASTORE:
            return self.datastore_id_column
        pk = self.leading_primary_key
        assert pk is not None
        return pk.column_name

    def get_field(self, name: str) -> FieldMapping:
        for f in self.fields:
            if f.name == name:
                return f
        raise KeyError(f"'{self.type_name}' has no field '{name}'")

    @classmethod
    def from_model(
        cls,
        model: type[BaseModel],
        *,
        primary_key: str | tuple[str, ...] | None = None,
        type_name: str | None = None,
        columns: dict[str, str] | None = None,
        **options: Any,
    ) -> TypeMapping:
        """Derive a mapping from a pydantic model's declared fields.

        Without ``primary_key`` the type gets datastore identity.
        """
        pk_names = (primary_key,) if isinstance(primary_key, str) else tuple(primary_key or ())
        columns = columns or {}
        unknown = [n for n in (*pk_names, *columns) if n not in model.model_fields]
        if unknown:
            raise ConfigurationError(f"{model.__name__} has no fields {unknown}")
        fields = tuple(
            FieldMapping(
                name=name,
                annotation=info.annotation,
                column=columns.get(name, ""),
                primary_key=name in pk_names,
            )
            for name, info in model.model_fields.items()
        )
        options.setdefault(
            "identity_kind", IdentityKind.APPLICATION if pk_names else IdentityKind.DATASTORE
        )
        return cls(
            type_name=type_name or f"{model.__module__}.{model.__qualname__}",
            fields=fields,
            **options,
        )


@dataclass
class Record:
    """One record being persisted: identity, optimistic version and field values."""

    mapping: TypeMapping
    fields: dict[str, Any] = field(default_factory=dict)
    identity_value: Any = None
    version: int | None = None

    @property
    def type_name(self) -> str:
        return self.mapping.type_name


def current_millis() -> int:
    return int(time.time() * 1000)


def initial_version(strategy: VersionStrategy, now: int | None = None) -> int | None:
    if strategy is VersionStrategy.NUMBER:
        return 1
    if strategy is VersionStrategy.TIMESTAMP:
        return current_millis() if now is None else now
    return None


def next_version(
    strategy: VersionStrategy, current: int | None, now: int | None = None
) -> int | None:
    """Version to store on update.

    Timestamps never go backwards or repeat, even when two updates land in
    the same millisecond or the clock steps back.
    """
    if strategy is VersionStrategy.NUMBER:
        return 1 if current is None else int(current) + 1
    if strategy is VersionStrategy.TIMESTAMP:
        now = current_millis() if now is None else now
        if current is None:
            return now
        return max(now, int(current) + 1)
    return None
