"""
Error types raised while building a tile catalog.

Decode, schema and merge errors are per-tile problems: the catalog loader
collects them into its diagnostics report and keeps loading. LoadError is the
only structural (fatal) failure.
"""

from enum import Enum
from typing import Optional


class DecodeErrorKind(Enum):
    """Why a raw property value could not be decoded."""
    INVALID_BOOL = "InvalidBool"
    INVALID_INT = "InvalidInt"
    INVALID_FLOAT = "InvalidFloat"
    UNSUPPORTED_TYPE = "UnsupportedType"


class SchemaErrorKind(Enum):
    """Why a tile or schema definition does not fit the schema registry."""
    NOT_FOUND = "NotFound"
    UNKNOWN_FIELD = "UnknownField"
    TYPE_MISMATCH = "TypeMismatch"
    INVALID_SCHEMA = "InvalidSchema"


class MergeErrorKind(Enum):
    """Why several definitions of one tile could not be reconciled."""
    KIND_CONFLICT = "KindConflict"
    MISSING_REQUIRED_FIELD = "MissingRequiredField"


class CatalogError(Exception):
    """Base class for every tilecatalog error."""

    def __init__(
        self,
        message: str,
        tile_id: Optional[int] = None,
        source_table_id: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.tile_id = tile_id
        self.source_table_id = source_table_id

    def at(self, tile_id: int, source_table_id: Optional[str] = None) -> "CatalogError":
        """Attach tile/table location to an error raised without it."""
        if self.tile_id is None:
            self.tile_id = tile_id
        if self.source_table_id is None and source_table_id is not None:
            self.source_table_id = source_table_id
        return self

    @property
    def reason(self) -> str:
        """Short machine-friendly reason, e.g. 'MissingRequiredField(amount)'."""
        return type(self).__name__

    def __str__(self) -> str:
        location = []
        if self.tile_id is not None:
            location.append(f"tile {self.tile_id}")
        if self.source_table_id is not None:
            location.append(f"table '{self.source_table_id}'")
        if location:
            return f"{self.reason}: {self.message} ({', '.join(location)})"
        return f"{self.reason}: {self.message}"


class DecodeError(CatalogError, ValueError):
    """A raw property value does not match its declared type."""

    def __init__(
        self,
        kind: DecodeErrorKind,
        name: str,
        declared_type: str,
        raw_value: str,
        **location
    ):
        message = f"property '{name}' of type '{declared_type}' has invalid value {raw_value!r}"
        if kind == DecodeErrorKind.UNSUPPORTED_TYPE:
            message = f"property '{name}' has unsupported type '{declared_type}'"
        super().__init__(message, **location)
        self.kind = kind
        self.name = name
        self.declared_type = declared_type
        self.raw_value = raw_value

    @property
    def reason(self) -> str:
        return f"{self.kind.value}({self.name})"


class SchemaError(CatalogError, ValueError):
    """A kind is unknown, a field is not part of its schema, or a schema is malformed."""

    def __init__(
        self,
        kind: SchemaErrorKind,
        message: str,
        schema_kind: Optional[str] = None,
        field: Optional[str] = None,
        **location
    ):
        super().__init__(message, **location)
        self.kind = kind
        self.schema_kind = schema_kind
        self.field = field

    @property
    def reason(self) -> str:
        if self.kind == SchemaErrorKind.NOT_FOUND and self.schema_kind is not None:
            return f"{self.kind.value}({self.schema_kind})"
        if self.field is not None:
            return f"{self.kind.value}({self.field})"
        return self.kind.value


class MergeError(CatalogError):
    """Definitions of one tile ID disagree or leave a required field unset."""

    def __init__(
        self,
        kind: MergeErrorKind,
        message: str,
        field: Optional[str] = None,
        **location
    ):
        super().__init__(message, **location)
        self.kind = kind
        self.field = field

    @property
    def reason(self) -> str:
        if self.field is not None:
            return f"{self.kind.value}({self.field})"
        return self.kind.value


class LoadError(CatalogError):
    """A source table is structurally unusable; the whole load is aborted."""


class TemplateNotFound(KeyError):
    """No entity template is registered for a tile ID."""

    def __init__(self, tile_id: int):
        super().__init__(tile_id)
        self.tile_id = tile_id

    def __str__(self) -> str:
        return f"No entity template for tile {self.tile_id}"
