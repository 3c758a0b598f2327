"""
Schema registry - the closed set of fields each entity kind may carry.

Schemas are configuration: they are registered once at startup (the built-in
set below, or a JSON schema file) and are read-only afterwards.
"""

from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional
from .constants import BUILTIN_SCHEMAS, BUILTIN_DISCRIMINATORS, KIND_PROPERTY, TYPE_STRING
from .errors import SchemaError, SchemaErrorKind
from .logging_config import get_logger
from .property_decoder import PropertyType, TypedValue
from .utils import load_json

logger = get_logger('schema_registry')


@dataclass(frozen=True)
class FieldSpec:
    """Declared type, required flag and default of one schema field."""
    name: str
    type: PropertyType
    required: bool = False
    default: Optional[TypedValue] = None

    @property
    def has_default(self) -> bool:
        return self.default is not None


@dataclass(frozen=True)
class KindSchema:
    """
    Field set of one entity kind.

    `discriminator` names a property whose mere presence selects this kind
    for tiles without a kind value (the walkable flag for terrain).
    """
    kind: str
    fields: Mapping[str, FieldSpec]
    discriminator: Optional[str] = None

    def __post_init__(self):
        fields = dict(self.fields)
        if KIND_PROPERTY not in fields:
            fields[KIND_PROPERTY] = FieldSpec(KIND_PROPERTY, PropertyType.STRING, required=True)
        for name, spec in fields.items():
            _check_field(self.kind, name, spec)
        object.__setattr__(self, "fields", MappingProxyType(fields))

    def field_for(self, name: str) -> Optional[FieldSpec]:
        return self.fields.get(name)

    def required_fields(self) -> List[str]:
        return [name for name, spec in self.fields.items() if spec.required]


def _check_field(kind: str, name: str, spec: FieldSpec) -> None:
    """Enforce the schema invariants for one field."""
    if not isinstance(spec.type, PropertyType):
        raise SchemaError(
            SchemaErrorKind.INVALID_SCHEMA,
            f"field '{name}' of kind '{kind}' has unsupported type {spec.type!r}",
            schema_kind=kind, field=name
        )
    if spec.name != name:
        raise SchemaError(
            SchemaErrorKind.INVALID_SCHEMA,
            f"field registered as '{name}' is named '{spec.name}'",
            schema_kind=kind, field=name
        )
    if name == KIND_PROPERTY and (spec.type != PropertyType.STRING or not spec.required or spec.has_default):
        raise SchemaError(
            SchemaErrorKind.INVALID_SCHEMA,
            f"'{KIND_PROPERTY}' must be a required string field without default",
            schema_kind=kind, field=name
        )
    if spec.required and spec.has_default:
        raise SchemaError(
            SchemaErrorKind.INVALID_SCHEMA,
            f"required field '{name}' of kind '{kind}' cannot have a default",
            schema_kind=kind, field=name
        )
    if spec.has_default and not spec.type.accepts(spec.default):
        raise SchemaError(
            SchemaErrorKind.INVALID_SCHEMA,
            f"default {spec.default!r} of field '{name}' is not a {spec.type.value}",
            schema_kind=kind, field=name
        )


class SchemaRegistry:
    """Kind -> KindSchema lookup, frozen once startup registration is done."""

    def __init__(self, schemas: Optional[Iterable[KindSchema]] = None):
        self._schemas: Dict[str, KindSchema] = {}
        self._frozen = False
        for schema in schemas or ():
            self.register(schema)

    def register(self, schema: KindSchema) -> None:
        if self._frozen:
            raise RuntimeError("Schema registry is frozen; register schemas at startup")
        if schema.kind in self._schemas:
            raise ValueError(f"Schema for kind '{schema.kind}' already registered")
        for other in self._schemas.values():
            if schema.discriminator and other.discriminator == schema.discriminator:
                raise ValueError(
                    f"Discriminator '{schema.discriminator}' already used by kind '{other.kind}'"
                )
        self._schemas[schema.kind] = schema
        logger.debug(f"Registered schema '{schema.kind}' ({len(schema.fields)} fields)")

    def freeze(self) -> "SchemaRegistry":
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def schema_for(self, kind: str) -> KindSchema:
        """
        Get the schema of a kind.

        Raises:
            SchemaError: NOT_FOUND if the kind was never registered
        """
        try:
            return self._schemas[kind]
        except KeyError:
            raise SchemaError(
                SchemaErrorKind.NOT_FOUND,
                f"no schema registered for kind '{kind}'",
                schema_kind=kind
            ) from None

    def has(self, kind: str) -> bool:
        return kind in self._schemas

    def kinds(self) -> List[str]:
        return list(self._schemas.keys())

    def discriminators(self) -> Dict[str, str]:
        """Map discriminator property -> kind for presence-selected kinds."""
        return {s.discriminator: s.kind for s in self._schemas.values() if s.discriminator}

    def __len__(self) -> int:
        return len(self._schemas)

    def __contains__(self, kind: object) -> bool:
        return kind in self._schemas

    @classmethod
    def from_config(cls, data: Mapping[str, Any]) -> "SchemaRegistry":
        """
        Build a registry from a schema document.

        Format:
            {"schemas": [{"kind": "potion",
                          "discriminator": null,
                          "fields": {"amount": {"type": "int", "required": true}}}]}

        Raises:
            SchemaError: INVALID_SCHEMA if the document is malformed
        """
        entries = data.get("schemas") if isinstance(data, Mapping) else None
        if not isinstance(entries, list):
            raise SchemaError(SchemaErrorKind.INVALID_SCHEMA, "schema document needs a 'schemas' list")

        registry = cls()
        for entry in entries:
            schema = _schema_from_entry(entry)
            try:
                registry.register(schema)
            except ValueError as e:
                raise SchemaError(SchemaErrorKind.INVALID_SCHEMA, str(e), schema_kind=schema.kind) from e
        return registry.freeze()


def _schema_from_entry(entry: Any) -> KindSchema:
    if not isinstance(entry, Mapping) or not isinstance(entry.get("kind"), str) or not entry["kind"]:
        raise SchemaError(SchemaErrorKind.INVALID_SCHEMA, f"schema entry without a kind: {entry!r}")
    kind = entry["kind"]
    raw_fields = entry.get("fields", {})
    if not isinstance(raw_fields, Mapping):
        raise SchemaError(SchemaErrorKind.INVALID_SCHEMA, f"fields of kind '{kind}' must be an object",
                          schema_kind=kind)

    fields = {}
    for name, raw in raw_fields.items():
        if not isinstance(raw, Mapping):
            raise SchemaError(SchemaErrorKind.INVALID_SCHEMA, f"field '{name}' must be an object",
                              schema_kind=kind, field=name)
        type_tag = raw.get("type", TYPE_STRING)
        if not isinstance(type_tag, str) or not PropertyType.is_supported(type_tag):
            raise SchemaError(SchemaErrorKind.INVALID_SCHEMA, f"field '{name}' has unsupported type '{type_tag}'",
                              schema_kind=kind, field=name)
        required = raw.get("required", False)
        if not isinstance(required, bool):
            raise SchemaError(SchemaErrorKind.INVALID_SCHEMA,
                              f"field '{name}' has non-boolean required flag {required!r}",
                              schema_kind=kind, field=name)
        fields[name] = FieldSpec(
            name=name,
            type=PropertyType.from_tag(type_tag),
            required=required,
            default=raw.get("default"),
        )

    discriminator = entry.get("discriminator")
    if discriminator is not None and not isinstance(discriminator, str):
        raise SchemaError(SchemaErrorKind.INVALID_SCHEMA, f"discriminator of kind '{kind}' must be a string",
                          schema_kind=kind)
    return KindSchema(kind=kind, fields=fields, discriminator=discriminator)


def load_schema_file(path) -> SchemaRegistry:
    """Load a frozen registry from a JSON schema file."""
    try:
        data = load_json(str(path))
    except (OSError, ValueError) as e:
        raise SchemaError(SchemaErrorKind.INVALID_SCHEMA, f"cannot read schema file {path}: {e}") from e
    registry = SchemaRegistry.from_config(data)
    logger.info(f"Loaded {len(registry)} schemas from {Path(path).name}")
    return registry


def build_builtin_registry() -> SchemaRegistry:
    """Build a fresh, frozen registry holding the built-in kinds."""
    registry = SchemaRegistry()
    for kind, table in BUILTIN_SCHEMAS.items():
        fields = {
            name: FieldSpec(name, PropertyType.from_tag(type_tag), required, default)
            for name, (type_tag, required, default) in table.items()
        }
        registry.register(KindSchema(kind, fields, BUILTIN_DISCRIMINATORS.get(kind)))
    return registry.freeze()


_DEFAULT_REGISTRY: Optional[SchemaRegistry] = None


def default_registry() -> SchemaRegistry:
    """Process-wide registry of the built-in kinds, built on first use."""
    global _DEFAULT_REGISTRY
    if _DEFAULT_REGISTRY is None:
        _DEFAULT_REGISTRY = build_builtin_registry()
    return _DEFAULT_REGISTRY
