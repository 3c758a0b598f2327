"""
Tile definition merger - reconciles several definitions of one tile ID.

Source tables are layered: the caller passes them lowest priority first, and
for every field the last table that sets it wins (base data refined by mods
or balance patches). The kind is fixed by the first table that declares one;
any later table declaring a different kind is a conflict.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple
from .constants import KIND_PROPERTY, DEFAULT_SOURCE, TYPE_INT
from .errors import (
    CatalogError,
    DecodeError,
    MergeError,
    MergeErrorKind,
    SchemaError,
    SchemaErrorKind,
)
from .logging_config import get_logger
from .property_decoder import PropertyType, RawProperty, TypedValue
from .schema_registry import FieldSpec, KindSchema, SchemaRegistry

logger = get_logger('definition_merger')


@dataclass(frozen=True)
class TileDefinition:
    """Properties one source table declares for one tile ID."""
    tile_id: int
    source_table_id: str
    properties: Mapping[str, RawProperty]

    def __post_init__(self):
        object.__setattr__(self, "properties", MappingProxyType(dict(self.properties)))

    @classmethod
    def from_properties(cls, tile_id: int, source_table_id: str,
                        properties: Iterable[RawProperty]) -> "TileDefinition":
        """
        Build a definition from a property list.

        Raises:
            ValueError: If a property name occurs twice
        """
        by_name: Dict[str, RawProperty] = {}
        for prop in properties:
            if prop.name in by_name:
                raise ValueError(f"property '{prop.name}' declared twice")
            by_name[prop.name] = prop
        return cls(tile_id, source_table_id, by_name)


@dataclass(frozen=True)
class EntityTemplate:
    """
    Validated, typed description of what a tile ID spawns.

    `fields` always holds "kind". `sources` records which table supplied each
    field ("<default>" for schema defaults).
    """
    tile_id: int
    kind: str
    fields: Mapping[str, TypedValue]
    sources: Mapping[str, str] = field(default_factory=dict, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))
        object.__setattr__(self, "sources", MappingProxyType(dict(self.sources)))

    def __getitem__(self, name: str) -> TypedValue:
        return self.fields[name]

    def __contains__(self, name: object) -> bool:
        return name in self.fields

    def get(self, name: str, default: Any = None) -> Any:
        return self.fields.get(name, default)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tileId": self.tile_id,
            "kind": self.kind,
            "fields": dict(self.fields),
            "sources": dict(self.sources),
        }


@dataclass
class MergeOutcome:
    """Everything the merger found for one tile."""
    tile_id: int
    template: Optional[EntityTemplate] = None
    errors: List[CatalogError] = field(default_factory=list)
    warnings: List[CatalogError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.template is not None and not self.errors


class DefinitionMerger:
    """Merges the definitions of a tile ID into one EntityTemplate."""

    def __init__(self, registry: SchemaRegistry, extension_tolerant: bool = False):
        """
        Initialize the merger.

        Args:
            registry: Schemas to validate against
            extension_tolerant: Keep properties outside the kind's schema
                instead of dropping them
        """
        self.registry = registry
        self.extension_tolerant = extension_tolerant
        self._discriminators = registry.discriminators()

    def merge(self, tile_id: int, definitions: Sequence[TileDefinition]) -> EntityTemplate:
        """
        Merge definitions given lowest priority first.

        Raises:
            MergeError, SchemaError, DecodeError: The first problem found
        """
        outcome = self.resolve(tile_id, definitions)
        if outcome.errors:
            raise outcome.errors[0]
        return outcome.template

    def resolve(self, tile_id: int, definitions: Sequence[TileDefinition]) -> MergeOutcome:
        """
        Merge definitions given lowest priority first, collecting every problem.

        Returns:
            MergeOutcome with the template (None if any error was found), the
            errors that excluded the tile, and non-fatal warnings
        """
        definitions = list(definitions)
        for definition in definitions:
            if definition.tile_id != tile_id:
                raise ValueError(f"definition for tile {definition.tile_id} passed to merge of tile {tile_id}")

        outcome = MergeOutcome(tile_id)
        try:
            kind, kind_table = self._determine_kind(tile_id, definitions)
            schema = self.registry.schema_for(kind)
        except (MergeError, SchemaError) as e:
            outcome.errors.append(e.at(tile_id))
            return outcome

        values: Dict[str, TypedValue] = {KIND_PROPERTY: kind}
        sources: Dict[str, str] = {KIND_PROPERTY: kind_table}
        winners: Dict[str, str] = {}

        for name, spec in schema.fields.items():
            if name == KIND_PROPERTY:
                continue
            found = self._winner(definitions, name)
            if found is None:
                if spec.has_default:
                    values[name] = _as_field_type(spec, spec.default)
                    sources[name] = DEFAULT_SOURCE
                elif spec.required:
                    outcome.errors.append(MergeError(
                        MergeErrorKind.MISSING_REQUIRED_FIELD,
                        f"required field '{name}' of kind '{kind}' is not set by any table",
                        field=name, tile_id=tile_id
                    ))
                continue
            definition, prop = found
            winners[name] = definition.source_table_id
            try:
                values[name] = self._decode_field(schema, spec, prop)
                sources[name] = definition.source_table_id
                logger.debug(f"Tile {tile_id}: {name} = {values[name]!r} from '{definition.source_table_id}'")
            except (DecodeError, SchemaError) as e:
                outcome.errors.append(e.at(tile_id, definition.source_table_id))

        self._collect_unknown(tile_id, schema, definitions, values, sources, winners, outcome)
        self._collect_overridden(tile_id, schema, definitions, winners, outcome)

        if not outcome.errors:
            outcome.template = EntityTemplate(tile_id, kind, values, sources)
        return outcome

    def _declared_kind(self, definition: TileDefinition) -> Optional[str]:
        """Kind a single definition declares, if any."""
        kind_prop = definition.properties.get(KIND_PROPERTY)
        if kind_prop is not None and kind_prop.raw_value != "":
            return kind_prop.raw_value
        for prop_name, kind in self._discriminators.items():
            if prop_name in definition.properties:
                return kind
        return None

    def _determine_kind(self, tile_id: int,
                        definitions: Sequence[TileDefinition]) -> Tuple[str, str]:
        """Return (kind, table that fixed it)."""
        fixed: Optional[Tuple[str, str]] = None
        for definition in definitions:
            declared = self._declared_kind(definition)
            if declared is None:
                continue
            if fixed is None:
                fixed = (declared, definition.source_table_id)
            elif declared != fixed[0]:
                raise MergeError(
                    MergeErrorKind.KIND_CONFLICT,
                    f"table '{fixed[1]}' declares kind '{fixed[0]}' but "
                    f"table '{definition.source_table_id}' declares '{declared}'",
                    tile_id=tile_id, source_table_id=definition.source_table_id
                )
        if fixed is None:
            raise MergeError(
                MergeErrorKind.MISSING_REQUIRED_FIELD,
                "no table declares a kind for this tile",
                field=KIND_PROPERTY, tile_id=tile_id
            )
        return fixed

    @staticmethod
    def _winner(definitions: Sequence[TileDefinition],
                name: str) -> Optional[Tuple[TileDefinition, RawProperty]]:
        """Highest-priority (last) definition holding a property."""
        for definition in reversed(definitions):
            prop = definition.properties.get(name)
            if prop is not None:
                return definition, prop
        return None

    @staticmethod
    def _decode_field(schema: KindSchema, spec: FieldSpec, prop: RawProperty) -> TypedValue:
        """Type check a property against its field and decode it."""
        if not PropertyType.is_supported(prop.declared_type):
            return prop.decode()  # raises UNSUPPORTED_TYPE
        widening = prop.declared_type == TYPE_INT and spec.type == PropertyType.FLOAT
        if prop.declared_type != spec.type.value and not widening:
            raise SchemaError(
                SchemaErrorKind.TYPE_MISMATCH,
                f"field '{spec.name}' of kind '{schema.kind}' expects {spec.type.value}, "
                f"got {prop.declared_type}",
                schema_kind=schema.kind, field=spec.name
            )
        return _as_field_type(spec, prop.decode())

    def _collect_unknown(self, tile_id: int, schema: KindSchema,
                         definitions: Sequence[TileDefinition],
                         values: Dict[str, TypedValue], sources: Dict[str, str],
                         winners: Dict[str, str], outcome: MergeOutcome) -> None:
        """Drop (or keep, in extension-tolerant mode) properties outside the schema."""
        unknown = sorted({
            name for definition in definitions for name in definition.properties
            if name not in schema.fields
        })
        for name in unknown:
            definition, prop = self._winner(definitions, name)
            if not self.extension_tolerant:
                tables = [d.source_table_id for d in definitions if name in d.properties]
                logger.info(f"Tile {tile_id}: dropping '{name}' (not part of kind '{schema.kind}')")
                outcome.warnings.append(SchemaError(
                    SchemaErrorKind.UNKNOWN_FIELD,
                    f"'{name}' is not a field of kind '{schema.kind}' (from {', '.join(tables)}); dropped",
                    schema_kind=schema.kind, field=name,
                    tile_id=tile_id, source_table_id=definition.source_table_id
                ))
                continue
            winners[name] = definition.source_table_id
            try:
                values[name] = prop.decode()
                sources[name] = definition.source_table_id
            except DecodeError as e:
                outcome.errors.append(e.at(tile_id, definition.source_table_id))

    def _collect_overridden(self, tile_id: int, schema: KindSchema,
                            definitions: Sequence[TileDefinition],
                            winners: Dict[str, str], outcome: MergeOutcome) -> None:
        """Report malformed or mistyped values that lost to a higher-priority table."""
        for definition in definitions:
            for name in sorted(definition.properties):
                winner_table = winners.get(name)
                if winner_table is None or winner_table == definition.source_table_id:
                    continue
                prop = definition.properties[name]
                spec = schema.field_for(name)
                try:
                    if spec is not None:
                        self._decode_field(schema, spec, prop)
                    else:
                        prop.decode()
                except (DecodeError, SchemaError) as e:
                    outcome.warnings.append(e.at(tile_id, definition.source_table_id))


def _as_field_type(spec: FieldSpec, value: TypedValue) -> TypedValue:
    if spec.type == PropertyType.FLOAT and not isinstance(value, float):
        return float(value)
    return value
