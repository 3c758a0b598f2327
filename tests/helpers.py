from __future__ import annotations

from typing import Any, Mapping

from tilecatalog.definition_merger import TileDefinition
from tilecatalog.property_decoder import RawProperty


def _type_tag(value: Any) -> str:
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, int):
        return "int"
    if isinstance(value, float):
        return "float"
    return "string"


def _raw(value: Any) -> tuple[str, str]:
    """Typed Python value -> (type tag, raw string); tuples pass through."""
    if isinstance(value, tuple):
        return value
    if isinstance(value, bool):
        return "bool", "true" if value else "false"
    return _type_tag(value), str(value)


def make_properties(props: Mapping[str, Any]) -> list[dict[str, str]]:
    out = []
    for name, value in props.items():
        type_tag, raw = _raw(value)
        out.append({"name": name, "type": type_tag, "value": raw})
    return out


def make_table(table_id: str, tiles: Mapping[int, Mapping[str, Any]]) -> dict[str, Any]:
    """Build a source table; values are typed Python values or (type, raw) tuples."""
    return {
        "id": table_id,
        "tiles": [{"tileId": tile_id, "properties": make_properties(props)} for tile_id, props in tiles.items()],
    }


def make_definition(tile_id: int, table_id: str, props: Mapping[str, Any]) -> TileDefinition:
    properties = []
    for name, value in props.items():
        type_tag, raw = _raw(value)
        properties.append(RawProperty(name, type_tag, raw))
    return TileDefinition.from_properties(tile_id, table_id, properties)
