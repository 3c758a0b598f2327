"""
Source tables - the already-parsed property tables handed to the catalog.

A table is a sequence of tile records:

    {"tileId": 103, "properties": [{"name": "kind", "type": "string", "value": "weapon"}, ...]}

This module checks that structure and turns each record into a
TileDefinition. A table that cannot be enumerated, or a record without a
usable tile ID, aborts the load with LoadError; a malformed record with a
known tile ID only rejects that tile. The values themselves are decoded
later, per tile.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence
from .constants import DEFAULT_PROPERTY_TYPE
from .definition_merger import TileDefinition
from .errors import LoadError
from .property_decoder import RawProperty
from .utils import parse_tile_id


@dataclass(frozen=True)
class SourceTable:
    """
    One authored collection of tile records.

    Attributes:
        table_id: Unique name of the table (file stem for tileset files)
        tiles: Tile records in the shape shown in the module docstring
        source_path: File the table was read from, if any
    """
    table_id: str
    tiles: Sequence[Mapping[str, Any]]
    source_path: Optional[str] = None

    @classmethod
    def coerce(cls, table: Any, index: int) -> "SourceTable":
        """
        Accept a SourceTable, a {"id": ..., "tiles": [...]} mapping, or a bare
        list of tile records (named "table<index>").

        Raises:
            LoadError: If the table cannot be enumerated as tile records
        """
        if isinstance(table, SourceTable):
            return table
        if isinstance(table, Mapping):
            table_id = table.get("id", f"table{index}")
            tiles = table.get("tiles")
            if not isinstance(table_id, str) or not table_id:
                raise LoadError(f"table #{index} has an invalid id {table_id!r}")
            if not _is_record_sequence(tiles):
                raise LoadError("table has no 'tiles' list", source_table_id=table_id)
            return cls(table_id, tiles)
        if _is_record_sequence(table):
            return cls(f"table{index}", table)
        raise LoadError(f"table #{index} is not a sequence of tile records: {type(table).__name__}")

    def definitions(self) -> "TableScan":
        """
        Convert every tile record of the table.

        Records with a readable tile ID but a bad property list, a property
        repeated within the tile, or a tile ID repeated within the table are
        rejected per tile; the rest of the table still loads.

        Returns:
            TableScan with the good definitions in table order and the
            rejected tile IDs

        Raises:
            LoadError: If the table cannot be enumerated, or a record has no
                usable tile ID
        """
        if not _is_record_sequence(self.tiles):
            raise LoadError("tiles is not a sequence of records", source_table_id=self.table_id)

        seen: Dict[int, int] = {}
        scan = TableScan(self.table_id)
        for position, record in enumerate(self.tiles):
            tile_id = self._tile_id_of(position, record)
            if tile_id in seen:
                scan.reject(LoadError(
                    f"tile defined twice (records #{seen[tile_id]} and #{position})",
                    tile_id=tile_id, source_table_id=self.table_id
                ))
                continue
            seen[tile_id] = position
            try:
                scan.definitions.append(self._definition_from_record(tile_id, record))
            except LoadError as e:
                scan.reject(e)
        scan.drop_rejected()
        return scan

    def _tile_id_of(self, position: int, record: Any) -> int:
        if not isinstance(record, Mapping):
            raise LoadError(f"record #{position} is not an object", source_table_id=self.table_id)
        try:
            return parse_tile_id(record.get("tileId"))
        except ValueError as e:
            raise LoadError(f"record #{position}: {e}", source_table_id=self.table_id) from e

    def _definition_from_record(self, tile_id: int, record: Mapping[str, Any]) -> TileDefinition:
        raw_properties = record.get("properties", [])
        if not _is_record_sequence(raw_properties):
            raise LoadError("properties is not a list", tile_id=tile_id, source_table_id=self.table_id)

        properties = []
        for raw in raw_properties:
            if not isinstance(raw, Mapping):
                raise LoadError("property is not an object", tile_id=tile_id, source_table_id=self.table_id)
            name = raw.get("name")
            value = raw.get("value")
            type_tag = raw.get("type") or DEFAULT_PROPERTY_TYPE
            if not isinstance(name, str) or not name:
                raise LoadError(f"property without a name: {dict(raw)!r}",
                                tile_id=tile_id, source_table_id=self.table_id)
            if not isinstance(value, str) or not isinstance(type_tag, str):
                raise LoadError(f"property '{name}' must have string type and value",
                                tile_id=tile_id, source_table_id=self.table_id)
            properties.append(RawProperty(name, type_tag, value))

        try:
            return TileDefinition.from_properties(tile_id, self.table_id, properties)
        except ValueError as e:
            raise LoadError(str(e), tile_id=tile_id, source_table_id=self.table_id) from e


@dataclass
class TableScan:
    """Definitions read from one table plus the tiles it rejected."""
    table_id: str
    definitions: List[TileDefinition] = field(default_factory=list)
    rejected: Dict[int, List[LoadError]] = field(default_factory=dict)

    def reject(self, error: LoadError) -> None:
        self.rejected.setdefault(error.tile_id, []).append(error)

    def drop_rejected(self) -> None:
        # a repeated tile rejects its first record too
        self.definitions = [d for d in self.definitions if d.tile_id not in self.rejected]


def _is_record_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes))
