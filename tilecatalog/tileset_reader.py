"""
Tileset reader - reads Tiled tilesets into source tables.

Supports Tiled's XML tileset format (.tsx) and its JSON format (.tsj/.json).
Only per-tile custom properties are read; images, animations and collision
shapes belong to the renderer.
"""

import json
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional
from .constants import DEFAULT_PROPERTY_TYPE, BOOL_TRUE, BOOL_FALSE
from .errors import LoadError
from .logging_config import get_logger
from .source_table import SourceTable
from .utils import load_json

logger = get_logger('tileset_reader')

XML_SUFFIXES = {".tsx", ".xml"}
JSON_SUFFIXES = {".tsj", ".json"}


def _json_value_to_string(value: Any) -> str:
    """Render a Tiled JSON property value the way the XML format stores it."""
    if isinstance(value, bool):
        return BOOL_TRUE if value else BOOL_FALSE
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    # class/object properties; the decoder rejects their type anyway
    return json.dumps(value, sort_keys=True)


class TilesetReader:
    """Reads Tiled tileset files into SourceTables."""

    def read(self, path, table_id: Optional[str] = None) -> SourceTable:
        """
        Read a tileset file.

        Args:
            path: Path to a .tsx or .tsj/.json tileset
            table_id: Table name (defaults to the file stem)

        Returns:
            SourceTable with one record per tile that has properties

        Raises:
            LoadError: If the file cannot be read or is not a tileset
        """
        path = Path(path)
        table_id = table_id or path.stem
        suffix = path.suffix.lower()

        if suffix in XML_SUFFIXES:
            try:
                text = path.read_text(encoding="utf-8")
            except OSError as e:
                raise LoadError(f"cannot read {path}: {e}", source_table_id=table_id) from e
            table = self.read_tsx_string(text, table_id)
        elif suffix in JSON_SUFFIXES:
            try:
                data = load_json(str(path))
            except OSError as e:
                raise LoadError(f"cannot read {path}: {e}", source_table_id=table_id) from e
            except ValueError as e:
                raise LoadError(f"invalid JSON in {path}: {e}", source_table_id=table_id) from e
            table = self.read_tileset_json(data, table_id)
        else:
            raise LoadError(f"unsupported tileset format '{path.suffix}' ({path})", source_table_id=table_id)

        logger.info(f"Read {len(table.tiles)} tiles with properties from {path.name}")
        return SourceTable(table.table_id, table.tiles, source_path=str(path))

    def read_tsx_string(self, text: str, table_id: str) -> SourceTable:
        """Parse the XML text of a .tsx tileset."""
        try:
            root = ET.fromstring(text)
        except ET.ParseError as e:
            raise LoadError(f"invalid tileset XML: {e}", source_table_id=table_id) from e
        if root.tag != "tileset":
            raise LoadError(f"expected a <tileset> root, got <{root.tag}>", source_table_id=table_id)

        tiles: List[Dict[str, Any]] = []
        for tile in root.findall("tile"):
            properties = self._xml_properties(tile.find("properties"))
            if not properties:
                continue
            tiles.append({"tileId": tile.get("id"), "properties": properties})
        return SourceTable(table_id, tiles)

    @staticmethod
    def _xml_properties(element: Optional[ET.Element]) -> List[Dict[str, Any]]:
        if element is None:
            return []
        properties = []
        for prop in element.findall("property"):
            value = prop.get("value")
            if value is None:
                # Multi-line strings are stored as element text
                value = prop.text or ""
            properties.append({
                "name": prop.get("name"),
                "type": prop.get("type", DEFAULT_PROPERTY_TYPE),
                "value": value,
            })
        return properties

    def read_tileset_json(self, data: Any, table_id: str) -> SourceTable:
        """Convert a parsed Tiled JSON tileset."""
        if not isinstance(data, Mapping):
            raise LoadError("tileset JSON must be an object", source_table_id=table_id)
        if data.get("type", "tileset") != "tileset":
            raise LoadError(f"expected a tileset, got type '{data.get('type')}'", source_table_id=table_id)

        raw_tiles = data.get("tiles", [])
        if not isinstance(raw_tiles, list):
            raise LoadError("'tiles' must be a list", source_table_id=table_id)

        tiles: List[Dict[str, Any]] = []
        for raw in raw_tiles:
            if not isinstance(raw, Mapping):
                raise LoadError("tile entry must be an object", source_table_id=table_id)
            raw_properties = raw.get("properties", [])
            if not isinstance(raw_properties, list):
                raise LoadError(f"properties of tile {raw.get('id')!r} must be a list", source_table_id=table_id)
            if not raw_properties:
                continue
            properties = []
            for prop in raw_properties:
                if not isinstance(prop, Mapping):
                    raise LoadError(f"property of tile {raw.get('id')!r} must be an object",
                                    source_table_id=table_id)
                properties.append({
                    "name": prop.get("name"),
                    "type": prop.get("type", DEFAULT_PROPERTY_TYPE),
                    "value": _json_value_to_string(prop.get("value", "")),
                })
            tiles.append({"tileId": raw.get("id"), "properties": properties})
        return SourceTable(table_id, tiles)


def read_tables(paths: Iterable) -> List[SourceTable]:
    """Read several tileset files, keeping their order as priority order."""
    reader = TilesetReader()
    return [reader.read(path) for path in paths]
