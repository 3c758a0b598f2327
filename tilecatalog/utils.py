"""
Utility functions for tilecatalog.
"""

import json
import os
from typing import Any


def load_json(filepath: str) -> Any:
    """Load a JSON file."""
    with open(filepath, 'r', encoding='utf-8') as f:
        return json.load(f)


def save_json(data: Any, filepath: str, indent: int = 2) -> None:
    """Save data to a JSON file."""
    directory = os.path.dirname(filepath)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(filepath, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=indent, ensure_ascii=False)


def parse_tile_id(value: Any) -> int:
    """
    Convert a tile ID from a table record to int.

    Accepts ints and decimal strings (Tiled XML attributes); bools are rejected
    even though they are ints in Python.

    Raises:
        ValueError: If the value is not a non-negative integer tile ID
    """
    if isinstance(value, bool):
        raise ValueError(f"tile id must be an integer, got {value!r}")
    if isinstance(value, int):
        tile_id = value
    elif isinstance(value, str) and value.strip().isascii() and value.strip().isdigit():
        tile_id = int(value.strip())
    else:
        raise ValueError(f"tile id must be an integer, got {value!r}")
    if tile_id < 0:
        raise ValueError(f"tile id must be non-negative, got {tile_id}")
    return tile_id
