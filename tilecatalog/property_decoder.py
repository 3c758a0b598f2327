"""
Property decoder - converts raw Tiled property strings into typed values.

Tiled writes every property value as a string next to a type tag. This module
turns (name, type tag, raw string) into a bool, int, float or str, or raises a
DecodeError naming exactly what was wrong.
"""

import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import Union
from .constants import (
    TYPE_BOOL,
    TYPE_INT,
    TYPE_FLOAT,
    TYPE_STRING,
    BOOL_TRUE,
    BOOL_FALSE,
    INT_MIN,
    INT_MAX,
)
from .errors import DecodeError, DecodeErrorKind

TypedValue = Union[bool, int, float, str]

# ASCII digits only; \d would also accept other Unicode digits
_INT_PATTERN = re.compile(r"-?[0-9]+")
_FLOAT_PATTERN = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")


class PropertyType(Enum):
    """Property types the decoder supports."""
    BOOL = TYPE_BOOL
    INT = TYPE_INT
    FLOAT = TYPE_FLOAT
    STRING = TYPE_STRING

    @classmethod
    def from_tag(cls, tag: str) -> "PropertyType":
        """Look up a type by its tag; raises ValueError for unknown tags."""
        return cls(tag)

    @classmethod
    def is_supported(cls, tag: str) -> bool:
        return tag in _SUPPORTED_TAGS

    def accepts(self, value: object) -> bool:
        """Check that an already typed value (e.g. a schema default) has this type."""
        if self == PropertyType.BOOL:
            return isinstance(value, bool)
        if self == PropertyType.INT:
            return isinstance(value, int) and not isinstance(value, bool)
        if self == PropertyType.FLOAT:
            return isinstance(value, (int, float)) and not isinstance(value, bool)
        return isinstance(value, str)


_SUPPORTED_TAGS = frozenset(t.value for t in PropertyType)


def _decode_bool(name: str, raw_value: str) -> bool:
    if raw_value == BOOL_TRUE:
        return True
    if raw_value == BOOL_FALSE:
        return False
    raise DecodeError(DecodeErrorKind.INVALID_BOOL, name, TYPE_BOOL, raw_value)


def _decode_int(name: str, raw_value: str) -> int:
    if not _INT_PATTERN.fullmatch(raw_value):
        raise DecodeError(DecodeErrorKind.INVALID_INT, name, TYPE_INT, raw_value)
    value = int(raw_value)
    if value < INT_MIN or value > INT_MAX:
        raise DecodeError(DecodeErrorKind.INVALID_INT, name, TYPE_INT, raw_value)
    return value


def _decode_float(name: str, raw_value: str) -> float:
    if not _FLOAT_PATTERN.fullmatch(raw_value):
        raise DecodeError(DecodeErrorKind.INVALID_FLOAT, name, TYPE_FLOAT, raw_value)
    value = float(raw_value)
    # 1e999 matches the pattern but overflows to inf
    if not math.isfinite(value):
        raise DecodeError(DecodeErrorKind.INVALID_FLOAT, name, TYPE_FLOAT, raw_value)
    return value


_DECODERS = {
    TYPE_BOOL: _decode_bool,
    TYPE_INT: _decode_int,
    TYPE_FLOAT: _decode_float,
    TYPE_STRING: lambda name, raw_value: raw_value,
}


def decode(name: str, declared_type: str, raw_value: str) -> TypedValue:
    """
    Decode one raw property value.

    Args:
        name: Property name (only used for error reporting)
        declared_type: Type tag ("bool", "int", "float" or "string")
        raw_value: Raw string as stored in the tileset

    Returns:
        The typed value

    Raises:
        DecodeError: If the value is malformed for its type, or the type tag
            is not one of the supported tags
    """
    if isinstance(declared_type, PropertyType):
        declared_type = declared_type.value
    decoder = _DECODERS.get(declared_type)
    if decoder is None:
        raise DecodeError(DecodeErrorKind.UNSUPPORTED_TYPE, name, declared_type, raw_value)
    return decoder(name, raw_value)


@dataclass(frozen=True)
class RawProperty:
    """One property occurrence exactly as a source table declared it."""
    name: str
    declared_type: str
    raw_value: str

    def decode(self) -> TypedValue:
        return decode(self.name, self.declared_type, self.raw_value)
