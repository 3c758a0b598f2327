"""
Constants for tile property catalogs.

This module contains the type tags, property names and built-in kind schemas
used throughout the codebase so the rules live in one place.
"""

# Property type tags (as written by Tiled in the "type" attribute)
TYPE_BOOL = "bool"
TYPE_INT = "int"
TYPE_FLOAT = "float"
TYPE_STRING = "string"

# Tiled omits the type attribute for string properties
DEFAULT_PROPERTY_TYPE = TYPE_STRING

# Tiled stores int properties as signed 32-bit values
INT_MIN = -2**31
INT_MAX = 2**31 - 1

# Literal spellings accepted for bool properties (case-sensitive)
BOOL_TRUE = "true"
BOOL_FALSE = "false"

# Property names with special meaning
KIND_PROPERTY = "kind"
WALKABLE_PROPERTY = "walkable"

# Kind assigned to tiles that carry a walkable flag instead of a kind value
TERRAIN_KIND = "terrain"

# Source recorded for fields filled from a schema default
DEFAULT_SOURCE = "<default>"

# Diagnostic severities
SEVERITY_ERROR = "error"
SEVERITY_WARNING = "warning"

# =============================================================================
# Built-in kind schemas
# =============================================================================
# Maps kind -> {field_name: (type_tag, required, default)}
# The "kind" field itself is added to every schema by the registry.
# A default of None means "no default": optional fields without a value are
# left out of the template rather than zero-filled.

BUILTIN_SCHEMAS: dict[str, dict[str, tuple]] = {
    "player": {
        "hitpoints": (TYPE_INT, True, None),
        "armorclass": (TYPE_INT, True, None),
    },
    "enemy": {
        "hitpoints": (TYPE_INT, True, None),
        "armorclass": (TYPE_INT, False, 0),
        # AI behaviour name (wizard, knight, bat, ...); never a separate kind
        "behavior": (TYPE_STRING, False, None),
        "resistance_fire": (TYPE_INT, False, 0),
        "resistance_ice": (TYPE_INT, False, 0),
        "resistance_lightning": (TYPE_INT, False, 0),
    },
    "chest": {
        "anim": (TYPE_INT, True, None),
    },
    "shield": {
        "armorclass": (TYPE_INT, False, None),
        "hitpoints": (TYPE_INT, False, None),
        "amount": (TYPE_INT, False, None),
        "name": (TYPE_STRING, False, None),
    },
    "weapon": {
        "cooldown": (TYPE_FLOAT, True, None),
        "speed": (TYPE_INT, True, None),
        "name": (TYPE_STRING, False, None),
        "initial": (TYPE_BOOL, False, False),
        # melee / magic; classifies the weapon alongside the damage fields
        "attack": (TYPE_STRING, False, None),
        "melee": (TYPE_INT, False, None),
        "fire": (TYPE_INT, False, None),
        "ice": (TYPE_INT, False, None),
        "lightning": (TYPE_INT, False, None),
    },
    "potion": {
        "amount": (TYPE_INT, True, None),
    },
    TERRAIN_KIND: {
        WALKABLE_PROPERTY: (TYPE_BOOL, True, None),
    },
}

# Kinds selected by the presence of a property rather than a kind value
BUILTIN_DISCRIMINATORS: dict[str, str] = {
    TERRAIN_KIND: WALKABLE_PROPERTY,
}
