"""
Tilecatalog - entity templates from Tiled tile properties

Decodes the typed custom properties of tileset tiles, validates them against
per-kind schemas, merges layered source tables and exposes the result as a
read-only catalog of entity templates.
"""

__version__ = "0.1.0"

from .catalog import (
    Diagnostic,
    DiagnosticsReport,
    EntityTemplateCatalog,
    KindView,
    LoadResult,
    get_catalog,
    init_catalog,
    load_catalog,
    reset_catalog,
)
from .config import CatalogConfig
from .definition_merger import DefinitionMerger, EntityTemplate, MergeOutcome, TileDefinition
from .errors import (
    CatalogError,
    DecodeError,
    DecodeErrorKind,
    LoadError,
    MergeError,
    MergeErrorKind,
    SchemaError,
    SchemaErrorKind,
    TemplateNotFound,
)
from .property_decoder import PropertyType, RawProperty, decode
from .schema_registry import FieldSpec, KindSchema, SchemaRegistry, default_registry, load_schema_file
from .source_table import SourceTable, TableScan
from .tileset_reader import TilesetReader, read_tables
