"""
Entity template catalog - the read-only result of loading tile property tables.

load_catalog() runs decode -> validate -> merge over every tile ID found in any
table and returns the catalog together with a diagnostics report. Bad tiles are
reported and left out; only structurally broken tables abort the load.
"""

from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple
from .config import CatalogConfig
from .constants import SEVERITY_ERROR, SEVERITY_WARNING
from .definition_merger import DefinitionMerger, EntityTemplate, MergeOutcome, TileDefinition
from .errors import CatalogError, LoadError, TemplateNotFound
from .logging_config import get_logger
from .schema_registry import SchemaRegistry, default_registry
from .source_table import SourceTable

logger = get_logger('catalog')


@dataclass(frozen=True)
class Diagnostic:
    """One problem found while loading, attached to a tile."""
    tile_id: Optional[int]
    severity: str
    error: CatalogError

    @property
    def reason(self) -> str:
        return self.error.reason

    @property
    def source_table_id(self) -> Optional[str]:
        return self.error.source_table_id

    def format(self) -> str:
        return f"[{self.severity}] {self.error}"


class DiagnosticsReport:
    """Ordered diagnostics of one load (tile ID order, errors before warnings)."""

    def __init__(self, entries: Iterable[Diagnostic] = ()):
        self._entries: Tuple[Diagnostic, ...] = tuple(entries)

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def errors(self) -> List[Diagnostic]:
        return [d for d in self._entries if d.severity == SEVERITY_ERROR]

    def warnings(self) -> List[Diagnostic]:
        return [d for d in self._entries if d.severity == SEVERITY_WARNING]

    def for_tile(self, tile_id: int) -> List[Diagnostic]:
        return [d for d in self._entries if d.tile_id == tile_id]

    def excluded_tile_ids(self) -> List[int]:
        return sorted({d.tile_id for d in self.errors() if d.tile_id is not None})

    def format_lines(self) -> List[str]:
        return [d.format() for d in self._entries]


class KindView:
    """Lazy, restartable sequence of the templates of one kind (tile ID order)."""

    def __init__(self, kind: str, templates: Mapping[int, EntityTemplate], tile_ids: Tuple[int, ...]):
        self.kind = kind
        self._templates = templates
        self._tile_ids = tile_ids

    def __iter__(self) -> Iterator[EntityTemplate]:
        return (self._templates[tile_id] for tile_id in self._tile_ids)

    def __len__(self) -> int:
        return len(self._tile_ids)

    def tile_ids(self) -> Tuple[int, ...]:
        return self._tile_ids

    def __repr__(self) -> str:
        return f"KindView({self.kind!r}, {len(self)} templates)"


class EntityTemplateCatalog:
    """
    Tile ID -> EntityTemplate lookup.

    Built once by load_catalog(); there is no API to add or change entries
    afterwards.
    """

    def __init__(self, templates: Iterable[EntityTemplate] = ()):
        by_id: Dict[int, EntityTemplate] = {}
        for template in sorted(templates, key=lambda t: t.tile_id):
            if template.tile_id in by_id:
                raise ValueError(f"Duplicate template for tile {template.tile_id}")
            by_id[template.tile_id] = template

        by_kind: Dict[str, List[int]] = {}
        for tile_id, template in by_id.items():
            by_kind.setdefault(template.kind, []).append(tile_id)

        self._templates: Mapping[int, EntityTemplate] = MappingProxyType(by_id)
        self._by_kind: Dict[str, Tuple[int, ...]] = {k: tuple(v) for k, v in by_kind.items()}

    @classmethod
    def load(
        cls,
        tables: Sequence[Any],
        registry: Optional[SchemaRegistry] = None,
        config: Optional[CatalogConfig] = None
    ) -> "LoadResult":
        return load_catalog(tables, registry, config)

    def get(self, tile_id: int) -> EntityTemplate:
        """
        O(1) lookup by tile ID.

        Raises:
            TemplateNotFound: If the tile ID is not in the catalog
        """
        try:
            return self._templates[tile_id]
        except KeyError:
            raise TemplateNotFound(tile_id) from None

    def find(self, tile_id: int) -> Optional[EntityTemplate]:
        return self._templates.get(tile_id)

    def all_of_kind(self, kind: str) -> KindView:
        """All templates of a kind, e.g. every enemy for a spawn table."""
        return KindView(kind, self._templates, self._by_kind.get(kind, ()))

    def kinds(self) -> List[str]:
        return sorted(self._by_kind)

    def tile_ids(self) -> List[int]:
        return list(self._templates)

    def __contains__(self, tile_id: object) -> bool:
        return tile_id in self._templates

    def __len__(self) -> int:
        return len(self._templates)

    def __iter__(self) -> Iterator[EntityTemplate]:
        return iter(self._templates.values())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, EntityTemplateCatalog):
            return NotImplemented
        return dict(self._templates) == dict(other._templates)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready export, templates grouped by kind."""
        return {
            kind: [self._templates[tile_id].to_dict() for tile_id in tile_ids]
            for kind, tile_ids in sorted(self._by_kind.items())
        }


@dataclass
class LoadResult:
    """Catalog plus everything reported while building it."""
    catalog: EntityTemplateCatalog
    diagnostics: DiagnosticsReport = field(default_factory=DiagnosticsReport)

    @property
    def excluded(self) -> Dict[int, List[CatalogError]]:
        """Tile ID -> errors for every tile left out of the catalog."""
        excluded: Dict[int, List[CatalogError]] = {}
        for diagnostic in self.diagnostics.errors():
            excluded.setdefault(diagnostic.tile_id, []).append(diagnostic.error)
        return excluded

    @property
    def ok(self) -> bool:
        return not self.diagnostics.errors()


def _collect_definitions(
    tables: Sequence[Any]
) -> Tuple[Dict[int, List[TileDefinition]], Dict[int, List[CatalogError]]]:
    """
    Group definitions per tile ID, keeping table priority order.

    Returns:
        (tile ID -> definitions, tile ID -> errors of records the tables rejected)
    """
    if isinstance(tables, (str, bytes, Mapping)) or not isinstance(tables, Sequence):
        raise LoadError(f"tables must be a sequence of source tables, got {type(tables).__name__}")

    source_tables = [SourceTable.coerce(table, index) for index, table in enumerate(tables)]
    seen_ids = set()
    for table in source_tables:
        if table.table_id in seen_ids:
            raise LoadError("table id used twice", source_table_id=table.table_id)
        seen_ids.add(table.table_id)

    grouped: Dict[int, List[TileDefinition]] = {}
    rejected: Dict[int, List[CatalogError]] = {}
    for table in source_tables:
        scan = table.definitions()
        logger.debug(f"Table '{table.table_id}': {len(scan.definitions)} tiles, {len(scan.rejected)} rejected")
        for definition in scan.definitions:
            grouped.setdefault(definition.tile_id, []).append(definition)
        for tile_id, errors in scan.rejected.items():
            rejected.setdefault(tile_id, []).extend(errors)
    return grouped, rejected


def _merge_all(
    merger: DefinitionMerger,
    grouped: Mapping[int, List[TileDefinition]],
    workers: int
) -> Dict[int, MergeOutcome]:
    """Merge every tile; results are only written from this thread."""
    outcomes: Dict[int, MergeOutcome] = {}
    if workers <= 1 or len(grouped) <= 1:
        for tile_id in sorted(grouped):
            outcomes[tile_id] = merger.resolve(tile_id, grouped[tile_id])
        return outcomes

    with ThreadPoolExecutor(max_workers=min(workers, len(grouped))) as executor:
        future_to_tile = {
            executor.submit(merger.resolve, tile_id, definitions): tile_id
            for tile_id, definitions in grouped.items()
        }
        # as_completed() hands results back one at a time to this thread
        for future in as_completed(future_to_tile):
            outcomes[future_to_tile[future]] = future.result()
    return outcomes


def load_catalog(
    tables: Sequence[Any],
    registry: Optional[SchemaRegistry] = None,
    config: Optional[CatalogConfig] = None
) -> LoadResult:
    """
    Build a catalog from source tables.

    Args:
        tables: Source tables, lowest priority first. Each is a SourceTable,
            a {"id": ..., "tiles": [...]} mapping or a bare list of tile records.
        registry: Schemas to validate against (defaults to the built-in kinds)
        config: Load options (defaults to CatalogConfig())

    Returns:
        LoadResult with the catalog of every tile that merged cleanly and a
        diagnostics report covering all tiles

    Raises:
        LoadError: If a table is structurally unusable
    """
    config = config or CatalogConfig()
    registry = registry or default_registry()

    grouped, rejected = _collect_definitions(tables)
    merger = DefinitionMerger(registry, extension_tolerant=config.extension_tolerant)
    mergeable = {tile_id: defs for tile_id, defs in grouped.items() if tile_id not in rejected}
    outcomes = _merge_all(merger, mergeable, config.workers)
    for tile_id, errors in rejected.items():
        outcomes[tile_id] = MergeOutcome(tile_id, errors=list(errors))

    entries: List[Diagnostic] = []
    templates: List[EntityTemplate] = []
    for tile_id in sorted(outcomes):
        outcome = outcomes[tile_id]
        entries.extend(Diagnostic(tile_id, SEVERITY_ERROR, e) for e in outcome.errors)
        entries.extend(Diagnostic(tile_id, SEVERITY_WARNING, w) for w in outcome.warnings)
        if outcome.ok:
            templates.append(outcome.template)
        else:
            reasons = ", ".join(e.reason for e in outcome.errors)
            logger.warning(f"Excluding tile {tile_id}: {reasons}")

    catalog = EntityTemplateCatalog(templates)
    diagnostics = DiagnosticsReport(entries)
    logger.info(
        f"Loaded {len(catalog)} templates from {len(tables)} tables "
        f"({len(diagnostics.excluded_tile_ids())} tiles excluded, {len(diagnostics.warnings())} warnings)"
    )
    return LoadResult(catalog, diagnostics)


_CATALOG: Optional[LoadResult] = None


def init_catalog(
    tables: Sequence[Any],
    registry: Optional[SchemaRegistry] = None,
    config: Optional[CatalogConfig] = None
) -> LoadResult:
    """
    Load the process-wide catalog once.

    Later calls return the already loaded result and ignore their arguments.
    """
    global _CATALOG
    if _CATALOG is None:
        _CATALOG = load_catalog(tables, registry, config)
    return _CATALOG


def get_catalog() -> EntityTemplateCatalog:
    if _CATALOG is None:
        raise RuntimeError("Catalog not initialized. Call init_catalog() at startup.")
    return _CATALOG.catalog


def reset_catalog() -> None:
    """Forget the process-wide catalog (for tests)."""
    global _CATALOG
    _CATALOG = None
