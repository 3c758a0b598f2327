"""
Main entry point for the tilecatalog command line tool.

Loads one or more Tiled tilesets (lowest priority first), prints the catalog
summary and the diagnostics report, and optionally exports the catalog as JSON.
"""

import argparse
import logging
import sys
from typing import List, Optional
from .catalog import load_catalog
from .config import CatalogConfig
from .errors import CatalogError
from .logging_config import setup_logging, get_logger
from .schema_registry import default_registry, load_schema_file
from .tileset_reader import read_tables
from .utils import save_json

EXIT_OK = 0
EXIT_EXCLUDED = 1
EXIT_LOAD_FAILED = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tilecatalog",
        description="Build an entity template catalog from Tiled tileset properties"
    )
    parser.add_argument(
        "tables",
        nargs="+",
        help="Tileset files (.tsx/.tsj), lowest priority first"
    )
    parser.add_argument(
        "--schemas",
        default=None,
        help="JSON schema file replacing the built-in kind schemas"
    )
    parser.add_argument(
        "--extension-tolerant",
        action="store_true",
        default=None,
        help="Keep properties that are not part of a kind's schema"
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Number of threads merging tiles (default: 1)"
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        default=None,
        help="Exit with status 1 if any tile was excluded"
    )
    parser.add_argument(
        "--kind",
        default=None,
        help="List the templates of one kind"
    )
    parser.add_argument(
        "--output", "-o",
        default=None,
        help="Write the catalog as JSON to this file"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Show detailed progress information"
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Only log errors (the report on stdout is unaffected)"
    )
    parser.add_argument(
        "--debug", "-d",
        action="store_true",
        help="Show debug information (implies verbose)"
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(verbose=args.verbose, debug=args.debug,
                  level=logging.ERROR if args.quiet else None)
    logger = get_logger()

    try:
        config = CatalogConfig.from_env().with_overrides(
            extension_tolerant=args.extension_tolerant,
            workers=args.workers,
            strict=args.strict,
        )
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        return EXIT_LOAD_FAILED

    try:
        registry = load_schema_file(args.schemas) if args.schemas else default_registry()
        tables = read_tables(args.tables)
        result = load_catalog(tables, registry, config)
    except CatalogError as e:
        logger.error(f"Load failed: {e}")
        return EXIT_LOAD_FAILED

    catalog = result.catalog
    print(f"{len(catalog)} templates from {len(tables)} tables")
    for kind in catalog.kinds():
        print(f"  {kind}: {len(catalog.all_of_kind(kind))}")

    if args.kind:
        print(f"\n{args.kind}:")
        for template in catalog.all_of_kind(args.kind):
            fields = ", ".join(f"{k}={v}" for k, v in template.fields.items() if k != "kind")
            print(f"  {template.tile_id}: {fields}")

    lines = result.diagnostics.format_lines()
    if lines:
        print(f"\nDiagnostics ({len(result.diagnostics.errors())} errors, "
              f"{len(result.diagnostics.warnings())} warnings):")
        for line in lines:
            print(f"  {line}")

    if args.output:
        save_json(catalog.to_dict(), args.output)
        logger.info(f"Catalog written to {args.output}")

    if config.strict and not result.ok:
        return EXIT_EXCLUDED
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
