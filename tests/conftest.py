from __future__ import annotations

import logging
from pathlib import Path

import pytest

from tilecatalog.catalog import reset_catalog
from tilecatalog.definition_merger import DefinitionMerger
from tilecatalog.logging_config import LOGGER_NAME
from tilecatalog.schema_registry import SchemaRegistry, default_registry

FIXTURES = Path(__file__).resolve().parent / "fixtures"


@pytest.fixture()
def fixtures_dir() -> Path:
    return FIXTURES


@pytest.fixture()
def registry() -> SchemaRegistry:
    return default_registry()


@pytest.fixture()
def merger(registry: SchemaRegistry) -> DefinitionMerger:
    return DefinitionMerger(registry)


@pytest.fixture(autouse=True)
def _fresh_catalog_singleton():
    """Keep the process-wide catalog from leaking between tests."""
    reset_catalog()
    yield
    reset_catalog()


@pytest.fixture(autouse=True)
def _restore_package_logger():
    """Undo handlers that setup_logging() attached during a test."""
    logger = logging.getLogger(LOGGER_NAME)
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    yield
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    for handler in handlers:
        logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = propagate
