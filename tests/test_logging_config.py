from __future__ import annotations

import io
import logging

from tilecatalog.logging_config import get_logger, setup_logging


def test_records_go_to_the_given_stream() -> None:
    stream = io.StringIO()
    setup_logging(stream=stream)

    get_logger("catalog").warning("Excluding tile 5")
    get_logger("catalog").info("Loaded 3 templates")

    output = stream.getvalue()
    assert "tilecatalog.catalog - WARNING - Excluding tile 5" in output
    assert "Loaded 3 templates" not in output


def test_verbose_and_explicit_level() -> None:
    stream = io.StringIO()
    setup_logging(verbose=True, stream=stream)
    get_logger("catalog").info("Loaded 3 templates")
    assert "Loaded 3 templates" in stream.getvalue()

    quiet = io.StringIO()
    setup_logging(verbose=True, level=logging.ERROR, stream=quiet)
    get_logger("catalog").warning("Excluding tile 5")
    assert quiet.getvalue() == ""


def test_repeated_setup_keeps_one_handler() -> None:
    setup_logging(stream=io.StringIO())
    logger = setup_logging(debug=True, stream=io.StringIO())

    assert len(logger.handlers) == 1
    assert logger.level == logging.DEBUG
    assert get_logger().name == "tilecatalog"
