"""
Logging setup for tilecatalog.

Library modules only create `tilecatalog.<module>` loggers; nothing is
configured until an application (or the CLI) calls setup_logging(). Log
records go to stderr so the CLI's report on stdout stays clean.
"""

import logging
import sys
from typing import Optional, TextIO

LOGGER_NAME = 'tilecatalog'
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def _level_for(verbose: bool, debug: bool) -> int:
    if debug:
        return logging.DEBUG
    if verbose:
        return logging.INFO
    return logging.WARNING


def setup_logging(
    verbose: bool = False,
    debug: bool = False,
    level: Optional[int] = None,
    stream: Optional[TextIO] = None
) -> logging.Logger:
    """
    Attach a single stream handler to the tilecatalog logger.

    Args:
        verbose: Show INFO messages
        debug: Show DEBUG messages (implies verbose)
        level: Explicit level, overriding verbose/debug (e.g. logging.ERROR
            to silence per-tile warnings)
        stream: Destination (defaults to the current sys.stderr)

    Returns:
        The configured 'tilecatalog' logger
    """
    if level is None:
        level = _level_for(verbose, debug)

    logger = logging.getLogger(LOGGER_NAME)
    # Calling again replaces the handler instead of stacking another one
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Logger for a tilecatalog module ('tilecatalog.<name>')."""
    if name:
        return logging.getLogger(f'{LOGGER_NAME}.{name}')
    return logging.getLogger(LOGGER_NAME)
