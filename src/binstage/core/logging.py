"""Logging setup for binstage.

Every module obtains its logger through :func:`get_logger` so that all
output is routed through the single ``binstage`` handler configured by the
CLI.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional, TextIO

ROOT_LOGGER_NAME = "binstage"

_LOG_FORMAT = "%(levelname)s [%(name)s] %(message)s"
_DEBUG_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def get_logger(name: str) -> logging.Logger:
    """Return a logger namespaced under ``binstage``.

    Args:
        name: Usually ``__name__`` of the calling module.

    Returns:
        Logger instance.
    """
    if name != ROOT_LOGGER_NAME and not name.startswith(f"{ROOT_LOGGER_NAME}."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


def configure_logging(
    debug: bool = False,
    verbose: bool = False,
    quiet: bool = False,
    stream: Optional[TextIO] = None,
) -> None:
    """Configure the ``binstage`` logger.

    Level selection (first match wins): debug -> DEBUG, quiet -> ERROR,
    verbose -> INFO, otherwise WARNING. Calling this again replaces the
    previously installed handler.

    Args:
        debug: Enable debug logging.
        verbose: Enable info-level logging.
        quiet: Only log errors.
        stream: Destination stream (defaults to stderr).
    """
    if debug:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(_DEBUG_LOG_FORMAT if debug else _LOG_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False
