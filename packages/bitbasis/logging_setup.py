"""Logging configuration for the ``bitbasis`` package.

Entrypoints (the CLI, a notebook, a host application) call
``configure_logging`` once; every library module obtains its logger through
``get_logger("bitbasis.<module>")`` and never attaches handlers of its own.
Until configuration happens the package logger carries a ``NullHandler`` so
importing ``bitbasis`` stays silent.

The level resolves in this order: explicit argument, ``BITBASIS_LOG_LEVEL``,
then ``INFO``.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

ROOT_LOGGER_NAME = "bitbasis"
DEFAULT_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"

_configured = False


def resolve_level(level: int | str | None = None) -> int:
    """Translate ``level`` (int, digit string or level name) into an int."""

    if level is None:
        level = os.getenv("BITBASIS_LOG_LEVEL")
    if isinstance(level, int):
        return level
    if isinstance(level, str) and level.strip():
        name = level.strip().upper()
        if name.isdigit():
            return int(name)
        numeric = logging.getLevelName(name)
        if isinstance(numeric, int):
            return numeric
    return logging.INFO


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] | None = None,
) -> logging.Logger:
    """Attach a single stream handler to the ``bitbasis`` logger.

    Repeated calls are no-ops and return the already configured logger.
    Output goes to ``stream`` (default ``sys.stderr``) so command output on
    stdout stays machine-readable.
    """

    global _configured
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    if _configured:
        return logger

    for h in list(logger.handlers):
        if isinstance(h, logging.NullHandler):
            logger.removeHandler(h)

    numeric = resolve_level(level)
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(fmt or DEFAULT_FORMAT))
    handler.setLevel(numeric)
    logger.addHandler(handler)
    logger.setLevel(numeric)
    logger.propagate = False

    _configured = True
    return logger


def get_logger(name: str) -> logging.Logger:
    """Return ``logging.getLogger(name)``, keeping the package quiet by default."""

    root = logging.getLogger(ROOT_LOGGER_NAME)
    if not _configured and not root.handlers:
        root.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger", "resolve_level"]
