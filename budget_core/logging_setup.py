"""Centralized logging configuration for the ``budget_core`` package.

Entrypoints (the CLI, the API factory) call ``configure_logging`` once. Library
modules only call ``get_logger(__name__)`` and never attach handlers.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO, Optional, Union

_PKG_LOGGER_NAME = "budget_core"
_CONFIGURED = False


def _parse_level(level: Union[int, str, None]) -> int:
    if level is None:
        # Env override when no explicit level is given.
        level = os.getenv("DAILY_BUDGET_LOG_LEVEL")
    if isinstance(level, int):
        return level
    if isinstance(level, str):
        level = level.strip().upper()
        if level.isdigit():
            return int(level)
        numeric = getattr(logging, level, None)
        if isinstance(numeric, int):
            return numeric
    return logging.WARNING


def configure_logging(
    level: Union[int, str, None] = None,
    *,
    fmt: Optional[str] = None,
    stream: Optional[IO[str]] = None,
) -> None:
    """Attach a single ``StreamHandler`` to the package logger, once.

    ``stream`` defaults to the current ``sys.stderr``.
    """
    global _CONFIGURED
    if _CONFIGURED:
        return

    logger = logging.getLogger(_PKG_LOGGER_NAME)
    for handler in list(logger.handlers):
        if isinstance(handler, logging.NullHandler):
            logger.removeHandler(handler)

    numeric = _parse_level(level)
    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setLevel(numeric)
    handler.setFormatter(
        logging.Formatter(fmt or "%(asctime)s %(name)s %(levelname)s %(message)s")
    )
    logger.setLevel(numeric)
    logger.addHandler(handler)
    logger.propagate = False

    _CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    """Return a logger, giving the package logger a NullHandler until configured."""
    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if not _CONFIGURED and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)
