"""Structured logging configuration.

This module initializes a logger with a stable structured format.
Every module asks for its logger here; only entry points call
``configure_logging``.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

from core.constants import DEFAULT_LOG_LEVEL
from core.errors import BencherConfigError


def configure_logging(level_name: str = DEFAULT_LOG_LEVEL) -> None:
    """Configure structlog processors and the minimum level.

    Args:
        level_name: Standard logging level name, e.g. INFO.

    Raises:
        BencherConfigError: If the level name is unknown.
    """
    level = logging.getLevelName(level_name.upper())
    if not isinstance(level, int):
        raise BencherConfigError(
            f"Unknown log level '{level_name}'. Use DEBUG, INFO, WARNING or ERROR."
        )
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str) -> Any:
    """Return a module logger instance.

    Args:
        name: Logger name, usually __name__.

    Returns:
        A structlog logger with structured output.
    """
    return structlog.get_logger(name)
