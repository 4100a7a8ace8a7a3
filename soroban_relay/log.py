"""
Structured logging (structlog).

``configure_logging()`` is called once by the embedding application;
modules only call ``get_logger(__name__)``. Until configured, structlog's
defaults apply, which keeps test output readable.

Never log secrets: relay credentials, anti-automation tokens and key
material stay out of event dicts. Addresses and transaction hashes are
public and fine to log.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog


def configure_logging(level: str = "INFO", fmt: str = "console") -> None:
    """Configure structlog and the stdlib root logger.

    Args:
        level: Log level name (DEBUG, INFO, ...).
        fmt: "json" for machine-readable output, anything else for the
            console renderer.
    """
    level_value = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level_value)

    renderer: Any
    if fmt.strip().lower() == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level_value),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> Any:
    """Return a structlog logger bound to a module name."""
    return structlog.get_logger(name)
