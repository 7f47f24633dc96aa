"""Structured logging configuration.

This module initializes structlog with a stable JSON event format.
Every logger is bound to the Directus subsystem so log lines from the
ingest pipeline are easy to separate from the site builder's output.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

from core.constants import LOG_SUBSYSTEM


def configure_logging(verbose: bool = False) -> None:
    """Configure structlog processors and the minimum log level.

    Args:
        verbose: Emit debug events when True, info and above otherwise.
    """
    level = logging.DEBUG if verbose else logging.INFO
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
        A structlog logger bound to the Directus subsystem.
    """
    return structlog.get_logger(name, subsystem=LOG_SUBSYSTEM, module=name)
