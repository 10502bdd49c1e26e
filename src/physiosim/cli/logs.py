"""structlog configuration for command line runs."""

from __future__ import annotations
import logging
import sys
from typing import Any

import structlog

from ..contracts.errors import ValidationError

LOG_LEVELS = ("debug", "info", "warning", "error")


def stderr_logger_factory(*args: Any) -> structlog.PrintLogger:
    """Print logger bound to the current ``sys.stderr``.

    The stream is looked up each time a logger is created, so a replaced
    or closed stderr (test runners, redirected output) is never written to.
    """
    return structlog.PrintLogger(file=sys.stderr)


def configure_logging(level: str = "warning", json_logs: bool = False) -> None:
    """Configure structlog processors and the level filter.

    Log lines go to stderr so tables and CSV on stdout stay clean.

    Raises:
        ValidationError: If ``level`` is not a known level name
    """
    if level.lower() not in LOG_LEVELS:
        raise ValidationError(f"Unknown log level: {level}", {"valid": list(LOG_LEVELS)})
    renderer = structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer(colors=False)
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="ISO"),
            structlog.processors.add_log_level,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, level.upper())),
        logger_factory=stderr_logger_factory,
        cache_logger_on_first_use=False,
    )
