"""Structured logging setup built on structlog.

stdlib ``logging`` stays the transport so third-party records share one
handler; structlog renders both. ``configure_logging`` is called once by the
CLI. Library users may skip it and route the ``stashtree`` logger themselves.
"""

from __future__ import annotations

import logging
import os

import structlog
from structlog.typing import FilteringBoundLogger

LOG_LEVELS = ("debug", "info", "warning", "error")

_CONFIGURED = False


def configure_logging(level: str = "warning", fmt: str | None = None, colors: bool = True) -> None:
    """Route stdlib and structlog records through a single stderr handler.

    ``fmt`` is ``"pretty"`` or ``"json"``; when omitted the ``STASHTREE_LOG_FORMAT``
    environment variable decides, defaulting to pretty console output.
    """
    global _CONFIGURED

    log_format = (fmt or os.getenv("STASHTREE_LOG_FORMAT", "pretty")).lower()
    if log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=colors)

    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=renderer,
            foreign_pre_chain=[
                structlog.stdlib.add_logger_name,
                structlog.stdlib.add_log_level,
                structlog.processors.TimeStamper(fmt="iso"),
            ],
        )
    )
    package_logger = logging.getLogger("stashtree")
    package_logger.handlers = [handler]
    package_logger.setLevel(_level_value(level))
    package_logger.propagate = False

    if not _CONFIGURED:
        structlog.configure(
            processors=[
                structlog.stdlib.filter_by_level,
                structlog.stdlib.add_logger_name,
                structlog.stdlib.add_log_level,
                structlog.stdlib.PositionalArgumentsFormatter(),
                structlog.processors.StackInfoRenderer(),
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
            ],
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )
        _CONFIGURED = True


def _level_value(level: str) -> int:
    value = logging.getLevelName(str(level).upper())
    return value if isinstance(value, int) else logging.WARNING


def get_logger(name: str) -> FilteringBoundLogger:
    """Return a structlog logger bound to the stdlib logger ``name``."""
    return structlog.stdlib.get_logger(name)


__all__ = ["LOG_LEVELS", "configure_logging", "get_logger"]
