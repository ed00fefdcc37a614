"""Structlog-based logging for treekeeper.

Services log structured events (``relationship.created``,
``permission.denied``) and never print. Callers can attach request data
such as a request id with ``structlog.contextvars.bind_contextvars``; it
is merged into every event logged while bound.
"""
from __future__ import annotations

from typing import Literal

import logging
import structlog

from treekeeper.config import CONFIG

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def configure_logging(level: LogLevel | None = None, *, json: bool = True) -> None:
    """Configure structlog for the library.

    ``level`` defaults to ``TREEKEEPER_LOG_LEVEL``. Pass ``json=False`` for
    human-readable console output during development.
    """
    threshold = getattr(logging, level or CONFIG.log_level)
    renderer = structlog.processors.JSONRenderer() if json else structlog.dev.ConsoleRenderer(colors=False)
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="ISO", utc=True),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(threshold),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = "treekeeper"):
    return structlog.get_logger(name)


configure_logging()
