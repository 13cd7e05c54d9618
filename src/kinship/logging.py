"""Structlog-based logging for kinship.

Library code logs through structlog; no print() outside the CLI. The CLI
configures logging once at startup, writing JSON lines to stderr so they
stay apart from its rich output on stdout.
"""
from __future__ import annotations

import logging
import sys

import structlog


def resolve_level(level: str | int | None) -> int:
    """Map a level name such as ``"warning"`` to its number; unknown names mean INFO."""
    if isinstance(level, int):
        return level
    value = logging.getLevelNamesMapping().get(str(level or "").strip().upper())
    return value if value is not None else logging.INFO


def configure_logging(level: str | int | None = "INFO") -> None:
    threshold = resolve_level(level)
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=threshold)
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="ISO"),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(threshold),
        logger_factory=structlog.PrintLoggerFactory(sys.stderr),
        cache_logger_on_first_use=True,
    )
