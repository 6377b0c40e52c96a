"""
Structured logging for the credibility engine.

Every line is one JSON object (LOG_FORMAT=json, the default) or a
console line (any other LOG_FORMAT) carrying ``event_type``, ``level``,
an ISO-8601 UTC ``timestamp`` and the emitting ``logger``. Request-scoped
fields such as ``business_id`` are carried through structlog contextvars,
so engine modules never thread them by hand.

Depends on structlog and the stdlib only; nothing here imports
backend_credibility, which keeps the package importable from any module.
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = os.getenv("LOG_FORMAT", "json").strip().lower()


def _event_type(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Expose the event name as event_type and mirror it into message."""
    if "event" in event_dict and "event_type" not in event_dict:
        event_dict["event_type"] = event_dict.pop("event")
    event_dict.setdefault("message", str(event_dict.get("event_type", "")))
    return event_dict


def _renderer() -> Any:
    if LOG_FORMAT == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def configure_structlog() -> None:
    """Install the processor chain; safe to call again after changing LOG_FORMAT."""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True, key="timestamp"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            _event_type,
            _renderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, LOG_LEVEL, logging.INFO)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )


if not structlog.is_configured():
    configure_structlog()


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Logger for one module, tagged with ``logger=name``.

        logger = get_logger(__name__)
        logger.info("credibility_scored", total_score=72, trust_tier=2)

    emits {"event_type": "credibility_scored", "total_score": 72,
    "trust_tier": 2, "level": "info", "logger": "...", "timestamp": "..."}.
    """
    return structlog.get_logger(name).bind(logger=name)


@contextmanager
def business_context(business_id: str) -> Iterator[None]:
    """Attach business_id to every log line emitted inside the block."""
    with structlog.contextvars.bound_contextvars(business_id=business_id):
        yield
