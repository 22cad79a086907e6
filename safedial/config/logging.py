"""Structured logging configuration using structlog."""

from __future__ import annotations

import logging
import sys

import structlog

from safedial.config.settings import Settings, get_settings


def configure_logging(settings: Settings | None = None) -> None:
    """Route safedial's structlog events through stdlib logging.

    Dial context (``dial_address``, ``dial_network``) bound by the dialer is
    merged into every event emitted while a dial is in flight.
    """
    settings = settings or get_settings()
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
    ]
    if settings.log_json or not sys.stderr.isatty():
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level)
    logging.getLogger("safedial").setLevel(level)
