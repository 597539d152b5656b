"""
Centralized structured logging for tokenkeeper.

This module sets up structlog with:
- JSON formatting for production, pretty console for development
- Redaction of secrets (token values, API keys) from every event
- stdlib logging as the sink, so uvicorn and library logs share a stream

Call ``setup_logging()`` once at startup (``create_app`` does this); modules
obtain loggers with ``get_logger(__name__)``.
"""

from __future__ import annotations

import logging
import os
import sys
from datetime import datetime, timezone
from typing import Optional

import structlog
from structlog.stdlib import BoundLogger
from structlog.types import EventDict, Processor

REDACTED = "***REDACTED***"

# Sensitive fields to redact from logs
REDACTED_FIELDS = {
    "token",
    "secret",
    "api_key",
    "x-api-key",
    "authorization",
    "password",
}

# Substrings that mark a field as sensitive
SENSITIVE_MARKERS = ("token", "key", "secret", "password")

# Identifier and bookkeeping fields that contain a sensitive marker in their
# name but never carry credential material
SAFE_FIELDS = {
    "level",
    "event",
    "timestamp",
    "logger",
    "token_id",
    "token_ids",
    "token_count",
    "stale_token_count",
    "api_key_configured",
}


def get_logger(name: str) -> BoundLogger:
    """
    Get a configured logger instance.

    Args:
        name: Logger name (typically __name__ of the calling module)

    Example:
        >>> log = get_logger(__name__)
        >>> log.info("token_created", token_id="token_0123456789abcdef")
    """
    return structlog.get_logger(name)


def add_timestamp(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add ISO format timestamp to event dict."""
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def redact_sensitive_fields(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Redact sensitive fields from logs."""
    for key in list(event_dict.keys()):
        if key in SAFE_FIELDS:
            continue
        lowered = key.lower()
        if lowered in REDACTED_FIELDS or any(
            marker in lowered for marker in SENSITIVE_MARKERS
        ):
            event_dict[key] = REDACTED
    return event_dict


def configure_structlog(log_format: str = "console") -> None:
    """
    Configure structlog with appropriate processors for the environment.

    Production: JSON formatting for easy parsing
    Development: Pretty console formatting with colors
    """
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_timestamp,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        redact_sensitive_fields,
        structlog.processors.format_exc_info,
    ]

    if log_format == "json":
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(
            colors=True,
            pad_event=15,
            sort_keys=False,
        )

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_stdlib_logging(log_level: str = "INFO") -> None:
    """Route stdlib logging to stdout at the configured level."""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO),
    )

    # Reduce noise from third-party libraries
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("redis").setLevel(logging.WARNING)


def setup_logging(
    log_level: Optional[str] = None, log_format: Optional[str] = None
) -> None:
    """
    Initialize logging system for the application.

    Explicit arguments win; otherwise LOG_LEVEL / LOG_FORMAT from the
    environment are used.
    """
    level = log_level or os.getenv("LOG_LEVEL", "INFO")
    fmt = log_format or os.getenv("LOG_FORMAT", "console")

    configure_stdlib_logging(level)
    configure_structlog(fmt)

    get_logger(__name__).info("logging_initialized", log_level=level, log_format=fmt)


__all__ = [
    "REDACTED",
    "get_logger",
    "redact_sensitive_fields",
    "configure_structlog",
    "setup_logging",
]
