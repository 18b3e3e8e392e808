"""
Centralized logging configuration for the AutoNow data store.

This module sets up structured logging with:
- Environment-based configuration (dev vs production) from LoggingSettings
- JSON formatting for production, pretty console for development
- Redaction of credentials (passwords, session and reset tokens)
"""

import logging
import sys
from typing import Optional

import structlog
from structlog.types import EventDict, Processor

from config import LoggingSettings

# Sensitive fields to redact from logs
REDACTED_FIELDS = {
    "password",
    "password_hash",
    "new_password",
    "token",
    "secret",
}

# Any key ending in one of these is treated as a credential. Identifiers and
# counters such as ``token_count`` or ``reset_token_id`` are left readable.
_SENSITIVE_SUFFIXES = ("password", "password_hash", "_token", "secret")


def is_sensitive_key(key: str) -> bool:
    lowered = key.lower()
    return lowered in REDACTED_FIELDS or lowered.endswith(_SENSITIVE_SUFFIXES)


def redact_sensitive_fields(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Redact sensitive fields from logs."""
    for key in list(event_dict.keys()):
        if is_sensitive_key(key):
            event_dict[key] = "***REDACTED***"
    return event_dict


def filter_exceptions(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Format exceptions properly for logging."""
    exc_info = event_dict.pop("exc_info", None)
    if exc_info:
        event_dict["exception"] = structlog.processors.format_exc_info(
            logger, method_name, {"exc_info": exc_info}
        )["exception"]
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
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        redact_sensitive_fields,
        filter_exceptions,
    ]

    if log_format == "json":
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(
            colors=sys.stdout.isatty(),
            pad_event_to=15,
            sort_keys=False,
        )

    structlog.configure(
        processors=shared_processors
        + [structlog.processors.format_exc_info, renderer],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Module-level loggers must pick up a later setup_logging() call
        cache_logger_on_first_use=False,
    )


def configure_stdlib_logging(log_level: str = "INFO") -> None:
    """Route stdlib logging to stdout at the configured level."""
    level = getattr(logging, log_level.upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    # basicConfig is a no-op once handlers exist
    logging.getLogger().setLevel(level)

    # redis-py logs connection churn at DEBUG
    logging.getLogger("redis").setLevel(logging.WARNING)


def setup_logging(settings: Optional[LoggingSettings] = None) -> None:
    """
    Initialize logging for the store.

    With no *settings* they are read from the environment. Safe to call more
    than once; build_database() calls it again with AppSettings.logging.
    """
    settings = settings or LoggingSettings()
    configure_stdlib_logging(settings.log_level)
    configure_structlog(settings.log_format)

    logger = structlog.get_logger(__name__)
    logger.debug(
        "logging_initialized",
        env=settings.env,
        log_level=settings.log_level,
        log_format=settings.log_format,
    )


# Initialize logging when module is imported
setup_logging()
