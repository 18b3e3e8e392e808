"""
Logger factory for the AutoNow data store.

Every module obtains its logger here:

    >>> from shared.logging import get_logger
    >>> log = get_logger(__name__)
    >>> log.info("user_registered", user_id="abc123")
"""

import structlog
from structlog.stdlib import BoundLogger

from shared.logging_config import configure_structlog, setup_logging


def get_logger(name: str) -> BoundLogger:
    """Return a structlog logger bound to *name* (usually ``__name__``)."""
    return structlog.get_logger(name)


def log_with_context(logger: BoundLogger, **context) -> BoundLogger:
    """
    Bind context to a logger for all subsequent log calls.

    Example:
        >>> log = log_with_context(get_logger(__name__), user_id="123")
        >>> log.info("history_cleared")  # includes user_id
    """
    return logger.bind(**context)


__all__ = [
    "get_logger",
    "log_with_context",
    "configure_structlog",
    "setup_logging",
]
