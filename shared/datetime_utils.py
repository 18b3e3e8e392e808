"""
Date/time helpers — framework-agnostic.

All persisted timestamps are timezone-aware UTC. Services take a ``clock``
callable (defaulting to utc_now) so expiry can be exercised in tests without
patching the datetime module.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def is_expired(expires_at: datetime, now: datetime) -> bool:
    """A row is expired once *now* has reached its expiry instant."""
    return expires_at <= now
