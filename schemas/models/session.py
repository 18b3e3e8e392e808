"""
Session record models.

Maps to the ``user_sessions`` and ``driver_sessions`` collections.

A session is valid only while is_active is true AND expires_at lies in the
future. Expiry is never written back: an expired row keeps is_active=True
until cleanup removes it, so every reader must go through is_valid().
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from schemas.models.base import IdentifiedRecord, UtcDatetime
from shared.datetime_utils import is_expired


class SessionDoc(IdentifiedRecord):
    token: str
    created_at: UtcDatetime
    expires_at: UtcDatetime
    is_active: bool = True
    user_agent: Optional[str] = None
    ip_address: Optional[str] = None

    @property
    def owner_id(self) -> str:
        raise NotImplementedError

    def is_expired(self, now: datetime) -> bool:
        return is_expired(self.expires_at, now)

    def is_valid(self, now: datetime) -> bool:
        return self.is_active and not self.is_expired(now)


class UserSessionDoc(SessionDoc):
    """Document model for the ``user_sessions`` collection."""

    user_id: str

    @property
    def owner_id(self) -> str:
        return self.user_id


class DriverSessionDoc(SessionDoc):
    """Document model for the ``driver_sessions`` collection."""

    driver_id: str

    @property
    def owner_id(self) -> str:
        return self.driver_id
