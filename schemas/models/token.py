"""
Password reset token model.

Maps to the ``password_resets`` collection.

is_used flips to True exactly once, when the token is redeemed; a used token
stays dead even if expires_at is still in the future. account_type tells the
reset flow which account collection account_id points into.
"""

from __future__ import annotations

from datetime import datetime

from schemas.models.base import IdentifiedRecord, UtcDatetime
from schemas.models.user import AccountKind
from shared.datetime_utils import is_expired


class PasswordResetDoc(IdentifiedRecord):
    """Document model for the ``password_resets`` collection."""

    account_id: str
    account_type: AccountKind = AccountKind.USER
    token: str
    created_at: UtcDatetime
    expires_at: UtcDatetime
    is_used: bool = False

    def is_expired(self, now: datetime) -> bool:
        return is_expired(self.expires_at, now)

    def is_redeemable(self, now: datetime) -> bool:
        return not self.is_used and not self.is_expired(now)
