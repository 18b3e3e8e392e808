"""
Backup document and store metadata models.

BackupDocument is the single portable snapshot written by
BackupService.backup() and consumed by restore(). The five collection arrays
are required (empty arrays are fine); version and exportedAt are informative
and unknown top-level keys are ignored so newer exports still load.

DatabaseConfig lives under the ``db_config`` key next to the collections.
"""

from __future__ import annotations

from typing import Optional

from schemas.models.base import StoreBaseModel, UtcDatetime
from schemas.models.session import DriverSessionDoc, UserSessionDoc
from schemas.models.token import PasswordResetDoc
from schemas.models.user import DriverDoc, UserDoc


class BackupDocument(StoreBaseModel):
    version: Optional[str] = None
    exported_at: Optional[UtcDatetime] = None
    users: list[UserDoc]
    drivers: list[DriverDoc]
    user_sessions: list[UserSessionDoc]
    driver_sessions: list[DriverSessionDoc]
    password_resets: list[PasswordResetDoc]


class DatabaseConfig(StoreBaseModel):
    version: str
    last_updated: UtcDatetime
    last_backup: Optional[UtcDatetime] = None
