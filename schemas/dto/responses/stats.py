"""
Derived statistics DTOs — computed on demand, never stored.

DatabaseStats  — BackupService.stats()
CleanupReport  — BackupService.cleanup_expired_data()
BookingStats   — BookingHistoryService.stats()
"""

from __future__ import annotations

from typing import Optional

from pydantic import ConfigDict

from schemas.models.base import StoreBaseModel, UtcDatetime


class DatabaseStats(StoreBaseModel):
    model_config = ConfigDict(frozen=True)

    total_users: int
    active_users: int
    total_drivers: int = 0
    active_drivers: int = 0
    # Sessions that would pass validation right now, riders and drivers
    total_sessions: int
    last_backup: Optional[UtcDatetime] = None


class CleanupReport(StoreBaseModel):
    model_config = ConfigDict(frozen=True)

    user_sessions_removed: int = 0
    driver_sessions_removed: int = 0
    password_resets_removed: int = 0

    @property
    def total_removed(self) -> int:
        return (
            self.user_sessions_removed
            + self.driver_sessions_removed
            + self.password_resets_removed
        )


class BookingStats(StoreBaseModel):
    model_config = ConfigDict(frozen=True)

    total_bookings: int
    completed_bookings: int
    cancelled_bookings: int
    total_spent: float
    total_distance: float
    average_rating: float
