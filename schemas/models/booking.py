"""
Booking history record model.

Stored per rider under ``booking_history_<userId>``, newest first.

``driver`` is a denormalised snapshot taken at booking time, not a reference
into the drivers collection: renaming a driver later must not rewrite a
rider's past trips.
"""

from __future__ import annotations

from typing import Literal, Optional, Union

from pydantic import Field

from schemas.models.base import IdentifiedRecord, StoreBaseModel, UtcDatetime

BookingStatus = Literal["completed", "cancelled", "in_progress"]


class DriverSummary(StoreBaseModel):
    id: Union[int, str]
    name: str
    vehicle_number: str


class BookingHistoryItem(IdentifiedRecord):
    pickup: str
    destination: str
    distance: float = Field(ge=0)  # km
    fare: float = Field(ge=0)
    driver: DriverSummary
    status: BookingStatus
    booking_date: UtcDatetime
    completed_date: Optional[UtcDatetime] = None
    duration: Optional[int] = Field(default=None, ge=0)  # minutes
    rating: Optional[float] = Field(default=None, ge=0, le=5)
    feedback: Optional[str] = None
