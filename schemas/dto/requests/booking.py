"""
Request DTOs for the booking history service.

NewBookingRequest — BookingHistoryService.add()
BookingUpdate     — BookingHistoryService.update()
BookingFilters    — BookingHistoryService.filter()
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from schemas.models.base import UtcDatetime
from schemas.models.booking import BookingStatus, DriverSummary


class _RequestModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )


class NewBookingRequest(_RequestModel):
    """A booking as the UI submits it; id and bookingDate are assigned on add."""

    pickup: str = Field(min_length=1)
    destination: str = Field(min_length=1)
    distance: float = Field(ge=0)
    fare: float = Field(ge=0)
    driver: DriverSummary
    status: BookingStatus = "in_progress"
    completed_date: Optional[UtcDatetime] = None
    duration: Optional[int] = Field(default=None, ge=0)
    rating: Optional[float] = Field(default=None, ge=0, le=5)
    feedback: Optional[str] = None


class BookingUpdate(_RequestModel):
    """Partial update; id and bookingDate are not updatable."""

    pickup: Optional[str] = Field(default=None, min_length=1)
    destination: Optional[str] = Field(default=None, min_length=1)
    distance: Optional[float] = Field(default=None, ge=0)
    fare: Optional[float] = Field(default=None, ge=0)
    driver: Optional[DriverSummary] = None
    status: Optional[BookingStatus] = None
    completed_date: Optional[UtcDatetime] = None
    duration: Optional[int] = Field(default=None, ge=0)
    rating: Optional[float] = Field(default=None, ge=0, le=5)
    feedback: Optional[str] = None


class BookingFilters(_RequestModel):
    """All provided criteria must match (AND). ``status="all"`` disables that filter.

    ``start``/``end`` bound bookingDate inclusively; either may be omitted.
    ``driver`` matches driver name or vehicle number, case-insensitively.
    """

    status: Optional[Literal["all", "completed", "cancelled", "in_progress"]] = None
    start: Optional[UtcDatetime] = None
    end: Optional[UtcDatetime] = None
    driver: Optional[str] = None

    @model_validator(mode="after")
    def _check_range(self) -> "BookingFilters":
        if self.start and self.end and self.start > self.end:
            raise ValueError("start must not be after end")
        return self
