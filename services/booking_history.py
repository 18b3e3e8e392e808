"""
Per-rider booking history.

Each rider's ledger is its own collection document, stored under
``<prefix>booking_history_<userId>``; with no current user the shared
``<prefix>booking_history`` key is used. set_current_user() must be called
whenever the signed-in rider changes, and every read and write afterwards
sees only that rider's ledger.

Items are kept newest first: add() prepends.
"""

from __future__ import annotations

import math
from typing import Any, Optional

from pydantic import ValidationError

from errors import InvalidInputError
from schemas.dto.requests.booking import BookingFilters, BookingUpdate, NewBookingRequest
from schemas.dto.responses.stats import BookingStats
from schemas.models.booking import BookingHistoryItem
from shared.datetime_utils import Clock, utc_now
from shared.generators import generate_id
from shared.logging import get_logger
from storage.protocol import StorageAdapter
from store.collection import JsonCollection

log = get_logger(__name__)

HISTORY_KEY = "booking_history"

SAMPLE_BOOKINGS: list[dict[str, Any]] = [
    {
        "id": "sample_1",
        "pickup": "Vadanappally Bus Stand",
        "destination": "Kochi Airport",
        "distance": 45.2,
        "fare": 567,
        "driver": {"id": 1, "name": "Sunil P.", "vehicleNumber": "KL 47 B 5501"},
        "status": "completed",
        "bookingDate": "2024-01-15T10:30:00.000Z",
        "completedDate": "2024-01-15T11:45:00.000Z",
        "duration": 75,
        "rating": 5,
        "feedback": "Excellent service, very punctual!",
    },
    {
        "id": "sample_2",
        "pickup": "Vadanappally Market",
        "destination": "Thrissur Railway Station",
        "distance": 28.5,
        "fare": 367,
        "driver": {"id": 2, "name": "Ravi K.", "vehicleNumber": "KL 47 C 1299"},
        "status": "completed",
        "bookingDate": "2024-01-14T14:20:00.000Z",
        "completedDate": "2024-01-14T15:30:00.000Z",
        "duration": 70,
        "rating": 4,
        "feedback": "Good driver, safe ride",
    },
    {
        "id": "sample_3",
        "pickup": "Vadanappally Center",
        "destination": "Guruvayur Temple",
        "distance": 35.8,
        "fare": 454,
        "driver": {"id": 4, "name": "Mahesh T.", "vehicleNumber": "KL 47 D 2134"},
        "status": "completed",
        "bookingDate": "2024-01-13T08:15:00.000Z",
        "completedDate": "2024-01-13T09:30:00.000Z",
        "duration": 75,
        "rating": 5,
        "feedback": "Very comfortable ride",
    },
    {
        "id": "sample_4",
        "pickup": "Vadanappally Hospital",
        "destination": "Kochi City Center",
        "distance": 42.1,
        "fare": 530,
        "driver": {"id": 5, "name": "Krishnan M.", "vehicleNumber": "KL 47 E 9876"},
        "status": "cancelled",
        "bookingDate": "2024-01-12T16:45:00.000Z",
        "completedDate": "2024-01-12T17:00:00.000Z",
    },
    {
        "id": "sample_5",
        "pickup": "Vadanappally School",
        "destination": "Thrissur Bus Stand",
        "distance": 25.3,
        "fare": 329,
        "driver": {"id": 1, "name": "Sunil P.", "vehicleNumber": "KL 47 B 5501"},
        "status": "completed",
        "bookingDate": "2024-01-11T12:00:00.000Z",
        "completedDate": "2024-01-11T13:15:00.000Z",
        "duration": 75,
        "rating": 4,
        "feedback": "On time and professional",
    },
]


def _round_tenth(value: float) -> float:
    # Half-up: 4.25 -> 4.3
    return math.floor(value * 10 + 0.5) / 10


def _input_error(message: str, exc: ValidationError) -> InvalidInputError:
    details = [
        {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
        for err in exc.errors()
    ]
    return InvalidInputError(message, details=details)


class BookingHistoryService:
    def __init__(
        self,
        storage: StorageAdapter,
        key_prefix: str = "autonow_",
        clock: Clock = utc_now,
    ) -> None:
        self.storage = storage
        self.key_prefix = key_prefix
        self.clock = clock
        self._current_user_id: Optional[str] = None

    # ── scoping ──────────────────────────────────────────────────────────

    @property
    def current_user_id(self) -> Optional[str]:
        return self._current_user_id

    def set_current_user(self, user_id: Optional[str]) -> None:
        self._current_user_id = user_id or None
        log.debug("history_user_switched", user_id=self._current_user_id)

    @property
    def storage_key(self) -> str:
        if self._current_user_id:
            return f"{self.key_prefix}{HISTORY_KEY}_{self._current_user_id}"
        return f"{self.key_prefix}{HISTORY_KEY}"

    def _collection(self) -> JsonCollection[BookingHistoryItem]:
        return JsonCollection(self.storage, self.storage_key, BookingHistoryItem)

    # ── reads ────────────────────────────────────────────────────────────

    def history(self) -> list[BookingHistoryItem]:
        return self._collection().all()

    def get(self, booking_id: str) -> Optional[BookingHistoryItem]:
        return self._collection().get(booking_id)

    def filter(
        self, filters: Optional[BookingFilters] = None, **criteria: Any
    ) -> list[BookingHistoryItem]:
        """Return the bookings matching every given criterion, in ledger order.

        Pass a BookingFilters or its fields as keywords (status, start, end,
        driver).
        """
        if filters is None:
            try:
                filters = BookingFilters.model_validate(criteria)
            except ValidationError as e:
                raise _input_error("Invalid booking filters", e) from e

        bookings = self.history()
        if filters.status and filters.status != "all":
            bookings = [b for b in bookings if b.status == filters.status]
        if filters.start is not None:
            bookings = [b for b in bookings if b.booking_date >= filters.start]
        if filters.end is not None:
            bookings = [b for b in bookings if b.booking_date <= filters.end]
        if filters.driver:
            needle = filters.driver.lower()
            bookings = [
                b
                for b in bookings
                if needle in b.driver.name.lower()
                or needle in b.driver.vehicle_number.lower()
            ]
        return bookings

    def stats(self) -> BookingStats:
        """Totals over the current ledger; money, distance and rating count completed rides only.

        Unrated completed rides count as 0 towards the average rating.
        Distance and average are rounded to one decimal, halves upwards.
        """
        bookings = self.history()
        completed = [b for b in bookings if b.status == "completed"]
        cancelled = [b for b in bookings if b.status == "cancelled"]

        total_spent = sum(b.fare for b in completed)
        total_distance = sum(b.distance for b in completed)
        average_rating = (
            sum(b.rating or 0 for b in completed) / len(completed) if completed else 0
        )
        return BookingStats(
            total_bookings=len(bookings),
            completed_bookings=len(completed),
            cancelled_bookings=len(cancelled),
            total_spent=total_spent,
            total_distance=_round_tenth(total_distance),
            average_rating=_round_tenth(average_rating),
        )

    # ── writes ───────────────────────────────────────────────────────────

    def add(self, **fields: Any) -> BookingHistoryItem:
        """Record a new booking at the top of the ledger and return it."""
        try:
            request = NewBookingRequest.model_validate(fields)
        except ValidationError as e:
            raise _input_error("Invalid booking", e) from e

        item = BookingHistoryItem(
            **request.model_dump(),
            id=generate_id(),
            booking_date=self.clock(),
        )
        collection = self._collection()
        collection.save([item] + collection.all())
        log.info(
            "booking_added",
            user_id=self._current_user_id,
            booking_id=item.id,
            status=item.status,
        )
        return item

    def update(self, booking_id: str, **changes: Any) -> bool:
        """Apply *changes* to one booking. False if the id is not in this ledger."""
        try:
            request = BookingUpdate.model_validate(changes)
        except ValidationError as e:
            raise _input_error("Invalid booking update", e) from e

        fields = request.model_dump(exclude_unset=True)
        try:
            updated = self._collection().update(booking_id, **fields)
        except ValidationError as e:
            raise _input_error("Invalid booking update", e) from e
        if updated is None:
            log.debug("booking_not_found", booking_id=booking_id)
            return False
        return True

    def complete(
        self,
        booking_id: str,
        duration: Optional[int] = None,
        rating: Optional[float] = None,
        feedback: Optional[str] = None,
    ) -> bool:
        changes: dict[str, Any] = {"status": "completed", "completed_date": self.clock()}
        if duration is not None:
            changes["duration"] = duration
        if rating is not None:
            changes["rating"] = rating
        if feedback is not None:
            changes["feedback"] = feedback
        return self.update(booking_id, **changes)

    def cancel(self, booking_id: str) -> bool:
        return self.update(
            booking_id, status="cancelled", completed_date=self.clock()
        )

    def clear(self) -> None:
        """Delete the current user's ledger; other users' ledgers are untouched."""
        self._collection().clear()
        log.info("history_cleared", user_id=self._current_user_id)

    def load_sample_data(self) -> list[BookingHistoryItem]:
        """Replace the current ledger with the five demo bookings."""
        items = [BookingHistoryItem.model_validate(row) for row in SAMPLE_BOOKINGS]
        self._collection().save(items)
        return items
