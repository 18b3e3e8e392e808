"""
Account record models.

Maps to the ``users`` and ``drivers`` collections. Both identity classes share
AccountDoc; drivers add vehicle identity, verification and dispatch state.

email and phone are stored normalised (see shared.validators) so equality
lookups are exact. Accounts are never deleted by the store, only deactivated.
"""

from __future__ import annotations

from enum import Enum
from typing import Literal, Optional

from pydantic import Field

from schemas.models.base import IdentifiedRecord, StoreBaseModel, UtcDatetime


class AccountKind(str, Enum):
    USER = "user"
    DRIVER = "driver"


DriverStatus = Literal["available", "busy", "offline"]


class Location(StoreBaseModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


class AccountDoc(IdentifiedRecord):
    """Fields common to riders and drivers."""

    name: str
    email: str
    phone: str
    password_hash: str
    avatar: Optional[str] = None
    created_at: UtcDatetime
    updated_at: UtcDatetime
    last_login_at: Optional[UtcDatetime] = None
    is_active: bool = True


class UserDoc(AccountDoc):
    """Document model for the ``users`` collection.

    role values: "user" (default), "admin"
    """

    role: Literal["user", "admin"] = "user"


class DriverDoc(AccountDoc):
    """Document model for the ``drivers`` collection."""

    vehicle_number: str
    license_number: str
    is_verified: bool = False
    rating: float = Field(default=0.0, ge=0, le=5)
    total_rides: int = Field(default=0, ge=0)
    status: DriverStatus = "offline"
    location: Optional[Location] = None
