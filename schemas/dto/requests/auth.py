"""
Request DTOs for the auth service.

RegisterUserRequest    — AuthService(USER).register()
RegisterDriverRequest  — AuthService(DRIVER).register()
ProfileUpdateRequest   — AuthService.update_profile()  (riders)
DriverProfileUpdate    — AuthService.update_profile()  (drivers)

Both snake_case and camelCase keys are accepted. Identity fields are
normalised here so the record store only ever sees canonical values. The
password length floor is configurable and therefore checked by the service.
"""

from __future__ import annotations

from typing import Annotated, Literal, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, StringConstraints
from pydantic.alias_generators import to_camel

from shared.validators import (
    normalize_email,
    normalize_phone,
    normalize_plate,
    validate_email,
    validate_phone,
)


def _email(value: str) -> str:
    value = normalize_email(value)
    if not validate_email(value):
        raise ValueError("invalid email address")
    return value


def _phone(value: str) -> str:
    if not validate_phone(value):
        raise ValueError("invalid phone number")
    return normalize_phone(value)


def _plate(value: str) -> str:
    value = normalize_plate(value)
    if not value:
        raise ValueError("must not be blank")
    return value


Email = Annotated[str, AfterValidator(_email)]
Phone = Annotated[str, AfterValidator(_phone)]
Plate = Annotated[str, AfterValidator(_plate)]
Name = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class _RequestModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )


class RegisterUserRequest(_RequestModel):
    name: Name
    email: Email
    phone: Phone
    password: str
    avatar: Optional[str] = None
    role: Literal["user", "admin"] = "user"


class RegisterDriverRequest(_RequestModel):
    name: Name
    email: Email
    phone: Phone
    password: str
    vehicle_number: Plate
    license_number: Plate
    avatar: Optional[str] = None


class ProfileUpdateRequest(_RequestModel):
    """Only the fields that are present are applied."""

    name: Optional[Name] = None
    email: Optional[Email] = None
    phone: Optional[Phone] = None
    avatar: Optional[str] = None


class DriverProfileUpdate(ProfileUpdateRequest):
    vehicle_number: Optional[Plate] = None
    license_number: Optional[Plate] = None
