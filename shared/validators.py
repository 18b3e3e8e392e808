"""
Input validators and normalisers — framework-agnostic, pure functions.

Identity fields are normalised before they are stored or compared so that
uniqueness checks are not defeated by case or formatting differences.
"""

from __future__ import annotations

import re

import validators as _validators

_PHONE_NOISE = re.compile(r"[\s().-]")
_PHONE_SHAPE = re.compile(r"^\+?\d{6,15}$")


def normalize_email(email: str) -> str:
    return email.strip().lower()


def normalize_phone(phone: str) -> str:
    """Strip spaces, dots, dashes and parentheses, keeping a leading ``+``."""
    return _PHONE_NOISE.sub("", phone.strip())


def normalize_plate(value: str) -> str:
    """Vehicle and licence numbers compare case- and spacing-insensitively."""
    return re.sub(r"\s+", " ", value.strip()).upper()


def validate_email(email: str) -> bool:
    """Return True if *email* is a syntactically valid address."""
    return bool(_validators.email(email))


def validate_phone(phone: str) -> bool:
    """Return True if the normalised *phone* is 6-15 digits, optionally ``+``-prefixed."""
    return bool(_PHONE_SHAPE.match(normalize_phone(phone)))


def validate_password(password: str, min_length: int = 6) -> bool:
    """Passwords only have a length floor; strength rules live in the UI."""
    return password is not None and len(password) >= min_length


def is_email_identifier(identifier: str) -> bool:
    """Login forms accept either an email or a phone number in one field."""
    return "@" in identifier
