"""
Unit test configuration.

Patches dotenv so pydantic-settings never reads the project's real .env file
during unit tests. Tests control config exclusively through monkeypatch.setenv().

Every store built here sits on a fresh MemoryStorage and a FakeClock, so
expiry is driven by clock.advance() instead of sleeping.
"""

from datetime import datetime, timedelta, timezone

import pytest

from config import AuthSettings
from services.auth_service import AuthService, DriverAuthService
from services.backup_service import BackupService
from services.booking_history import BookingHistoryService
from storage.memory import MemoryStorage
from store.record_store import RecordStore


class FakeClock:
    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta) -> datetime:
        self.now += timedelta(**delta)
        return self.now


@pytest.fixture(autouse=True)
def disable_dotenv_loading(monkeypatch):
    """Prevent pydantic-settings from loading .env files in all unit tests."""
    import pydantic_settings.sources.providers.dotenv as ps_dotenv

    monkeypatch.setattr(ps_dotenv, "dotenv_values", lambda *a, **kw: {})


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def store(storage, clock):
    return RecordStore(storage, clock=clock)


@pytest.fixture
def auth_settings():
    return AuthSettings(
        session_ttl_hours=24, password_reset_ttl_hours=1, min_password_length=6
    )


@pytest.fixture
def users(store, auth_settings):
    return AuthService(store, auth_settings)


@pytest.fixture
def drivers(store, auth_settings):
    return DriverAuthService(store, auth_settings)


@pytest.fixture
def backup(store):
    return BackupService(store)


@pytest.fixture
def history(storage, clock):
    return BookingHistoryService(storage, clock=clock)


@pytest.fixture
def rider_profile():
    return {
        "name": "Asha Menon",
        "email": "asha@example.com",
        "phone": "+91 98470 12345",
        "password": "secret123",
    }


@pytest.fixture
def driver_profile():
    return {
        "name": "Ravi Kumar",
        "email": "ravi@driver.com",
        "phone": "+91 9000011111",
        "password": "driver123",
        "vehicle_number": "KL 47 C 1299",
        "license_number": "DL9988776655",
    }
