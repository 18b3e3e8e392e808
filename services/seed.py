"""
Demo data for a fresh store.

seed_sample_drivers() registers the demo fleet only when the drivers
collection is empty, so calling it on every start-up is harmless. The session
that registration opens is revoked straight away: seeding must not leave
live sessions behind.
"""

from __future__ import annotations

from services.auth_service import DriverAuthService
from shared.logging import get_logger

log = get_logger(__name__)

SAMPLE_DRIVER_PASSWORD = "driver123"

SAMPLE_DRIVERS = [
    {
        "name": "Rajesh Kumar",
        "email": "rajesh@driver.com",
        "phone": "+91 9876543210",
        "vehicle_number": "KL 47 B 5501",
        "license_number": "DL1234567890",
    },
    {
        "name": "Sunil Patel",
        "email": "sunil@driver.com",
        "phone": "+91 9876543211",
        "vehicle_number": "KL 47 C 1299",
        "license_number": "DL1234567891",
    },
    {
        "name": "Anish Verma",
        "email": "anish@driver.com",
        "phone": "+91 9876543212",
        "vehicle_number": "KL 47 A 8876",
        "license_number": "DL1234567892",
    },
    {
        "name": "Mahesh Tiwari",
        "email": "mahesh@driver.com",
        "phone": "+91 9876543213",
        "vehicle_number": "KL 47 D 2134",
        "license_number": "DL1234567893",
    },
    {
        "name": "Krishnan Menon",
        "email": "krishnan@driver.com",
        "phone": "+91 9876543214",
        "vehicle_number": "KL 47 E 9876",
        "license_number": "DL1234567894",
    },
]


def seed_sample_drivers(drivers: DriverAuthService) -> int:
    """Register the demo drivers into an empty collection; returns how many were added."""
    if drivers.accounts.count():
        log.debug("seed_skipped", reason="drivers_present")
        return 0

    for profile in SAMPLE_DRIVERS:
        result = drivers.register(password=SAMPLE_DRIVER_PASSWORD, **profile)
        drivers.logout(result.token)
    log.info("sample_drivers_seeded", count=len(SAMPLE_DRIVERS))
    return len(SAMPLE_DRIVERS)
