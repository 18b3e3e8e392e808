"""Unit tests for schemas/models and schemas/dto."""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from schemas.dto.requests.auth import RegisterDriverRequest, RegisterUserRequest
from schemas.dto.requests.booking import BookingFilters
from schemas.dto.responses.stats import CleanupReport, DatabaseStats
from schemas.models.booking import BookingHistoryItem
from schemas.models.session import DriverSessionDoc, UserSessionDoc
from schemas.models.token import PasswordResetDoc
from schemas.models.user import AccountKind, DriverDoc, UserDoc

NOW = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)


def _session(**kw):
    fields = {
        "id": "s1",
        "user_id": "u1",
        "token": "tok",
        "created_at": NOW,
        "expires_at": NOW + timedelta(hours=24),
    }
    fields.update(kw)
    return UserSessionDoc(**fields)


class TestSessionDoc:
    def test_valid_until_expiry(self):
        s = _session()
        assert s.is_valid(NOW) is True
        assert s.is_valid(NOW + timedelta(hours=24)) is False

    def test_revoked_is_invalid(self):
        assert _session(is_active=False).is_valid(NOW) is False

    def test_owner_id(self):
        assert _session().owner_id == "u1"
        driver = DriverSessionDoc(
            id="s2", driver_id="d1", token="t", created_at=NOW, expires_at=NOW
        )
        assert driver.owner_id == "d1"

    def test_record_is_camel_case(self):
        record = _session().to_record()
        assert record["userId"] == "u1"
        assert record["expiresAt"] == "2026-03-02T09:00:00Z"
        assert record["isActive"] is True

    def test_from_record(self):
        assert UserSessionDoc.from_record(None) is None
        s = UserSessionDoc.from_record(_session().to_record())
        assert s.expires_at == NOW + timedelta(hours=24)

    def test_naive_datetime_is_utc(self):
        s = _session(created_at=datetime(2026, 3, 1, 9, 0))
        assert s.created_at == NOW


class TestPasswordResetDoc:
    def _reset(self, **kw):
        fields = {
            "id": "r1",
            "account_id": "u1",
            "token": "tok",
            "created_at": NOW,
            "expires_at": NOW + timedelta(hours=1),
        }
        fields.update(kw)
        return PasswordResetDoc(**fields)

    def test_defaults(self):
        r = self._reset()
        assert r.account_type is AccountKind.USER
        assert r.is_used is False
        assert r.is_redeemable(NOW) is True

    def test_used_or_expired_not_redeemable(self):
        assert self._reset(is_used=True).is_redeemable(NOW) is False
        assert self._reset().is_redeemable(NOW + timedelta(hours=1)) is False

    def test_account_type_serialised_as_string(self):
        record = self._reset(account_type=AccountKind.DRIVER).to_record()
        assert record["accountType"] == "driver"


class TestAccountDocs:
    def _driver(self, **kw):
        fields = {
            "id": "d1",
            "name": "Ravi",
            "email": "ravi@driver.com",
            "phone": "+919000011111",
            "password_hash": "h",
            "created_at": NOW,
            "updated_at": NOW,
            "vehicle_number": "KL 47 C 1299",
            "license_number": "DL1",
        }
        fields.update(kw)
        return DriverDoc(**fields)

    def test_driver_defaults(self):
        d = self._driver()
        assert d.status == "offline"
        assert d.rating == 0
        assert d.location is None

    @pytest.mark.parametrize(
        "kw", [{"rating": 5.5}, {"total_rides": -1}, {"status": "asleep"}]
    )
    def test_driver_bounds(self, kw):
        with pytest.raises(ValidationError):
            self._driver(**kw)

    def test_user_role(self):
        with pytest.raises(ValidationError):
            UserDoc(
                id="u1",
                name="A",
                email="a@example.com",
                phone="+919000000000",
                password_hash="h",
                created_at=NOW,
                updated_at=NOW,
                role="root",
            )


class TestRequestDtos:
    def test_user_request_normalises(self):
        r = RegisterUserRequest(
            name="  Asha ", email=" ASHA@Example.com", phone="+91 98470 12345", password="p"
        )
        assert r.name == "Asha"
        assert r.email == "asha@example.com"
        assert r.phone == "+919847012345"

    def test_password_not_stripped(self):
        r = RegisterUserRequest(
            name="A", email="a@example.com", phone="9847012345", password=" pass "
        )
        assert r.password == " pass "

    def test_driver_request_accepts_camel_case(self):
        r = RegisterDriverRequest.model_validate(
            {
                "name": "Ravi",
                "email": "ravi@driver.com",
                "phone": "9000011111",
                "password": "driver123",
                "vehicleNumber": " kl 47  c 1299 ",
                "licenseNumber": "dl1",
            }
        )
        assert r.vehicle_number == "KL 47 C 1299"
        assert r.license_number == "DL1"

    def test_filters_accept_aliases_and_strings(self):
        f = BookingFilters.model_validate({"status": "all", "start": "2024-01-01T00:00:00Z"})
        assert f.start == datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert f.end is None


class TestDerivedDtos:
    def test_cleanup_total(self):
        report = CleanupReport(
            user_sessions_removed=1, driver_sessions_removed=2, password_resets_removed=3
        )
        assert report.total_removed == 6

    def test_stats_frozen(self):
        stats = DatabaseStats(total_users=1, active_users=1, total_sessions=0)
        with pytest.raises(ValidationError):
            stats.total_users = 2


def test_booking_item_accepts_sample_shape():
    item = BookingHistoryItem.model_validate(
        {
            "id": "b1",
            "pickup": "A",
            "destination": "B",
            "distance": 1.5,
            "fare": 50,
            "driver": {"id": 1, "name": "Sunil P.", "vehicleNumber": "KL 47 B 5501"},
            "status": "completed",
            "bookingDate": "2024-01-15T10:30:00.000Z",
        }
    )
    assert item.driver.id == 1
    assert item.booking_date.tzinfo is not None
    assert item.to_record()["driver"]["vehicleNumber"] == "KL 47 B 5501"
