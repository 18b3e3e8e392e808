"""Unit tests for services/auth_service.py — riders and drivers."""

import pytest

from errors import (
    DuplicateIdentityError,
    InvalidCredentialsError,
    InvalidInputError,
    InvalidTokenError,
    NotFoundError,
    StorageFailureError,
)
from schemas.models.user import AccountKind, DriverDoc, UserDoc
from services.auth_service import AuthService
from shared.crypto import verify_password
from storage.memory import MemoryStorage
from store.record_store import RecordStore


# ── registration ─────────────────────────────────────────────────────────────


class TestRegister:
    def test_returns_account_and_valid_session(self, users, rider_profile, clock):
        result = users.register(**rider_profile, user_agent="pytest", ip_address="10.0.0.1")
        assert isinstance(result.account, UserDoc)
        assert result.account.email == "asha@example.com"
        assert result.account.phone == "+919847012345"
        assert result.account.last_login_at == clock()
        assert result.session.user_id == result.account.id
        assert result.session.user_agent == "pytest"
        assert users.validate_session(result.token).id == result.account.id

    def test_password_is_hashed(self, users, rider_profile):
        account = users.register(**rider_profile).account
        assert account.password_hash != rider_profile["password"]
        assert verify_password(rider_profile["password"], account.password_hash)

    def test_camel_case_keys_accepted(self, drivers, driver_profile):
        profile = dict(driver_profile)
        profile["vehicleNumber"] = profile.pop("vehicle_number")
        profile["licenseNumber"] = profile.pop("license_number")
        account = drivers.register(**profile).account
        assert account.vehicle_number == "KL 47 C 1299"

    @pytest.mark.parametrize(
        "change, field",
        [
            ({"email": "Asha@Example.com "}, "email"),
            ({"phone": "+91-98470-12345"}, "phone"),
        ],
    )
    def test_duplicate_identity_rejected_after_normalisation(
        self, users, rider_profile, change, field
    ):
        users.register(**rider_profile)
        other = {
            **rider_profile,
            "email": "other@example.com",
            "phone": "+91 9000000001",
            **change,
        }
        with pytest.raises(DuplicateIdentityError) as exc:
            users.register(**other)
        assert exc.value.field == field
        assert len(users.list_accounts()) == 1

    @pytest.mark.parametrize(
        "change, field",
        [
            ({"vehicle_number": "kl 47 c 1299"}, "vehicle_number"),
            ({"license_number": "dl9988776655"}, "license_number"),
        ],
    )
    def test_driver_vehicle_and_licence_unique(
        self, drivers, driver_profile, change, field
    ):
        drivers.register(**driver_profile)
        other = {
            **driver_profile,
            "email": "other@driver.com",
            "phone": "+91 9000000002",
            "vehicle_number": "KL 01 Z 0001",
            "license_number": "DL0000000001",
            **change,
        }
        with pytest.raises(DuplicateIdentityError) as exc:
            drivers.register(**other)
        assert exc.value.field == field

    def test_rider_and_driver_may_share_email(self, users, drivers, rider_profile, driver_profile):
        users.register(**rider_profile)
        driver = drivers.register(**{**driver_profile, "email": rider_profile["email"]})
        assert driver.account.email == rider_profile["email"]

    @pytest.mark.parametrize(
        "change, field",
        [
            ({"email": "not-an-email"}, "email"),
            ({"phone": "123"}, "phone"),
            ({"name": "   "}, "name"),
            ({"password": "short"}, "password"),
        ],
    )
    def test_invalid_input(self, users, rider_profile, change, field):
        with pytest.raises(InvalidInputError) as exc:
            users.register(**{**rider_profile, **change})
        assert exc.value.field == field
        assert users.list_accounts() == []

    def test_unknown_field_rejected(self, users, rider_profile):
        with pytest.raises(InvalidInputError):
            users.register(**rider_profile, nickname="A")

    def test_failed_session_write_leaves_no_account(
        self, clock, auth_settings, rider_profile
    ):
        # Room for the account document, not for the session that follows it
        scratch = MemoryStorage()
        AuthService(RecordStore(scratch, clock=clock), auth_settings).register(
            **rider_profile
        )
        users_key = "autonow_db_users"
        quota = len(users_key) + len(scratch.get(users_key))

        storage = MemoryStorage(quota_bytes=quota)
        users = AuthService(RecordStore(storage, clock=clock), auth_settings)
        with pytest.raises(StorageFailureError):
            users.register(**rider_profile)
        assert users.accounts.find_one(email="asha@example.com") is None
        assert users.accounts.count() == 0

        storage.quota_bytes = None
        result = users.register(**rider_profile)
        assert users.validate_session(result.token).id == result.account.id


# ── login ────────────────────────────────────────────────────────────────────


class TestLogin:
    @pytest.mark.parametrize("identifier", ["ASHA@example.com", "+91 98470-12345"])
    def test_login_by_email_or_phone(self, users, rider_profile, identifier):
        account = users.register(**rider_profile).account
        session = users.login(identifier, rider_profile["password"])
        assert session.user_id == account.id
        assert users.validate_session(session.token).id == account.id

    def test_earlier_sessions_stay_valid(self, users, rider_profile):
        first = users.register(**rider_profile)
        users.login(rider_profile["email"], rider_profile["password"])
        assert users.validate_session(first.token) is not None
        assert len(users.active_sessions(first.account.id)) == 2

    def test_updates_last_login(self, users, rider_profile, clock):
        account = users.register(**rider_profile).account
        clock.advance(hours=2)
        users.login(rider_profile["email"], rider_profile["password"])
        assert users.get_account(account.id).last_login_at == clock()

    @pytest.mark.parametrize(
        "identifier, password",
        [
            ("asha@example.com", "wrong-password"),
            ("nobody@example.com", "secret123"),
            ("", "secret123"),
        ],
    )
    def test_bad_credentials_indistinguishable(self, users, rider_profile, identifier, password):
        users.register(**rider_profile)
        with pytest.raises(InvalidCredentialsError) as exc:
            users.login(identifier, password)
        assert exc.value.message == "Invalid login details"

    def test_inactive_account_cannot_login(self, users, rider_profile):
        account = users.register(**rider_profile).account
        users.deactivate(account.id)
        with pytest.raises(InvalidCredentialsError):
            users.login(rider_profile["email"], rider_profile["password"])

    def test_rider_credentials_do_not_open_driver_session(
        self, users, drivers, rider_profile
    ):
        users.register(**rider_profile)
        with pytest.raises(InvalidCredentialsError):
            drivers.login(rider_profile["email"], rider_profile["password"])


# ── sessions ─────────────────────────────────────────────────────────────────


class TestSessions:
    def test_expired_session_invalid_even_if_active(self, users, rider_profile, clock):
        result = users.register(**rider_profile)
        clock.advance(hours=23, minutes=59)
        assert users.validate_session(result.token) is not None
        clock.advance(minutes=1)
        assert users.validate_session(result.token) is None
        stored = users.sessions.find_one(token=result.token)
        assert stored.is_active is True

    def test_unknown_or_empty_token(self, users):
        assert users.validate_session("nope") is None
        assert users.validate_session(None) is None
        assert users.validate_session("") is None

    def test_logout_is_idempotent(self, users, rider_profile):
        result = users.register(**rider_profile)
        assert users.logout(result.token) is True
        assert users.validate_session(result.token) is None
        assert users.logout(result.token) is True
        assert users.validate_session(result.token) is None
        assert users.logout("unknown") is False

    def test_logout_leaves_other_sessions(self, users, rider_profile):
        first = users.register(**rider_profile)
        second = users.login(rider_profile["email"], rider_profile["password"])
        users.logout(first.token)
        assert users.validate_session(second.token) is not None

    def test_logout_everywhere(self, users, rider_profile):
        first = users.register(**rider_profile)
        second = users.login(rider_profile["email"], rider_profile["password"])
        assert users.logout_everywhere(first.account.id) == 2
        assert users.validate_session(first.token) is None
        assert users.validate_session(second.token) is None
        assert users.logout_everywhere(first.account.id) == 0

    def test_driver_token_not_valid_for_riders(self, users, drivers, driver_profile):
        result = drivers.register(**driver_profile)
        assert drivers.validate_session(result.token).id == result.account.id
        assert users.validate_session(result.token) is None

    def test_deactivated_account_invalidates_session(self, users, rider_profile):
        result = users.register(**rider_profile)
        users.deactivate(result.account.id)
        assert users.validate_session(result.token) is None
        assert users.get_account(result.account.id).is_active is False

    def test_current_account_for_alias(self, users, rider_profile):
        result = users.register(**rider_profile)
        assert users.current_account_for(result.token).id == result.account.id


# ── password reset ───────────────────────────────────────────────────────────


class TestPasswordReset:
    def test_token_is_single_use(self, users, rider_profile):
        users.register(**rider_profile)
        token = users.request_password_reset(rider_profile["email"])
        users.reset_password(token, "newpass1")
        with pytest.raises(InvalidTokenError):
            users.reset_password(token, "newpass2")
        users.login(rider_profile["email"], "newpass1")
        with pytest.raises(InvalidCredentialsError):
            users.login(rider_profile["email"], "newpass2")

    def test_old_password_stops_working(self, users, rider_profile):
        users.register(**rider_profile)
        token = users.request_password_reset(rider_profile["phone"])
        users.reset_password(token, "newpass1")
        with pytest.raises(InvalidCredentialsError):
            users.login(rider_profile["email"], rider_profile["password"])

    def test_expired_token_rejected(self, users, rider_profile, clock):
        users.register(**rider_profile)
        token = users.request_password_reset(rider_profile["email"])
        clock.advance(hours=1)
        with pytest.raises(InvalidTokenError):
            users.reset_password(token, "newpass1")

    def test_unknown_identifier_gets_unusable_token(self, users, store):
        token = users.request_password_reset("ghost@example.com")
        assert isinstance(token, str) and len(token) >= 32
        assert store.password_resets.count() == 0
        with pytest.raises(InvalidTokenError):
            users.reset_password(token, "newpass1")

    def test_short_new_password_rejected_without_spending_token(self, users, rider_profile):
        users.register(**rider_profile)
        token = users.request_password_reset(rider_profile["email"])
        with pytest.raises(InvalidInputError):
            users.reset_password(token, "abc")
        users.reset_password(token, "newpass1")

    def test_token_bound_to_identity_class(self, users, drivers, rider_profile, store):
        users.register(**rider_profile)
        token = users.request_password_reset(rider_profile["email"])
        assert store.password_resets.find_one(token=token).account_type is AccountKind.USER
        with pytest.raises(InvalidTokenError):
            drivers.reset_password(token, "newpass1")

    def test_driver_reset(self, drivers, driver_profile):
        drivers.register(**driver_profile)
        token = drivers.request_password_reset(driver_profile["email"])
        drivers.reset_password(token, "newpass1")
        assert drivers.login(driver_profile["email"], "newpass1").driver_id


class TestChangePassword:
    def test_change(self, users, rider_profile):
        account = users.register(**rider_profile).account
        users.change_password(account.id, rider_profile["password"], "another1")
        users.login(rider_profile["email"], "another1")

    def test_wrong_current_password(self, users, rider_profile):
        account = users.register(**rider_profile).account
        with pytest.raises(InvalidCredentialsError) as exc:
            users.change_password(account.id, "nope", "another1")
        assert exc.value.field == "current_password"

    def test_unknown_account(self, users):
        with pytest.raises(NotFoundError):
            users.change_password("missing", "x", "another1")


# ── profile ──────────────────────────────────────────────────────────────────


class TestProfile:
    def test_update_fields(self, users, rider_profile, clock):
        account = users.register(**rider_profile).account
        clock.advance(minutes=10)
        updated = users.update_profile(account.id, name="Asha M", avatar="a.png")
        assert updated.name == "Asha M"
        assert updated.avatar == "a.png"
        assert updated.email == account.email
        assert updated.updated_at == clock()

    def test_update_to_taken_email(self, users, rider_profile):
        users.register(**rider_profile)
        other = users.register(
            **{**rider_profile, "email": "b@example.com", "phone": "+91 9000000003"}
        ).account
        with pytest.raises(DuplicateIdentityError):
            users.update_profile(other.id, email=rider_profile["email"])

    def test_update_unknown_account(self, users):
        with pytest.raises(NotFoundError):
            users.update_profile("missing", name="X")

    def test_password_not_updatable_via_profile(self, users, rider_profile):
        account = users.register(**rider_profile).account
        with pytest.raises(InvalidInputError):
            users.update_profile(account.id, password_hash="x")

    def test_deactivate_unknown(self, users):
        with pytest.raises(NotFoundError):
            users.deactivate("missing")


class TestDriverState:
    def test_defaults(self, drivers, driver_profile):
        driver = drivers.register(**driver_profile).account
        assert isinstance(driver, DriverDoc)
        assert driver.status == "offline"
        assert driver.is_verified is False
        assert driver.rating == 0
        assert driver.total_rides == 0

    def test_status_location_verification(self, drivers, driver_profile):
        driver = drivers.register(**driver_profile).account
        drivers.update_status(driver.id, "available")
        drivers.update_location(driver.id, 10.52, 76.21)
        drivers.set_verified(driver.id)
        stored = drivers.get_account(driver.id)
        assert stored.status == "available"
        assert stored.location.latitude == 10.52
        assert stored.is_verified is True

    @pytest.mark.parametrize(
        "call, args",
        [("update_status", ("flying",)), ("update_location", (123.0, 0.0))],
    )
    def test_invalid_driver_state(self, drivers, driver_profile, call, args):
        driver = drivers.register(**driver_profile).account
        with pytest.raises(InvalidInputError):
            getattr(drivers, call)(driver.id, *args)

    def test_driver_profile_plate_change_checked(self, drivers, driver_profile):
        drivers.register(**driver_profile)
        other = drivers.register(
            **{
                **driver_profile,
                "email": "x@driver.com",
                "phone": "+91 9000000004",
                "vehicle_number": "KL 01 A 1",
                "license_number": "DL1",
            }
        ).account
        with pytest.raises(DuplicateIdentityError):
            drivers.update_profile(other.id, vehicle_number="kl 47 c 1299")
