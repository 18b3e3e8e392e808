"""
Authentication on top of the record store.

One service instance per identity class: AuthService for riders (``users``
collection, ``user_sessions``) and DriverAuthService for drivers (``drivers``,
``driver_sessions``). Both share the ``password_resets`` collection, told
apart by PasswordResetDoc.account_type.

Session lifecycle: a session is created by register() or login(), revoked
only by logout()/logout_everywhere()/deactivate(), and treated as expired
whenever expires_at has passed. Expiry is checked on every validation and
is never written back; cleanup_expired_data() reaps the rows later.

Expected failures are raised as typed AppError subclasses:
InvalidInputError, DuplicateIdentityError, InvalidCredentialsError,
InvalidTokenError, NotFoundError. StorageFailureError passes through.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Any, Optional, Type, Union

from pydantic import BaseModel, ValidationError

from config import AuthSettings
from errors import (
    DuplicateIdentityError,
    InvalidCredentialsError,
    InvalidInputError,
    InvalidTokenError,
    NotFoundError,
    StorageFailureError,
)
from schemas.dto.requests.auth import (
    DriverProfileUpdate,
    ProfileUpdateRequest,
    RegisterDriverRequest,
    RegisterUserRequest,
)
from schemas.dto.responses.auth import AuthResult
from schemas.models.session import DriverSessionDoc, SessionDoc, UserSessionDoc
from schemas.models.token import PasswordResetDoc
from schemas.models.user import AccountDoc, AccountKind, DriverDoc, DriverStatus, UserDoc
from shared.crypto import hash_password, verify_password
from shared.datetime_utils import Clock
from shared.generators import generate_id, generate_secure_token
from shared.logging import get_logger, log_with_context
from shared.validators import (
    is_email_identifier,
    normalize_email,
    normalize_phone,
    validate_password,
)
from store.record_store import RecordStore

log = get_logger(__name__)

Account = Union[UserDoc, DriverDoc]
Session = Union[UserSessionDoc, DriverSessionDoc]

_BAD_CREDENTIALS = "Invalid login details"
_BAD_RESET_TOKEN = "Reset link is invalid or has expired"


def _input_error(message: str, exc: ValidationError) -> InvalidInputError:
    details = [
        {
            "field": ".".join(str(part) for part in err["loc"]),
            "message": err["msg"],
        }
        for err in exc.errors()
    ]
    field = details[0]["field"] if details else None
    return InvalidInputError(message, field=field or None, details=details)


class AuthService:
    kind: AccountKind = AccountKind.USER
    account_model: Type[AccountDoc] = UserDoc
    session_model: Type[SessionDoc] = UserSessionDoc
    owner_field: str = "user_id"
    register_request: Type[BaseModel] = RegisterUserRequest
    profile_request: Type[BaseModel] = ProfileUpdateRequest

    def __init__(
        self,
        store: RecordStore,
        settings: Optional[AuthSettings] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self.store = store
        self.settings = settings or AuthSettings()
        self.clock = clock or store.clock
        self.accounts = store.accounts(self.kind)
        self.sessions = store.sessions(self.kind)
        self.log = log_with_context(log, kind=self.kind.value)

    # ── helpers ──────────────────────────────────────────────────────────

    def _check_password(self, password: Optional[str]) -> None:
        if not validate_password(password, self.settings.min_password_length):
            raise InvalidInputError(
                f"Password must be at least {self.settings.min_password_length} characters",
                field="password",
            )

    def _find_by_identifier(self, identifier: str) -> Optional[Account]:
        if not identifier:
            return None
        if is_email_identifier(identifier):
            return self.accounts.find_one(email=normalize_email(identifier))
        return self.accounts.find_one(phone=normalize_phone(identifier))

    def _require_account(self, account_id: str) -> Account:
        account = self.accounts.get(account_id)
        if account is None:
            raise NotFoundError("Account not found", field="id")
        return account

    def _update_account(self, account_id: str, **changes: Any) -> Account:
        try:
            updated = self.accounts.update(account_id, **changes)
        except ValidationError as e:
            raise _input_error("Invalid account update", e) from e
        if updated is None:
            raise NotFoundError("Account not found", field="id")
        return updated

    def _issue_session(
        self,
        account_id: str,
        user_agent: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> Session:
        now = self.clock()
        session = self.session_model(
            id=generate_id(),
            token=generate_secure_token(),
            created_at=now,
            expires_at=now + timedelta(hours=self.settings.session_ttl_hours),
            is_active=True,
            user_agent=user_agent,
            ip_address=ip_address,
            **{self.owner_field: account_id},
        )
        self.sessions.insert(session)
        self.log.info("session_created", account_id=account_id, session_id=session.id)
        return session

    # ── registration & login ─────────────────────────────────────────────

    def register(
        self,
        *,
        user_agent: Optional[str] = None,
        ip_address: Optional[str] = None,
        **profile: Any,
    ) -> AuthResult:
        """Create an account and log it in.

        Raises:
            InvalidInputError: malformed fields or a password below the floor.
            DuplicateIdentityError: email, phone (or, for drivers, vehicle or
                licence number) already registered.
            StorageFailureError: a write failed; no account row is left behind.
        """
        try:
            request = self.register_request.model_validate(profile)
        except ValidationError as e:
            raise _input_error("Invalid registration details", e) from e
        self._check_password(request.password)

        now = self.clock()
        account = self.account_model(
            **request.model_dump(exclude={"password"}),
            id=generate_id(),
            password_hash=hash_password(request.password),
            created_at=now,
            updated_at=now,
            last_login_at=now,
        )
        try:
            self.accounts.insert(account)
        except DuplicateIdentityError as e:
            self.log.info("register_duplicate", field=e.field)
            raise

        try:
            session = self._issue_session(account.id, user_agent, ip_address)
        except StorageFailureError:
            # Registration and its first session land together or not at all
            self.accounts.remove_where(lambda a: a.id == account.id)
            self.log.error("register_rolled_back", account_id=account.id)
            raise

        self.log.info("account_registered", account_id=account.id)
        return AuthResult(account=account, session=session)

    def login(
        self,
        identifier: str,
        password: str,
        *,
        user_agent: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> Session:
        """Verify credentials and open a new session.

        *identifier* is an email address or a phone number. Earlier sessions
        of the account stay valid.

        Raises:
            InvalidCredentialsError: unknown identifier, inactive account or
                wrong password (deliberately indistinguishable).
        """
        account = self._find_by_identifier(identifier)
        if account is None or not account.is_active:
            self.log.info(
                "login_failed",
                reason="unknown_account" if account is None else "inactive_account",
            )
            raise InvalidCredentialsError(_BAD_CREDENTIALS)
        if not verify_password(password or "", account.password_hash):
            self.log.info("login_failed", reason="bad_password", account_id=account.id)
            raise InvalidCredentialsError(_BAD_CREDENTIALS)

        session = self._issue_session(account.id, user_agent, ip_address)
        self.accounts.update(account.id, last_login_at=self.clock())
        self.log.info("login_succeeded", account_id=account.id)
        return session

    # ── sessions ─────────────────────────────────────────────────────────

    def validate_session(self, token: Optional[str]) -> Optional[Account]:
        """Return the account behind *token*, or None if the session is not usable.

        A session is usable when it exists, has not been revoked, has not
        expired, and its account still exists and is active.
        """
        if not token:
            return None
        session = self.sessions.find_one(token=token)
        if session is None or not session.is_valid(self.clock()):
            return None
        account = self.accounts.get(session.owner_id)
        if account is None or not account.is_active:
            return None
        return account

    current_account_for = validate_session

    def active_sessions(self, account_id: str) -> list[Session]:
        now = self.clock()
        return self.sessions.filter(
            lambda s: s.owner_id == account_id and s.is_valid(now)
        )

    def logout(self, token: Optional[str]) -> bool:
        """Revoke the session for *token*. Safe to call repeatedly.

        Returns True if a session row matched the token.
        """
        if not token:
            return False
        session = self.sessions.find_one(token=token)
        if session is None:
            self.log.debug("logout_unknown_session")
            return False
        if session.is_active:
            self.sessions.update(session.id, is_active=False)
            self.log.info(
                "session_revoked", account_id=session.owner_id, session_id=session.id
            )
        return True

    def logout_everywhere(self, account_id: str) -> int:
        """Revoke every still-active session of *account_id*; returns how many."""
        revoked = self.sessions.update_where(
            lambda s: s.owner_id == account_id and s.is_active, is_active=False
        )
        if revoked:
            self.log.info("sessions_revoked", account_id=account_id, count=revoked)
        return revoked

    # ── password reset ───────────────────────────────────────────────────

    def request_password_reset(self, identifier: str) -> str:
        """Issue a one-shot reset token for the account behind *identifier*.

        The response does not depend on whether the account exists: unknown
        or inactive identifiers get a token of the same shape that is never
        stored, so it can only ever fail in reset_password().
        """
        token = generate_secure_token()
        account = self._find_by_identifier(identifier)
        if account is None or not account.is_active:
            self.log.info("password_reset_requested", matched=False)
            return token

        now = self.clock()
        self.store.password_resets.insert(
            PasswordResetDoc(
                id=generate_id(),
                account_id=account.id,
                account_type=self.kind,
                token=token,
                created_at=now,
                expires_at=now
                + timedelta(hours=self.settings.password_reset_ttl_hours),
            )
        )
        self.log.info("password_reset_requested", matched=True, account_id=account.id)
        return token

    def reset_password(self, token: str, new_password: str) -> None:
        """Redeem a reset token and set a new password.

        Raises:
            InvalidInputError: *new_password* is too short.
            InvalidTokenError: token unknown, already used, expired, issued
                for the other identity class, or its account is gone.
        """
        self._check_password(new_password)
        resets = self.store.password_resets
        reset = resets.find_one(token=token) if token else None
        if (
            reset is None
            or reset.account_type is not self.kind
            or not reset.is_redeemable(self.clock())
        ):
            self.log.info("password_reset_rejected")
            raise InvalidTokenError(_BAD_RESET_TOKEN)
        if self.accounts.get(reset.account_id) is None:
            self.log.warning("password_reset_orphaned", account_id=reset.account_id)
            raise InvalidTokenError(_BAD_RESET_TOKEN)

        resets.update(reset.id, is_used=True)
        self._update_account(
            reset.account_id,
            password_hash=hash_password(new_password),
            updated_at=self.clock(),
        )
        self.log.info("password_reset_completed", account_id=reset.account_id)

    def change_password(
        self, account_id: str, current_password: str, new_password: str
    ) -> None:
        account = self._require_account(account_id)
        if not verify_password(current_password or "", account.password_hash):
            self.log.info("change_password_failed", account_id=account_id)
            raise InvalidCredentialsError(
                "Current password is incorrect", field="current_password"
            )
        self._check_password(new_password)
        self._update_account(
            account_id,
            password_hash=hash_password(new_password),
            updated_at=self.clock(),
        )
        self.log.info("password_changed", account_id=account_id)

    # ── profile ──────────────────────────────────────────────────────────

    def get_account(self, account_id: str) -> Optional[Account]:
        return self.accounts.get(account_id)

    def list_accounts(self) -> list[Account]:
        return self.accounts.all()

    def update_profile(self, account_id: str, **changes: Any) -> Account:
        """Apply profile field changes; identity fields stay unique.

        Raises:
            InvalidInputError, DuplicateIdentityError, NotFoundError
        """
        try:
            request = self.profile_request.model_validate(changes)
        except ValidationError as e:
            raise _input_error("Invalid profile details", e) from e
        fields = request.model_dump(exclude_unset=True, exclude_none=True)
        account = self._update_account(account_id, **fields, updated_at=self.clock())
        self.log.info("profile_updated", account_id=account_id, fields=sorted(fields))
        return account

    def deactivate(self, account_id: str) -> Account:
        """Disable an account and revoke its sessions; the record is kept."""
        account = self._update_account(
            account_id, is_active=False, updated_at=self.clock()
        )
        self.logout_everywhere(account_id)
        self.log.info("account_deactivated", account_id=account_id)
        return account


class DriverAuthService(AuthService):
    kind = AccountKind.DRIVER
    account_model = DriverDoc
    session_model = DriverSessionDoc
    owner_field = "driver_id"
    register_request = RegisterDriverRequest
    profile_request = DriverProfileUpdate

    def update_status(self, driver_id: str, status: DriverStatus) -> DriverDoc:
        driver = self._update_account(driver_id, status=status, updated_at=self.clock())
        self.log.info("driver_status_changed", account_id=driver_id, status=status)
        return driver

    def update_location(
        self, driver_id: str, latitude: float, longitude: float
    ) -> DriverDoc:
        return self._update_account(
            driver_id,
            location={"latitude": latitude, "longitude": longitude},
            updated_at=self.clock(),
        )

    def set_verified(self, driver_id: str, verified: bool = True) -> DriverDoc:
        return self._update_account(
            driver_id, is_verified=verified, updated_at=self.clock()
        )
