"""
Application error hierarchy.

AppError is the base for all typed errors raised by the store and its
services. Each subclass carries a stable error_code and an HTTP-ish
status_code so a collaborator (form handler, route guard) can map failures
to a response without inspecting messages.

Anything that is not an AppError is a programming error and should bubble up.
"""

from __future__ import annotations

from typing import Any, Optional


class AppError(Exception):
    """Base application error. All typed errors inherit from this."""

    status_code: int = 500
    error_code: str = "internal_error"

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        details: Optional[Any] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.field = field
        self.details = details

    def to_dict(self) -> dict:
        payload: dict = {"error": self.message, "code": self.error_code}
        if self.field is not None:
            payload["field"] = self.field
        if self.details is not None:
            payload["details"] = self.details
        return payload


class InvalidInputError(AppError):
    status_code = 400
    error_code = "invalid_input"


class InvalidCredentialsError(AppError):
    status_code = 401
    error_code = "invalid_credentials"


class InvalidTokenError(AppError):
    status_code = 401
    error_code = "invalid_token"


class NotFoundError(AppError):
    status_code = 404
    error_code = "not_found"


class DuplicateIdentityError(AppError):
    status_code = 409
    error_code = "duplicate_identity"


class InvalidBackupError(AppError):
    status_code = 422
    error_code = "invalid_backup"


class StorageFailureError(AppError):
    status_code = 503
    error_code = "storage_failure"
