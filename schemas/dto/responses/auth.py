"""
Response DTOs for the auth service.

AuthResult — returned by register(): the new account plus its first session
"""

from __future__ import annotations

from typing import Union

from pydantic import BaseModel, ConfigDict

from schemas.models.session import DriverSessionDoc, UserSessionDoc
from schemas.models.user import DriverDoc, UserDoc


class AuthResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    account: Union[UserDoc, DriverDoc]
    session: Union[UserSessionDoc, DriverSessionDoc]

    @property
    def token(self) -> str:
        return self.session.token
