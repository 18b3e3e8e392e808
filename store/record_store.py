"""
The record store: every account, session and reset collection, plus the
``db_config`` metadata document, on top of one storage adapter.

Keys (with the default prefix ``autonow_db_``):
    autonow_db_users            UserDoc[]
    autonow_db_drivers          DriverDoc[]
    autonow_db_user_sessions    UserSessionDoc[]
    autonow_db_driver_sessions  DriverSessionDoc[]
    autonow_db_password_resets  PasswordResetDoc[]
    autonow_db_config           DatabaseConfig
"""

from __future__ import annotations

import json
from typing import Optional, Union

from pydantic import ValidationError

from schemas.models.backup import DatabaseConfig
from schemas.models.session import DriverSessionDoc, UserSessionDoc
from schemas.models.token import PasswordResetDoc
from schemas.models.user import AccountKind, DriverDoc, UserDoc
from shared.datetime_utils import Clock, utc_now
from shared.logging import get_logger
from storage.protocol import StorageAdapter

from .collection import JsonCollection

log = get_logger(__name__)

DB_VERSION = "1.0.0"

AccountCollection = Union[JsonCollection[UserDoc], JsonCollection[DriverDoc]]
SessionCollection = Union[
    JsonCollection[UserSessionDoc], JsonCollection[DriverSessionDoc]
]


class RecordStore:
    def __init__(
        self,
        storage: StorageAdapter,
        key_prefix: str = "autonow_db_",
        version: str = DB_VERSION,
        clock: Clock = utc_now,
    ) -> None:
        self.storage = storage
        self.key_prefix = key_prefix
        self.version = version
        self.clock = clock

        self.users: JsonCollection[UserDoc] = JsonCollection(
            storage, self._key("users"), UserDoc, unique_fields=("email", "phone")
        )
        self.drivers: JsonCollection[DriverDoc] = JsonCollection(
            storage,
            self._key("drivers"),
            DriverDoc,
            unique_fields=("email", "phone", "vehicle_number", "license_number"),
        )
        self.user_sessions: JsonCollection[UserSessionDoc] = JsonCollection(
            storage, self._key("user_sessions"), UserSessionDoc, unique_fields=("token",)
        )
        self.driver_sessions: JsonCollection[DriverSessionDoc] = JsonCollection(
            storage,
            self._key("driver_sessions"),
            DriverSessionDoc,
            unique_fields=("token",),
        )
        self.password_resets: JsonCollection[PasswordResetDoc] = JsonCollection(
            storage,
            self._key("password_resets"),
            PasswordResetDoc,
            unique_fields=("token",),
        )
        self._config_key = self._key("config")

    def _key(self, name: str) -> str:
        return f"{self.key_prefix}{name}"

    def accounts(self, kind: AccountKind) -> AccountCollection:
        return self.users if kind is AccountKind.USER else self.drivers

    def sessions(self, kind: AccountKind) -> SessionCollection:
        return self.user_sessions if kind is AccountKind.USER else self.driver_sessions

    # ── db_config ────────────────────────────────────────────────────────

    def read_config(self) -> Optional[DatabaseConfig]:
        """Return the stored config, or None if absent or unreadable."""
        raw = self.storage.get(self._config_key)
        if raw is None:
            return None
        try:
            return DatabaseConfig.from_record(json.loads(raw))
        except (json.JSONDecodeError, ValidationError) as e:
            log.warning("db_config_corrupt", key=self._config_key, error=str(e))
            return None

    def load_config(self) -> DatabaseConfig:
        """Return the stored config, writing a fresh one if absent or unreadable."""
        config = self.read_config()
        if config is None:
            config = DatabaseConfig(version=self.version, last_updated=self.clock())
            self.save_config(config)
            log.info("db_config_initialized", version=self.version)
        return config

    def save_config(self, config: DatabaseConfig) -> None:
        self.storage.set(self._config_key, json.dumps(config.to_record()))

    def touch_config(self, **changes) -> DatabaseConfig:
        config = self.load_config()
        updated = DatabaseConfig.model_validate(
            {**config.model_dump(), "last_updated": self.clock(), **changes}
        )
        self.save_config(updated)
        return updated
