"""
Application configuration via pydantic-settings.

All settings are loaded from environment variables (and .env file).

Sub-configs are composed onto AppSettings in a model_validator so callers can
either build a single AppSettings() or instantiate a sub-config on its own.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # "memory" is volatile, "file" keeps the keyspace in one JSON file
    storage_backend: Literal["memory", "file", "redis"] = "file"
    storage_path: str = "autonow_db.json"

    # Only read when storage_backend == "redis"
    redis_uri: Optional[str] = None

    store_key_prefix: str = "autonow_db_"
    history_key_prefix: str = "autonow_"


class AuthSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    session_ttl_hours: int = Field(default=24, gt=0)
    password_reset_ttl_hours: int = Field(default=1, gt=0)
    min_password_length: int = Field(default=6, ge=1)


class LoggingSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    env: str = "development"
    # Unset values follow env: DEBUG/console in development, INFO/json in production
    log_level: Optional[str] = None
    log_format: Optional[Literal["json", "console"]] = None

    @model_validator(mode="after")
    def _env_defaults(self) -> "LoggingSettings":
        production = self.env == "production"
        if self.log_level is None:
            self.log_level = "INFO" if production else "DEBUG"
        if self.log_format is None:
            self.log_format = "json" if production else "console"
        return self


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    env: str = "development"
    app_name: str = "autonow"
    db_version: str = "1.0.0"

    storage: Optional[StorageSettings] = None
    auth: Optional[AuthSettings] = None
    logging: Optional[LoggingSettings] = None

    @model_validator(mode="after")
    def _populate_sub_configs(self) -> "AppSettings":
        if self.storage is None:
            self.storage = StorageSettings()
        if self.auth is None:
            self.auth = AuthSettings()
        if self.logging is None:
            self.logging = LoggingSettings()
        return self

    @property
    def is_production(self) -> bool:
        return self.env == "production"
