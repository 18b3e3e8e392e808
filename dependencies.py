"""
Wiring: build one LocalDatabase from settings.

There are no module-level singletons. Whoever owns the process builds a
LocalDatabase once and hands its services to the collaborators that need
them; tests build their own over MemoryStorage.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from config import AppSettings
from schemas.dto.responses.stats import CleanupReport, DatabaseStats
from services.auth_service import AuthService, DriverAuthService
from services.backup_service import BackupInput, BackupService
from services.booking_history import BookingHistoryService
from shared.datetime_utils import Clock, utc_now
from shared.logging import get_logger, setup_logging
from storage import StorageAdapter, build_storage
from store.record_store import RecordStore

log = get_logger(__name__)


@dataclass
class LocalDatabase:
    """Everything a collaborator may call, grouped by concern.

    users / drivers  — AuthService per identity class
    backup           — export, restore, cleanup, stats
    history          — per-rider booking ledger
    """

    store: RecordStore
    users: AuthService
    drivers: DriverAuthService
    backup: BackupService
    history: BookingHistoryService

    def export_json(self) -> str:
        return self.backup.export_json()

    def restore(self, document: BackupInput) -> None:
        """Destructive: replaces every account, session and reset collection."""
        self.backup.restore(document)

    def cleanup_expired_data(self) -> CleanupReport:
        return self.backup.cleanup_expired_data()

    def stats(self) -> DatabaseStats:
        return self.backup.stats()


def build_database(
    settings: Optional[AppSettings] = None,
    storage: Optional[StorageAdapter] = None,
    clock: Clock = utc_now,
    cleanup_on_start: bool = True,
) -> LocalDatabase:
    """Assemble the store and its services.

    *storage* overrides the backend chosen by settings (tests pass a
    MemoryStorage). With *cleanup_on_start* expired sessions and spent reset
    tokens are reaped once, right after construction.
    """
    settings = settings or AppSettings()
    setup_logging(settings.logging)
    storage = storage if storage is not None else build_storage(settings.storage)

    store = RecordStore(
        storage,
        key_prefix=settings.storage.store_key_prefix,
        version=settings.db_version,
        clock=clock,
    )
    store.load_config()

    database = LocalDatabase(
        store=store,
        users=AuthService(store, settings.auth),
        drivers=DriverAuthService(store, settings.auth),
        backup=BackupService(store),
        history=BookingHistoryService(
            storage, key_prefix=settings.storage.history_key_prefix, clock=clock
        ),
    )
    if cleanup_on_start:
        database.cleanup_expired_data()
    log.info(
        "database_ready",
        backend=type(storage).__name__,
        version=settings.db_version,
    )
    return database
