"""
Backup, restore, cleanup and statistics for the record store.

backup() snapshots every account, session and reset collection into one
BackupDocument. There is no incremental variant: a backup is the whole state.

restore() is DESTRUCTIVE. It replaces every collection with the contents of
the document; nothing from the current state is merged or kept. The whole
document is parsed and validated before the first collection is written, so
a rejected document leaves the store untouched.

cleanup_expired_data() physically deletes expired sessions and used or
expired reset tokens. Accounts and booking history are never touched.
"""

from __future__ import annotations

import json
from typing import Any, Union

from pydantic import ValidationError

from errors import DuplicateIdentityError, InvalidBackupError
from schemas.dto.responses.stats import CleanupReport, DatabaseStats
from schemas.models.backup import BackupDocument
from shared.logging import get_logger
from store.record_store import RecordStore

log = get_logger(__name__)

BackupInput = Union[str, bytes, dict, BackupDocument]


def _major(version: str) -> str:
    return version.split(".", 1)[0]


class BackupService:
    def __init__(self, store: RecordStore) -> None:
        self.store = store

    @property
    def clock(self):
        return self.store.clock

    # ── export ───────────────────────────────────────────────────────────

    def backup(self) -> BackupDocument:
        store = self.store
        now = self.clock()
        document = BackupDocument(
            version=store.version,
            exported_at=now,
            users=store.users.all(),
            drivers=store.drivers.all(),
            user_sessions=store.user_sessions.all(),
            driver_sessions=store.driver_sessions.all(),
            password_resets=store.password_resets.all(),
        )
        store.touch_config(last_backup=now)
        log.info(
            "backup_created",
            users=len(document.users),
            drivers=len(document.drivers),
            user_sessions=len(document.user_sessions),
            driver_sessions=len(document.driver_sessions),
            resets=len(document.password_resets),
        )
        return document

    def export_json(self, indent: int = 2) -> str:
        return json.dumps(self.backup().to_record(), indent=indent)

    # ── import ───────────────────────────────────────────────────────────

    def parse(self, document: BackupInput) -> BackupDocument:
        """Validate *document* into a BackupDocument without touching the store.

        Raises:
            InvalidBackupError: unparseable JSON, a missing or malformed
                collection, duplicate identities, or a different major version.
        """
        if isinstance(document, BackupDocument):
            parsed = document
        else:
            data: Any = document
            if isinstance(document, (str, bytes)):
                try:
                    data = json.loads(document)
                except (json.JSONDecodeError, UnicodeDecodeError) as e:
                    raise InvalidBackupError(
                        "Backup is not valid JSON", details={"error": str(e)}
                    ) from e
            if not isinstance(data, dict):
                raise InvalidBackupError("Backup must be a JSON object")
            try:
                parsed = BackupDocument.model_validate(data)
            except ValidationError as e:
                details = [
                    {
                        "field": ".".join(str(part) for part in err["loc"]),
                        "message": err["msg"],
                    }
                    for err in e.errors()
                ]
                raise InvalidBackupError(
                    "Backup is missing or has malformed collections", details=details
                ) from e

        if parsed.version and _major(parsed.version) != _major(self.store.version):
            raise InvalidBackupError(
                "Backup version is not compatible",
                field="version",
                details={"backup": parsed.version, "store": self.store.version},
            )

        store = self.store
        pairs = (
            (store.users, parsed.users),
            (store.drivers, parsed.drivers),
            (store.user_sessions, parsed.user_sessions),
            (store.driver_sessions, parsed.driver_sessions),
            (store.password_resets, parsed.password_resets),
        )
        for collection, rows in pairs:
            try:
                collection.check_rows(rows)
            except DuplicateIdentityError as e:
                raise InvalidBackupError(
                    "Backup contains duplicate records",
                    field=e.field,
                    details={"collection": collection.key},
                ) from e
        return parsed

    def restore(self, document: BackupInput) -> None:
        """Replace ALL account, session and reset data with *document*.

        This discards the current state; callers must make that clear to
        whoever triggers it. Booking history is not part of a backup and is
        left as it is.
        """
        parsed = self.parse(document)
        store = self.store
        store.users.save(parsed.users)
        store.drivers.save(parsed.drivers)
        store.user_sessions.save(parsed.user_sessions)
        store.driver_sessions.save(parsed.driver_sessions)
        store.password_resets.save(parsed.password_resets)
        store.touch_config()
        log.warning(
            "backup_restored",
            version=parsed.version,
            exported_at=parsed.exported_at.isoformat() if parsed.exported_at else None,
            users=len(parsed.users),
            drivers=len(parsed.drivers),
        )

    # ── maintenance ──────────────────────────────────────────────────────

    def cleanup_expired_data(self) -> CleanupReport:
        """Delete sessions past expiry and resets that are used or past expiry.

        Revoked sessions that have not yet expired are kept until they do.
        """
        now = self.clock()
        store = self.store
        report = CleanupReport(
            user_sessions_removed=store.user_sessions.remove_where(
                lambda s: s.expires_at < now
            ),
            driver_sessions_removed=store.driver_sessions.remove_where(
                lambda s: s.expires_at < now
            ),
            password_resets_removed=store.password_resets.remove_where(
                lambda r: r.is_used or r.expires_at < now
            ),
        )
        store.touch_config()
        log.info(
            "expired_data_cleaned",
            user_sessions_removed=report.user_sessions_removed,
            driver_sessions_removed=report.driver_sessions_removed,
            resets_removed=report.password_resets_removed,
        )
        return report

    def stats(self) -> DatabaseStats:
        now = self.clock()
        store = self.store
        users = store.users.all()
        drivers = store.drivers.all()
        config = store.read_config()
        sessions = store.user_sessions.filter(lambda s: s.is_valid(now))
        sessions += store.driver_sessions.filter(lambda s: s.is_valid(now))
        return DatabaseStats(
            total_users=len(users),
            active_users=sum(1 for u in users if u.is_active),
            total_drivers=len(drivers),
            active_drivers=sum(1 for d in drivers if d.is_active),
            total_sessions=len(sessions),
            last_backup=config.last_backup if config else None,
        )
