"""JSON-file storage: the whole keyspace in one file, rewritten on each write.

Writes go to a sibling temp file that is then os.replace()d over the target,
so a crash mid-write leaves either the old or the new keyspace, never a torn
file.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Optional, Union

from errors import StorageFailureError
from shared.logging import get_logger

log = get_logger(__name__)


class JsonFileStorage:
    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)
        self._data: dict[str, str] = self._load()

    def _load(self) -> dict[str, str]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as e:
            log.error(
                "storage_file_read_failed",
                path=str(self.path),
                error=str(e),
                error_type=type(e).__name__,
            )
            raise StorageFailureError(
                "Could not read storage file", details={"path": str(self.path)}
            ) from e

        try:
            data = json.loads(raw) if raw.strip() else {}
        except json.JSONDecodeError as e:
            log.warning("storage_file_corrupt", path=str(self.path), error=str(e))
            return {}
        if not isinstance(data, dict):
            log.warning("storage_file_corrupt", path=str(self.path), error="not an object")
            return {}
        return {k: v for k, v in data.items() if isinstance(v, str)}

    def _flush(self, data: dict[str, str]) -> None:
        directory = self.path.parent
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=directory
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    json.dump(data, fh)
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as e:
            log.error(
                "storage_file_write_failed",
                path=str(self.path),
                error=str(e),
                error_type=type(e).__name__,
            )
            raise StorageFailureError(
                "Could not write storage file", details={"path": str(self.path)}
            ) from e

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        updated = dict(self._data)
        updated[key] = value
        self._flush(updated)
        self._data = updated

    def remove(self, key: str) -> None:
        if key not in self._data:
            return
        updated = dict(self._data)
        del updated[key]
        self._flush(updated)
        self._data = updated
