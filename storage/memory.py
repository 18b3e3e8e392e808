from typing import Optional

from errors import StorageFailureError
from shared.logging import get_logger

log = get_logger(__name__)


class MemoryStorage:
    """
    Volatile dict-backed storage.

    quota_bytes, when set, caps the summed UTF-8 size of all keys and values
    the way a browser caps localStorage; a write that would exceed it raises
    StorageFailureError and leaves the previous value in place.
    """

    def __init__(self, quota_bytes: Optional[int] = None) -> None:
        self._data: dict[str, str] = {}
        self.quota_bytes = quota_bytes

    def _size_with(self, key: str, value: str) -> int:
        size = len(key.encode("utf-8")) + len(value.encode("utf-8"))
        for k, v in self._data.items():
            if k != key:
                size += len(k.encode("utf-8")) + len(v.encode("utf-8"))
        return size

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        if self.quota_bytes is not None:
            size = self._size_with(key, value)
            if size > self.quota_bytes:
                log.error(
                    "storage_quota_exceeded",
                    key=key,
                    size=size,
                    quota_bytes=self.quota_bytes,
                )
                raise StorageFailureError(
                    "Storage quota exceeded", details={"key": key}
                )
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)
