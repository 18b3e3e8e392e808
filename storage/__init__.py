"""
Storage adapters.

Every other layer talks to persistence through the StorageAdapter protocol;
build_storage() picks the concrete backend from settings.
"""

from config import StorageSettings

from .file import JsonFileStorage
from .memory import MemoryStorage
from .protocol import StorageAdapter
from .redis_storage import RedisStorage


def build_storage(settings: StorageSettings) -> StorageAdapter:
    if settings.storage_backend == "memory":
        return MemoryStorage()
    if settings.storage_backend == "redis":
        return RedisStorage.from_url(settings.redis_uri)
    return JsonFileStorage(settings.storage_path)


__all__ = [
    "StorageAdapter",
    "MemoryStorage",
    "JsonFileStorage",
    "RedisStorage",
    "build_storage",
]
