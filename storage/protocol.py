from typing import Optional, Protocol, runtime_checkable


@runtime_checkable
class StorageAdapter(Protocol):
    """Durable string key-value storage.

    get() returns None for a missing key; remove() of a missing key is a
    no-op. Backend failures raise errors.StorageFailureError.
    """

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...
