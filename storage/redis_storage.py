from typing import Optional

import redis
from redis.exceptions import RedisError

from errors import StorageFailureError
from shared.logging import get_logger

log = get_logger(__name__)


def get_redis(redis_uri: Optional[str]) -> redis.Redis:
    """Connect to *redis_uri* and ping it; fail loudly if that is not possible."""
    if not redis_uri:
        log.error("redis_uri_not_provided")
        raise StorageFailureError("No REDIS_URI provided for redis storage backend")

    try:
        client = redis.Redis.from_url(redis_uri, decode_responses=True)
        client.ping()
        log.info("redis_connected")
    except RedisError as e:
        log.error("redis_connection_failed", error=str(e), error_type=type(e).__name__)
        raise StorageFailureError("Could not connect to redis") from e

    return client


class RedisStorage:
    """
    Storage adapter backed by plain Redis strings.

    Keys never expire in Redis: session and reset expiry is evaluated by the
    services, and cleanup is explicit.
    """

    def __init__(self, client: redis.Redis, namespace: str = "") -> None:
        self.r = client
        self.namespace = namespace

    @classmethod
    def from_url(cls, redis_uri: Optional[str], namespace: str = "") -> "RedisStorage":
        return cls(get_redis(redis_uri), namespace=namespace)

    def _key(self, key: str) -> str:
        return f"{self.namespace}{key}"

    def get(self, key: str) -> Optional[str]:
        try:
            value = self.r.get(self._key(key))
        except RedisError as e:
            log.error(
                "storage_get_failed", key=key, error=str(e), error_type=type(e).__name__
            )
            raise StorageFailureError("Storage read failed", details={"key": key}) from e
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    def set(self, key: str, value: str) -> None:
        try:
            self.r.set(self._key(key), value)
        except RedisError as e:
            log.error(
                "storage_set_failed", key=key, error=str(e), error_type=type(e).__name__
            )
            raise StorageFailureError("Storage write failed", details={"key": key}) from e

    def remove(self, key: str) -> None:
        try:
            self.r.delete(self._key(key))
        except RedisError as e:
            log.error(
                "storage_remove_failed",
                key=key,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise StorageFailureError("Storage remove failed", details={"key": key}) from e
