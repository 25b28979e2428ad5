from __future__ import annotations

from sop.application.ports.cache import CacheStore
from sop.infrastructure.cache.redis_client import get_redis_client, key_prefix


class RedisCacheStore(CacheStore):
    """String cache on the shared redis, with every key under one namespace."""

    def __init__(self, timeout_seconds: float = 1.0, prefix: str | None = None) -> None:
        self._timeout_seconds = timeout_seconds
        self._prefix = key_prefix() if prefix is None else prefix

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    def get(self, key: str) -> str | None:
        value = get_redis_client(timeout_seconds=self._timeout_seconds).get(self._key(key))
        return None if value is None else str(value)

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        get_redis_client(timeout_seconds=self._timeout_seconds).set(
            self._key(key),
            value,
            ex=ttl_seconds,
        )
