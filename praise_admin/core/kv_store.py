"""Durable key-value storage backing the session caches.

Profile, zone and preference caches only need string get/set/remove. The
in-memory backend serves tests and single-process development; the Redis
backend is used when ``REDIS_URL`` is configured.
"""

from __future__ import annotations

import abc
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from praise_admin.core.redis_factory import create_redis_client

logger = logging.getLogger(__name__)


@dataclass
class KeyValueStoreMetrics:
    """Simple counters describing store behaviour."""

    hits: int = 0
    misses: int = 0
    errors: int = 0


class DurableKeyValueStore(abc.ABC):
    """Abstract string key-value store shared by the session caches."""

    def __init__(self, *, namespace: str = "praise-admin") -> None:
        self.namespace = namespace.rstrip(":")
        self.metrics = KeyValueStoreMetrics()
        self._logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def _record(self, value: Optional[str]) -> Optional[str]:
        if value is None:
            self.metrics.misses += 1
        else:
            self.metrics.hits += 1
        return value

    @abc.abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Return the stored value or None."""

    @abc.abstractmethod
    async def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""

    @abc.abstractmethod
    async def remove(self, key: str) -> None:
        """Delete ``key`` if present."""

    async def close(self) -> None:  # pragma: no cover - optional override
        return None


class InMemoryKeyValueStore(DurableKeyValueStore):
    """Process-local store; the durable contract holds for the process lifetime."""

    def __init__(self, *, namespace: str = "praise-admin") -> None:
        super().__init__(namespace=namespace)
        self._data: Dict[str, str] = {}

    async def get(self, key: str) -> Optional[str]:
        return self._record(self._data.get(key))

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value

    async def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> List[str]:
        return sorted(self._data)


class RedisKeyValueStore(DurableKeyValueStore):
    """Redis-backed store.

    Redis outages degrade to misses and dropped writes, so a session keeps
    working (slower) instead of failing.
    """

    def __init__(self, redis: aioredis.Redis, *, namespace: str = "praise-admin") -> None:
        super().__init__(namespace=namespace)
        self._redis = redis
        self._prefix = f"{self.namespace}:"

    @classmethod
    def from_url(cls, url: str, *, namespace: str = "praise-admin", **kwargs: Any) -> "RedisKeyValueStore":
        client = create_redis_client(url, component="kv-store", decode_responses=True, **kwargs)
        return cls(client, namespace=namespace)

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    async def get(self, key: str) -> Optional[str]:
        try:
            value = await self._redis.get(self._key(key))
        except RedisError as exc:
            self.metrics.errors += 1
            self._logger.warning("KV get failed for key %s: %s", key, exc)
            return self._record(None)
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        return self._record(value)

    async def set(self, key: str, value: str) -> None:
        try:
            await self._redis.set(self._key(key), value)
        except RedisError as exc:
            self.metrics.errors += 1
            self._logger.warning("KV set failed for key %s: %s", key, exc)

    async def remove(self, key: str) -> None:
        try:
            await self._redis.delete(self._key(key))
        except RedisError as exc:
            self.metrics.errors += 1
            self._logger.warning("KV remove failed for key %s: %s", key, exc)

    async def close(self) -> None:  # pragma: no cover - depends on driver internals
        try:
            await self._redis.aclose()
        except RedisError:
            logger.exception("Failed to close Redis KV store cleanly")


def build_kv_store(*, redis_url: Optional[str], namespace: str = "praise-admin") -> DurableKeyValueStore:
    """Factory helper producing a store based on configuration."""

    if redis_url:
        return RedisKeyValueStore.from_url(redis_url, namespace=namespace)
    logger.info("KV store running in memory (no REDIS_URL)")
    return InMemoryKeyValueStore(namespace=namespace)


__all__ = [
    "DurableKeyValueStore",
    "InMemoryKeyValueStore",
    "KeyValueStoreMetrics",
    "RedisKeyValueStore",
    "build_kv_store",
]
