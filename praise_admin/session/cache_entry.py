"""Timestamped cache entries stored in the durable key-value store.

An entry is ``{"owner": ..., "writtenAt": ..., "payload": ...}`` serialized as
JSON. Reads check the owner and the age; anything that does not parse is a
corrupt entry and reads as a miss.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, TypeVar

from praise_admin.core.kv_store import DurableKeyValueStore
from praise_admin.domain.errors import CacheCorruptError

logger = logging.getLogger(__name__)

T = TypeVar("T")

Clock = Callable[[], float]


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    payload: T
    written_at: float
    owner: str

    def age(self, now: float) -> float:
        return now - self.written_at

    def is_fresh(self, ttl_seconds: float, now: float) -> bool:
        return 0 <= self.age(now) < ttl_seconds


def encode_entry(entry: CacheEntry[Any]) -> str:
    return json.dumps(
        {"owner": entry.owner, "writtenAt": entry.written_at, "payload": entry.payload},
        ensure_ascii=False,
        default=str,
    )


def decode_entry(key: str, raw: str) -> CacheEntry[Any]:
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise CacheCorruptError(key, f"invalid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise CacheCorruptError(key, "entry is not an object")
    try:
        written_at = float(data["writtenAt"])
        owner = str(data["owner"])
        payload = data["payload"]
    except (KeyError, TypeError, ValueError) as exc:
        raise CacheCorruptError(key, f"missing or invalid field: {exc}") from exc
    return CacheEntry(payload=payload, written_at=written_at, owner=owner)


class DurableSlot:
    """One TTL-checked, owner-stamped entry at a fixed key."""

    def __init__(
        self,
        store: DurableKeyValueStore,
        key: str,
        *,
        ttl_seconds: float,
        clock: Clock = time.time,
    ) -> None:
        self._store = store
        self.key = key
        self.ttl_seconds = ttl_seconds
        self._clock = clock

    async def read(self, owner: str) -> Optional[CacheEntry[Any]]:
        raw = await self._store.get(self.key)
        if raw is None:
            return None
        try:
            entry = decode_entry(self.key, raw)
        except CacheCorruptError as exc:
            logger.warning("Discarding corrupt cache entry: %s", exc, extra={"cache_key": self.key})
            await self._store.remove(self.key)
            return None
        if entry.owner != owner:
            logger.debug("Cache slot %s owned by another user", self.key)
            return None
        if not entry.is_fresh(self.ttl_seconds, self._clock()):
            logger.debug("Cache slot %s expired", self.key)
            return None
        return entry

    async def write(self, owner: str, payload: Any) -> CacheEntry[Any]:
        entry = CacheEntry(payload=payload, written_at=self._clock(), owner=owner)
        await self._store.set(self.key, encode_entry(entry))
        return entry

    async def clear(self) -> None:
        await self._store.remove(self.key)


__all__ = ["CacheEntry", "Clock", "DurableSlot", "decode_entry", "encode_entry"]
