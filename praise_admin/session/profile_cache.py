from __future__ import annotations

import logging
import time
from typing import Optional

from praise_admin.core.kv_store import DurableKeyValueStore
from praise_admin.core.settings import DEFAULT_PROFILE_CACHE_TTL_SECONDS
from praise_admin.domain.records import Profile
from praise_admin.session.cache_entry import Clock, DurableSlot
from praise_admin.session.keys import SessionKeys

logger = logging.getLogger(__name__)


class ProfileCache:
    """Single-slot TTL cache of the signed-in user's profile document.

    A client session tracks one user at a time, so writing a profile for a
    different user replaces the slot rather than adding a second entry.
    """

    def __init__(
        self,
        store: DurableKeyValueStore,
        *,
        session_namespace: str = "session",
        ttl_seconds: float = DEFAULT_PROFILE_CACHE_TTL_SECONDS,
        clock: Clock = time.time,
    ) -> None:
        self._slot = DurableSlot(
            store,
            SessionKeys.profile_slot(session_namespace),
            ttl_seconds=ttl_seconds,
            clock=clock,
        )

    async def get(self, user_id: str) -> Optional[Profile]:
        entry = await self._slot.read(user_id)
        if entry is None or not isinstance(entry.payload, dict):
            return None
        return entry.payload

    async def set(self, user_id: str, profile: Profile) -> None:
        await self._slot.write(user_id, dict(profile))

    async def clear(self) -> None:
        await self._slot.clear()
        logger.debug("Profile cache cleared")


__all__ = ["ProfileCache"]
