from __future__ import annotations

import logging
from typing import Optional

from praise_admin.core.kv_store import DurableKeyValueStore
from praise_admin.session.keys import SessionKeys

logger = logging.getLogger(__name__)


class PreferenceStore:
    """Last-selected zone per user.

    Only a hint: callers must fall back to the first available zone when the
    stored id is no longer among the user's zones.
    """

    def __init__(self, store: DurableKeyValueStore) -> None:
        self._store = store

    async def get(self, user_id: str) -> Optional[str]:
        value = await self._store.get(SessionKeys.zone_preference(user_id))
        if value is None:
            return None
        value = value.strip()
        return value or None

    async def set(self, user_id: str, zone_id: str) -> None:
        await self._store.set(SessionKeys.zone_preference(user_id), zone_id)
        logger.debug("Zone preference stored", extra={"user_id": user_id, "zone_id": zone_id})

    async def remove(self, user_id: str) -> None:
        await self._store.remove(SessionKeys.zone_preference(user_id))


__all__ = ["PreferenceStore"]
