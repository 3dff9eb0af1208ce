"""Durable TTL cache around zone resolution.

A fresh durable entry is hydrated without calling the resolver; the current
zone is re-selected from the live preference and the role re-derived from
the cached memberships, so changing the preference never needs a refetch.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Optional, Tuple

from praise_admin.core.kv_store import DurableKeyValueStore
from praise_admin.core.result import failure, success
from praise_admin.core.settings import DEFAULT_ZONE_CACHE_TTL_SECONDS
from praise_admin.domain.errors import CacheCorruptError, ResolutionError
from praise_admin.domain.memberships import (
    Membership,
    hq_membership_from_document,
    zone_membership_from_document,
)
from praise_admin.domain.protocols import MembershipStore
from praise_admin.domain.zone_state import ResolvedZoneState, select_zone
from praise_admin.domain.zones import Zone
from praise_admin.session.cache_entry import CacheEntry, Clock, DurableSlot
from praise_admin.session.keys import SessionKeys
from praise_admin.session.preferences import PreferenceStore
from praise_admin.session.zone_resolver import ResolveResult, ZoneResolver

logger = logging.getLogger(__name__)


class ZoneCache:
    def __init__(
        self,
        store: DurableKeyValueStore,
        resolver: ZoneResolver,
        preferences: PreferenceStore,
        memberships: MembershipStore,
        *,
        ttl_seconds: float = DEFAULT_ZONE_CACHE_TTL_SECONDS,
        clock: Clock = time.time,
    ) -> None:
        self._store = store
        self._resolver = resolver
        self._preferences = preferences
        self._memberships = memberships
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._state: Optional[ResolvedZoneState] = None
        self._user: Optional[Tuple[str, Optional[str]]] = None
        # Bumped by switches and clears; an older resolve must re-check before commit.
        self._epoch = 0
        self.hits = 0
        self.misses = 0

    @property
    def state(self) -> Optional[ResolvedZoneState]:
        return self._state

    @property
    def user_id(self) -> Optional[str]:
        return self._user[0] if self._user else None

    def _slot(self, user_id: str) -> DurableSlot:
        return DurableSlot(
            self._store,
            SessionKeys.zone_state(user_id),
            ttl_seconds=self._ttl_seconds,
            clock=self._clock,
        )

    async def load(self, user_id: str, email: Optional[str]) -> ResolveResult:
        """Return the zone state, from the durable cache when fresh."""

        self._user = (user_id, email)
        preferred = await self._preferences.get(user_id)
        slot = self._slot(user_id)
        entry = await slot.read(user_id)
        if entry is not None:
            cached = await self._decode(slot, entry)
            if cached is not None and cached.has_access:
                current = select_zone(cached.user_zones, preferred, cached.current_zone_id)
                state = cached.with_current(current) if current is not None else cached
                self._state = state
                self.hits += 1
                logger.debug(
                    "Zone cache hit",
                    extra={"user_id": user_id, "zone_id": state.current_zone_id},
                )
                return success(state)

        self.misses += 1
        return await self._resolve(user_id, email, preferred)

    async def refresh_zones(self) -> ResolveResult:
        """Drop the durable entry and resolve again regardless of TTL."""

        if self._user is None:
            return failure(ResolutionError("-", "no user loaded"))
        user_id, email = self._user
        await self._slot(user_id).clear()
        preferred = await self._preferences.get(user_id)
        return await self._resolve(user_id, email, preferred)

    async def switch_zone(self, zone_id: str) -> bool:
        state = self._state
        if state is None:
            return False
        if state.current_zone_id == zone_id:
            return True
        zone = state.find_zone(zone_id)
        if zone is None:
            logger.info(
                "Refusing switch to inaccessible zone",
                extra={"user_id": state.user_id, "zone_id": zone_id},
            )
            return False

        self._epoch += 1
        await self._preferences.set(state.user_id, zone_id)

        memberships = state.memberships
        if not state.is_super_admin:
            memberships = await self._refresh_membership(state, zone)

        latest = self._state
        if latest is None or latest.user_id != state.user_id or latest.find_zone(zone_id) is None:
            logger.info("Zone switch superseded", extra={"user_id": state.user_id, "zone_id": zone_id})
            return False

        switched = latest.with_current(zone, memberships)
        self._state = switched
        await self._persist(switched)
        logger.info(
            "Switched zone",
            extra={"user_id": switched.user_id, "zone_id": zone_id, "role": switched.role.value},
        )
        return True

    async def clear(self) -> None:
        self._epoch += 1
        if self._user is not None:
            await self._slot(self._user[0]).clear()
        self._state = None
        self._user = None

    async def _resolve(self, user_id: str, email: Optional[str], preferred: Optional[str]) -> ResolveResult:
        epoch = self._epoch
        result = await self._resolver.resolve(user_id, email, preferred)
        if result.is_failure():
            return result
        state = result.unwrap()

        if self._user is None or self._user[0] != user_id:
            logger.info("Discarding zone resolution for signed-out user", extra={"user_id": user_id})
            return result

        if self._epoch != epoch and state.has_access:
            latest_preference = await self._preferences.get(user_id)
            current = select_zone(state.user_zones, latest_preference)
            if current is not None:
                state = state.with_current(current)

        self._state = state
        if state.has_access:
            await self._persist(state)
        return success(state)

    async def _persist(self, state: ResolvedZoneState) -> None:
        await self._slot(state.user_id).write(state.user_id, state.to_dict())

    async def _decode(self, slot: DurableSlot, entry: CacheEntry[Any]) -> Optional[ResolvedZoneState]:
        try:
            if not isinstance(entry.payload, dict):
                raise CacheCorruptError(slot.key, "payload is not an object")
            return ResolvedZoneState.from_dict(entry.payload)
        except (CacheCorruptError, KeyError, TypeError, ValueError) as exc:
            logger.warning("Discarding unreadable zone cache entry: %s", exc, extra={"cache_key": slot.key})
            await slot.clear()
            return None

    async def _refresh_membership(self, state: ResolvedZoneState, zone: Zone) -> Tuple[Membership, ...]:
        """Targeted lookup of the membership for one zone.

        A failed lookup keeps the cached membership; a missing document drops it.
        """

        user_id = state.user_id
        try:
            if zone.is_hq:
                doc = await self._memberships.get_hq_membership(user_id, zone.id)
                fresh: Optional[Membership] = (
                    hq_membership_from_document(doc, user_id=user_id) if doc is not None else None
                )
            else:
                doc = await self._memberships.get_zone_membership(user_id, zone.id)
                fresh = zone_membership_from_document(doc, user_id=user_id) if doc is not None else None
        except Exception as exc:
            logger.warning(
                "Targeted membership lookup failed, using cached membership: %s",
                exc,
                extra={"user_id": user_id, "zone_id": zone.id},
            )
            return state.memberships

        others = tuple(m for m in state.memberships if m.zone_id != zone.id)
        return others + (fresh,) if fresh is not None else others


__all__ = ["ZoneCache"]
