"""Composition root for one authenticated admin session.

``AdminSession`` owns the profile, zone and admin data caches of a single
user, drives the session lifecycle and answers every consumer call with an
``Outcome``. Errors from collaborators never escape these methods; they come
back as ``Outcome.error``. ``SessionRegistry`` keeps one session per user for
a server process.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Generic, List, Optional, Tuple, TypeVar

from praise_admin.core.kv_store import DurableKeyValueStore
from praise_admin.core.result import failure
from praise_admin.core.settings import (
    DEFAULT_ADMIN_DATA_TTL_SECONDS,
    DEFAULT_PROFILE_CACHE_TTL_SECONDS,
    DEFAULT_ZONE_CACHE_TTL_SECONDS,
)
from praise_admin.domain.errors import DataFetchError, ResolutionError
from praise_admin.domain.protocols import (
    AuthProvider,
    AuthUser,
    MembershipStore,
    PageQueryService,
    ProfileSource,
)
from praise_admin.domain.records import AdminPageRecord, Profile, SongRecord
from praise_admin.domain.roles import ROLE_LABELS, UserRole, permissions_for
from praise_admin.domain.zone_state import ResolvedZoneState
from praise_admin.domain.zones import Zone, ZoneTable
from praise_admin.session.admin_data import AdminDataCache
from praise_admin.session.cache_entry import Clock
from praise_admin.session.lifecycle import SessionLifecycle, SessionPhase
from praise_admin.session.preferences import PreferenceStore
from praise_admin.session.profile_cache import ProfileCache
from praise_admin.session.zone_cache import ZoneCache
from praise_admin.session.zone_resolver import ResolveResult, ZoneResolver

logger = logging.getLogger(__name__)

T = TypeVar("T")

PROFILE_LOAD_ERROR = "Failed to load profile"


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Plain data plus loading and error indicators."""

    data: Optional[T] = None
    loading: bool = False
    error: Optional[str] = None
    retryable: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class ZoneStateView:
    phase: SessionPhase
    current_zone: Optional[Zone] = None
    user_zones: Tuple[Zone, ...] = ()
    role: UserRole = UserRole.ZONE_MEMBER
    is_super_admin: bool = False
    no_zone_access: bool = False
    stale: bool = False
    permissions: Dict[str, bool] = field(default_factory=dict)

    @classmethod
    def from_state(cls, state: ResolvedZoneState, phase: SessionPhase) -> "ZoneStateView":
        return cls(
            phase=phase,
            current_zone=state.current_zone,
            user_zones=state.user_zones,
            role=state.role,
            is_super_admin=state.is_super_admin,
            no_zone_access=not state.has_access,
            stale=phase is SessionPhase.ERROR,
            permissions=permissions_for(state.role) if state.has_access else {},
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "phase": self.phase.value,
            "current_zone": self.current_zone.to_dict() if self.current_zone else None,
            "user_zones": [zone.to_dict() for zone in self.user_zones],
            "role": self.role.value,
            "role_label": ROLE_LABELS[self.role],
            "is_super_admin": self.is_super_admin,
            "no_zone_access": self.no_zone_access,
            "stale": self.stale,
            "permissions": dict(self.permissions),
        }


@dataclass(frozen=True)
class ZoneSwitch:
    switched: bool
    zone: ZoneStateView


def default_profile(user: AuthUser) -> Profile:
    """Profile used when the source has no document for the user yet."""

    now = datetime.now(timezone.utc).isoformat()
    return {
        "id": user.uid,
        "first_name": "",
        "middle_name": "",
        "last_name": "",
        "email": user.email or "",
        "phone_number": "",
        "region": "",
        "zone": "",
        "church": "",
        "social_provider": "email",
        "social_id": user.email or "",
        "profile_completed": False,
        "created_at": now,
        "updated_at": now,
    }


class StaticAuthProvider:
    """Auth provider for a user already authenticated by the caller."""

    def __init__(self, user: Optional[AuthUser]) -> None:
        self._user = user

    @property
    def loading(self) -> bool:
        return False

    async def current_user(self) -> Optional[AuthUser]:
        return self._user


class AdminSession:
    def __init__(
        self,
        auth: AuthProvider,
        *,
        profiles: ProfileSource,
        profile_cache: ProfileCache,
        zone_cache: ZoneCache,
        admin_data: AdminDataCache,
    ) -> None:
        self._auth = auth
        self._profiles = profiles
        self._profile_cache = profile_cache
        self._zones = zone_cache
        self._admin_data = admin_data
        self._lifecycle = SessionLifecycle()
        self._resolved: Optional[ResolvedZoneState] = None
        self._user_id: Optional[str] = None
        # Bumped on logout so work started before it does not commit after it.
        self._epoch = 0

    @property
    def phase(self) -> SessionPhase:
        return self._lifecycle.phase

    @property
    def admin_data(self) -> AdminDataCache:
        return self._admin_data

    @property
    def zone_cache(self) -> ZoneCache:
        return self._zones

    def _view(self) -> Optional[ZoneStateView]:
        phase = self._lifecycle.phase
        if self._resolved is None:
            if phase is SessionPhase.UNAUTHENTICATED:
                return None
            return ZoneStateView(phase=phase)
        return ZoneStateView.from_state(self._resolved, phase)

    async def _current_user(self) -> Optional[AuthUser]:
        user = await self._auth.current_user()
        if user is None:
            if self._user_id is not None:
                await self.logout()
            return None
        if self._user_id is not None and self._user_id != user.uid:
            logger.info("Auth user changed, resetting session", extra={"user_id": user.uid})
            await self.logout()
        self._user_id = user.uid
        return user

    # Profile

    async def get_profile(self) -> Outcome[Profile]:
        if self._auth.loading:
            return Outcome(loading=True)
        user = await self._current_user()
        if user is None:
            return Outcome()
        cached = await self._profile_cache.get(user.uid)
        if cached is not None:
            return Outcome(data=cached)
        return await self._load_profile(user, fallback=None)

    async def refresh_profile(self) -> Outcome[Profile]:
        if self._auth.loading:
            return Outcome(loading=True)
        user = await self._current_user()
        if user is None:
            return Outcome()
        fallback = await self._profile_cache.get(user.uid)
        return await self._load_profile(user, fallback=fallback)

    async def _load_profile(self, user: AuthUser, *, fallback: Optional[Profile]) -> Outcome[Profile]:
        try:
            document = await self._profiles.get_profile(user.uid)
        except Exception as exc:
            logger.warning("Profile load failed: %s", exc, extra={"user_id": user.uid})
            return Outcome(data=fallback, error=PROFILE_LOAD_ERROR, retryable=True)
        if document is None:
            logger.info("No profile document, using defaults", extra={"user_id": user.uid})
            profile = default_profile(user)
        else:
            profile = dict(document)
        await self._profile_cache.set(user.uid, profile)
        return Outcome(data=profile)

    # Zones

    async def get_zone_state(self) -> Outcome[ZoneStateView]:
        if self._auth.loading:
            return Outcome(data=self._view(), loading=True)
        user = await self._current_user()
        if user is None:
            return Outcome()
        if self._lifecycle.phase is SessionPhase.SWITCHING:
            return Outcome(data=self._view(), loading=True)
        return await self._resolve_with(user, refresh=False)

    async def refresh_zones(self) -> Outcome[ZoneStateView]:
        if self._auth.loading:
            return Outcome(data=self._view(), loading=True)
        user = await self._current_user()
        if user is None:
            return Outcome()
        if self._lifecycle.busy:
            return Outcome(data=self._view(), loading=True)
        return await self._resolve_with(user, refresh=self._zones.user_id == user.uid)

    async def _resolve_with(self, user: AuthUser, *, refresh: bool) -> Outcome[ZoneStateView]:
        leader = self._lifecycle.phase is not SessionPhase.RESOLVING
        if leader:
            self._lifecycle.transition(SessionPhase.RESOLVING)
        epoch = self._epoch

        result: ResolveResult
        try:
            if refresh:
                result = await self._zones.refresh_zones()
            else:
                result = await self._zones.load(user.uid, user.email)
        except asyncio.CancelledError:
            if leader and epoch == self._epoch:
                self._lifecycle.transition(SessionPhase.ERROR)
            raise
        except Exception as exc:
            logger.exception("Zone resolution raised", extra={"user_id": user.uid})
            result = failure(ResolutionError(user.uid, "resolution raised", cause=exc))

        if epoch != self._epoch:
            return Outcome()

        error = result.error_or_none()
        if error is not None:
            if leader:
                self._lifecycle.transition(SessionPhase.ERROR)
            logger.warning("Zone resolution failed: %s", error, extra={"user_id": user.uid})
            return Outcome(data=self._view(), error=str(error), retryable=True)

        previous_zone_id = self._resolved.current_zone_id if self._resolved is not None else None
        first_resolve = self._resolved is None
        self._resolved = result.unwrap()
        if leader:
            self._lifecycle.transition(SessionPhase.RESOLVED)
        # Admin data follows the current zone only when it changes.
        if first_resolve or self._resolved.current_zone_id != previous_zone_id:
            self._admin_data.scope_to(self._resolved.current_zone_id)
        return Outcome(data=self._view())

    async def switch_zone(self, zone_id: str) -> Outcome[ZoneSwitch]:
        if self._auth.loading:
            return Outcome(loading=True)
        user = await self._current_user()
        if user is None:
            return Outcome()

        if self._resolved is None or self._lifecycle.phase is not SessionPhase.RESOLVED:
            loaded = await self.get_zone_state()
            if not loaded.ok or loaded.loading:
                return Outcome(
                    data=ZoneSwitch(switched=False, zone=loaded.data or ZoneStateView(phase=self.phase)),
                    loading=loaded.loading,
                    error=loaded.error,
                    retryable=loaded.retryable,
                )
        if self._lifecycle.phase is not SessionPhase.RESOLVED:
            pending = self._view() or ZoneStateView(phase=self.phase)
            return Outcome(data=ZoneSwitch(switched=False, zone=pending), loading=True)

        epoch = self._epoch
        self._lifecycle.transition(SessionPhase.SWITCHING)
        try:
            switched = await self._zones.switch_zone(zone_id)
        finally:
            if epoch == self._epoch:
                self._lifecycle.transition(SessionPhase.RESOLVED)
        if epoch != self._epoch:
            return Outcome()

        if switched and self._zones.state is not None:
            self._resolved = self._zones.state
            self._admin_data.scope_to(self._resolved.current_zone_id)
        view = self._view() or ZoneStateView(phase=self.phase)
        return Outcome(data=ZoneSwitch(switched=switched, zone=view))

    # Admin data

    async def _zone_for_admin_data(self, zone_id: Optional[str]) -> Outcome[str]:
        loaded = await self.get_zone_state()
        if self._resolved is None:
            return Outcome(loading=loaded.loading, error=loaded.error, retryable=loaded.retryable)
        if zone_id is None:
            return Outcome(data=self._resolved.current_zone_id)
        if self._resolved.find_zone(zone_id) is None:
            logger.info("Zone not accessible for admin data", extra={"user_id": self._user_id, "zone_id": zone_id})
            return Outcome(error=f"Zone {zone_id} is not accessible")
        return Outcome(data=zone_id)

    async def get_pages(self, zone_id: Optional[str] = None) -> Outcome[List[AdminPageRecord]]:
        if self._auth.loading:
            return Outcome(data=[], loading=True)
        target = await self._zone_for_admin_data(zone_id)
        if target.data is None:
            return Outcome(data=[], loading=target.loading, error=target.error, retryable=target.retryable)
        try:
            pages = await self._admin_data.get_pages(target.data)
        except DataFetchError as exc:
            return Outcome(data=[], error=str(exc), retryable=exc.retryable)
        return Outcome(data=pages)

    async def get_page(self, page_id: str) -> Outcome[AdminPageRecord]:
        page = self._admin_data.get_page(page_id)
        if page is not None:
            return Outcome(data=page)
        listed = await self.get_pages()
        if not listed.ok or listed.loading:
            return Outcome(loading=listed.loading, error=listed.error, retryable=listed.retryable)
        return Outcome(data=self._admin_data.get_page(page_id))

    async def get_songs(self, page_id: str, force_refresh: bool = False) -> Outcome[List[SongRecord]]:
        if self._auth.loading:
            return Outcome(data=[], loading=True)
        target = await self._zone_for_admin_data(None)
        if target.data is None:
            return Outcome(data=[], loading=target.loading, error=target.error, retryable=target.retryable)
        try:
            songs = await self._admin_data.get_songs(page_id, force_refresh=force_refresh)
        except DataFetchError as exc:
            return Outcome(data=[], error=str(exc), retryable=exc.retryable)
        return Outcome(data=songs)

    async def refresh_admin_data(self) -> Outcome[None]:
        self._admin_data.refresh_data()
        return Outcome()

    async def logout(self) -> Outcome[None]:
        """Clear every cache of the session; the zone preference survives."""

        self._epoch += 1
        self._lifecycle.transition(SessionPhase.UNAUTHENTICATED)
        await self._profile_cache.clear()
        await self._zones.clear()
        self._admin_data.reset()
        if self._user_id is not None:
            logger.info("Session logged out", extra={"user_id": self._user_id})
        self._resolved = None
        self._user_id = None
        return Outcome()


class SessionRegistry:
    """One ``AdminSession`` per user id, sharing the stores and the resolver."""

    def __init__(
        self,
        *,
        store: DurableKeyValueStore,
        zone_table: ZoneTable,
        memberships: MembershipStore,
        pages: PageQueryService,
        profiles: ProfileSource,
        zone_ttl_seconds: float = DEFAULT_ZONE_CACHE_TTL_SECONDS,
        profile_ttl_seconds: float = DEFAULT_PROFILE_CACHE_TTL_SECONDS,
        admin_data_ttl_seconds: float = DEFAULT_ADMIN_DATA_TTL_SECONDS,
        clock: Clock = time.time,
        monotonic: Clock = time.monotonic,
    ) -> None:
        self._store = store
        self._memberships = memberships
        self._pages = pages
        self._profiles = profiles
        self._resolver = ZoneResolver(zone_table, memberships)
        self._preferences = PreferenceStore(store)
        self._zone_ttl_seconds = zone_ttl_seconds
        self._profile_ttl_seconds = profile_ttl_seconds
        self._admin_data_ttl_seconds = admin_data_ttl_seconds
        self._clock = clock
        self._monotonic = monotonic
        self._sessions: Dict[str, AdminSession] = {}

    @property
    def resolver(self) -> ZoneResolver:
        return self._resolver

    @property
    def preferences(self) -> PreferenceStore:
        return self._preferences

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._sessions

    def build(self, auth: AuthProvider, *, namespace: str) -> AdminSession:
        return AdminSession(
            auth,
            profiles=self._profiles,
            profile_cache=ProfileCache(
                self._store,
                session_namespace=namespace,
                ttl_seconds=self._profile_ttl_seconds,
                clock=self._clock,
            ),
            zone_cache=ZoneCache(
                self._store,
                self._resolver,
                self._preferences,
                self._memberships,
                ttl_seconds=self._zone_ttl_seconds,
                clock=self._clock,
            ),
            admin_data=AdminDataCache(
                self._pages,
                ttl_seconds=self._admin_data_ttl_seconds,
                clock=self._monotonic,
            ),
        )

    def session_for(self, user: AuthUser) -> AdminSession:
        session = self._sessions.get(user.uid)
        if session is None:
            session = self.build(StaticAuthProvider(user), namespace=f"session:{user.uid}")
            self._sessions[user.uid] = session
            logger.debug("Created admin session", extra={"user_id": user.uid})
        return session

    async def end_session(self, user_id: str) -> None:
        session = self._sessions.pop(user_id, None)
        if session is not None:
            await session.logout()

    async def close(self) -> None:
        for user_id in list(self._sessions):
            await self.end_session(user_id)


__all__ = [
    "AdminSession",
    "Outcome",
    "PROFILE_LOAD_ERROR",
    "SessionRegistry",
    "StaticAuthProvider",
    "ZoneStateView",
    "ZoneSwitch",
    "default_profile",
]
