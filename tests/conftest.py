import asyncio
import os
import tempfile
from collections import Counter
from typing import Dict, List, Optional, Sequence

import pytest

TEST_ENV = {
    "ENVIRONMENT": "test",
    "REDIS_URL": "",
    "KV_NAMESPACE": "praise-admin-test",
    "LOG_LEVEL": "WARNING",
    "LOG_JSON": "false",
    "SESSION_SECRET": "test-session-secret-0123456789abcdef0123456789abcd",
    "DATA_DIR": tempfile.mkdtemp(prefix="praise-admin-tests-"),
    "SEED_FILE": "",
    "SUPER_ADMIN_EMAILS": "boss@example.org",
    "SUPER_ADMIN_UIDS": "",
}

for key, value in TEST_ENV.items():
    os.environ[key] = value

from praise_admin.core.kv_store import InMemoryKeyValueStore  # noqa: E402
from praise_admin.domain.records import AdminPageRecord, SongRecord  # noqa: E402
from praise_admin.domain.zones import Zone, ZoneTable, allow_list_predicate  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def _set_test_env():
    """Force deterministic env for tests and reset cached settings."""

    for key, value in TEST_ENV.items():
        os.environ[key] = value

    from praise_admin.core import settings as settings_module

    settings_module.get_settings.cache_clear()
    yield
    settings_module.get_settings.cache_clear()


SUPER_ADMIN_EMAIL = "boss@example.org"

ZONES = (
    Zone(id="zone-1", name="Zone One", theme_color="#3B82F6", slug="zone-one", region="South Africa"),
    Zone(id="zone-2", name="Zone Two", theme_color="#EF4444", slug="zone-two", region="Kenya"),
    Zone(id="hq-1", name="HQ Choir", theme_color="#9333EA", is_hq=True, slug="hq-choir", region="Headquarters"),
)


class ManualClock:
    """Clock callable advanced by hand so TTL tests never sleep."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeMembershipStore:
    """Membership documents per user with call counters.

    ``gate`` holds every bulk lookup until set; ``fail`` / ``fail_targeted``
    make the next lookups raise.
    """

    def __init__(self) -> None:
        self.zone_docs: Dict[str, List[dict]] = {}
        self.hq_docs: Dict[str, List[dict]] = {}
        self.calls: Counter = Counter()
        self.gate: Optional[asyncio.Event] = None
        self.fail: Optional[Exception] = None
        self.fail_targeted: Optional[Exception] = None

    def add_zone(self, user_id: str, zone_id: str, role: str = "member") -> None:
        self.zone_docs.setdefault(user_id, []).append({"userId": user_id, "zoneId": zone_id, "role": role})

    def add_hq(self, user_id: str, hq_group_id: str, role: str = "member") -> None:
        self.hq_docs.setdefault(user_id, []).append(
            {"userId": user_id, "hqGroupId": hq_group_id, "role": role}
        )

    def revoke(self, user_id: str, zone_id: str) -> None:
        self.zone_docs[user_id] = [d for d in self.zone_docs.get(user_id, []) if d["zoneId"] != zone_id]
        self.hq_docs[user_id] = [d for d in self.hq_docs.get(user_id, []) if d["hqGroupId"] != zone_id]

    async def _enter(self, name: str) -> None:
        self.calls[name] += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.fail is not None:
            raise self.fail

    async def get_zone_memberships_by_user(self, user_id: str) -> List[dict]:
        await self._enter("zone")
        return list(self.zone_docs.get(user_id, []))

    async def get_hq_memberships_by_user(self, user_id: str) -> List[dict]:
        await self._enter("hq")
        return list(self.hq_docs.get(user_id, []))

    async def get_zone_membership(self, user_id: str, zone_id: str) -> Optional[dict]:
        self.calls["targeted"] += 1
        if self.fail_targeted is not None:
            raise self.fail_targeted
        return next((d for d in self.zone_docs.get(user_id, []) if d["zoneId"] == zone_id), None)

    async def get_hq_membership(self, user_id: str, hq_group_id: str) -> Optional[dict]:
        self.calls["targeted"] += 1
        if self.fail_targeted is not None:
            raise self.fail_targeted
        return next((d for d in self.hq_docs.get(user_id, []) if d["hqGroupId"] == hq_group_id), None)


class FakePageQueries:
    """Page and song listings with per-zone / per-page gates."""

    def __init__(self) -> None:
        self.pages: Dict[str, List[AdminPageRecord]] = {}
        self.songs: Dict[str, List[SongRecord]] = {}
        self.page_calls: List[str] = []
        self.song_calls: List[tuple] = []
        self.page_gates: Dict[str, asyncio.Event] = {}
        self.song_gates: Dict[str, asyncio.Event] = {}
        self.fail: Optional[Exception] = None

    def add_page(self, zone_id: str, page_id: str, name: str = "", songs: Sequence[str] = ()) -> None:
        record = AdminPageRecord.from_document(
            {"id": page_id, "name": name or f"Praise Night {page_id}", "date": "2026-03-01"},
            song_count=len(songs),
        )
        self.pages.setdefault(zone_id, []).append(record)
        self.songs[page_id] = [
            {"id": song_id, "title": song_id, "praiseNightId": page_id, "zoneId": zone_id} for song_id in songs
        ]

    async def get_pages_by_zone(self, zone_id: str) -> List[AdminPageRecord]:
        self.page_calls.append(zone_id)
        gate = self.page_gates.get(zone_id)
        if gate is not None:
            await gate.wait()
        if self.fail is not None:
            raise self.fail
        return list(self.pages.get(zone_id, []))

    async def get_songs_by_page(self, page_id: str, zone_id: Optional[str]) -> List[SongRecord]:
        self.song_calls.append((page_id, zone_id))
        gate = self.song_gates.get(page_id)
        if gate is not None:
            await gate.wait()
        if self.fail is not None:
            raise self.fail
        return [dict(song) for song in self.songs.get(page_id, [])]


class FakeProfileSource:
    def __init__(self) -> None:
        self.profiles: Dict[str, dict] = {}
        self.calls = 0
        self.fail: Optional[Exception] = None

    async def get_profile(self, user_id: str) -> Optional[dict]:
        self.calls += 1
        if self.fail is not None:
            raise self.fail
        profile = self.profiles.get(user_id)
        return dict(profile) if profile is not None else None


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def kv_store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore(namespace="test")


@pytest.fixture
def zone_table() -> ZoneTable:
    return ZoneTable(ZONES, is_super_admin=allow_list_predicate(emails=[SUPER_ADMIN_EMAIL]))


@pytest.fixture
def memberships() -> FakeMembershipStore:
    return FakeMembershipStore()


@pytest.fixture
def page_queries() -> FakePageQueries:
    return FakePageQueries()


@pytest.fixture
def profile_source() -> FakeProfileSource:
    return FakeProfileSource()
