"""In-memory membership, page and profile collaborators.

All three read from one seed document::

    {
      "zone_members": [{"userId": "u1", "zoneId": "zone-1", "role": "coordinator"}],
      "hq_members": [{"userId": "u2", "hqGroupId": "hq-1", "role": "member"}],
      "pages": [{"id": "p1", "zoneId": "zone-1", "name": "Easter Praise Night"}],
      "songs": [{"id": "s1", "praiseNightId": "p1", "zoneId": "zone-1", "title": "..."}],
      "profiles": [{"id": "u1", "first_name": "Ada"}]
    }
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from praise_admin.domain.protocols import Document
from praise_admin.domain.records import AdminPageRecord, SongRecord, count_songs_by_page, song_page_id

logger = logging.getLogger(__name__)


def _field(document: Mapping[str, Any], *names: str) -> Optional[str]:
    for name in names:
        value = document.get(name)
        if value:
            return str(value)
    return None


@dataclass
class SeedData:
    zone_members: List[Dict[str, Any]] = field(default_factory=list)
    hq_members: List[Dict[str, Any]] = field(default_factory=list)
    pages: List[Dict[str, Any]] = field(default_factory=list)
    songs: List[Dict[str, Any]] = field(default_factory=list)
    profiles: List[Dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "SeedData":
        return cls(
            zone_members=list(raw.get("zone_members", [])),
            hq_members=list(raw.get("hq_members", [])),
            pages=list(raw.get("pages", [])),
            songs=list(raw.get("songs", [])),
            profiles=list(raw.get("profiles", [])),
        )


def load_seed(path: Optional[Path]) -> SeedData:
    """Read a seed file; a missing path yields an empty seed."""

    if path is None or not Path(path).exists():
        if path is not None:
            logger.warning("Seed file %s not found, starting empty", path)
        return SeedData()
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    seed = SeedData.from_dict(raw)
    logger.info(
        "Loaded seed data from %s",
        path,
        extra={"pages": len(seed.pages), "songs": len(seed.songs), "profiles": len(seed.profiles)},
    )
    return seed


class InMemoryMembershipStore:
    def __init__(
        self,
        zone_members: Sequence[Document] = (),
        hq_members: Sequence[Document] = (),
    ) -> None:
        self._zone_members = [dict(doc) for doc in zone_members]
        self._hq_members = [dict(doc) for doc in hq_members]

    @classmethod
    def from_seed(cls, seed: SeedData) -> "InMemoryMembershipStore":
        return cls(seed.zone_members, seed.hq_members)

    def add_zone_member(self, user_id: str, zone_id: str, role: str = "member") -> None:
        self._zone_members.append({"userId": user_id, "zoneId": zone_id, "role": role})

    def add_hq_member(self, user_id: str, hq_group_id: str, role: str = "member") -> None:
        self._hq_members.append({"userId": user_id, "hqGroupId": hq_group_id, "role": role})

    def remove_user(self, user_id: str) -> None:
        self._zone_members = [doc for doc in self._zone_members if _field(doc, "userId", "user_id") != user_id]
        self._hq_members = [doc for doc in self._hq_members if _field(doc, "userId", "user_id") != user_id]

    async def get_zone_memberships_by_user(self, user_id: str) -> List[Document]:
        return [doc for doc in self._zone_members if _field(doc, "userId", "user_id") == user_id]

    async def get_hq_memberships_by_user(self, user_id: str) -> List[Document]:
        return [doc for doc in self._hq_members if _field(doc, "userId", "user_id") == user_id]

    async def get_zone_membership(self, user_id: str, zone_id: str) -> Optional[Document]:
        for doc in await self.get_zone_memberships_by_user(user_id):
            if _field(doc, "zoneId", "zone_id") == zone_id:
                return doc
        return None

    async def get_hq_membership(self, user_id: str, hq_group_id: str) -> Optional[Document]:
        for doc in await self.get_hq_memberships_by_user(user_id):
            if _field(doc, "hqGroupId", "hq_group_id") == hq_group_id:
                return doc
        return None


class InMemoryPageQueryService:
    """Pages and songs filtered by zone, with song counts computed per page.

    HQ groups share one program collection, so an HQ zone lists every page
    and every song.
    """

    def __init__(
        self,
        pages: Sequence[Document] = (),
        songs: Sequence[Document] = (),
        *,
        hq_zone_ids: Iterable[str] = (),
    ) -> None:
        self._pages = [dict(doc) for doc in pages]
        self._songs = [dict(doc) for doc in songs]
        self._hq_zone_ids = frozenset(hq_zone_ids)

    @classmethod
    def from_seed(cls, seed: SeedData, *, hq_zone_ids: Iterable[str] = ()) -> "InMemoryPageQueryService":
        return cls(seed.pages, seed.songs, hq_zone_ids=hq_zone_ids)

    def _songs_in_zone(self, zone_id: Optional[str]) -> List[SongRecord]:
        if zone_id is None or zone_id in self._hq_zone_ids:
            return list(self._songs)
        return [song for song in self._songs if _field(song, "zoneId", "zone_id") in (None, zone_id)]

    async def get_pages_by_zone(self, zone_id: str) -> List[AdminPageRecord]:
        counts = count_songs_by_page(self._songs_in_zone(zone_id))
        return [
            AdminPageRecord.from_document(doc, song_count=counts.get(str(doc["id"]), 0))
            for doc in self._pages
            if zone_id in self._hq_zone_ids or _field(doc, "zoneId", "zone_id") == zone_id
        ]

    async def get_songs_by_page(self, page_id: str, zone_id: Optional[str]) -> List[SongRecord]:
        return [dict(song) for song in self._songs_in_zone(zone_id) if song_page_id(song) == page_id]


class InMemoryProfileSource:
    def __init__(self, profiles: Sequence[Document] = ()) -> None:
        self._profiles: Dict[str, Dict[str, Any]] = {str(doc["id"]): dict(doc) for doc in profiles}

    @classmethod
    def from_seed(cls, seed: SeedData) -> "InMemoryProfileSource":
        return cls(seed.profiles)

    def put(self, profile: Document) -> None:
        self._profiles[str(profile["id"])] = dict(profile)

    async def get_profile(self, user_id: str) -> Optional[Document]:
        profile = self._profiles.get(user_id)
        return dict(profile) if profile is not None else None


__all__ = [
    "InMemoryMembershipStore",
    "InMemoryPageQueryService",
    "InMemoryProfileSource",
    "SeedData",
    "load_seed",
]
