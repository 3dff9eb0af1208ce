"""Zone-scoped cache of program listings and per-page song lists.

The page list and its zone id form one snapshot that is always replaced as a
whole. Song lists hang off the snapshot and live until the snapshot is
replaced or a page's songs are force-refreshed; they have no TTL of their own.

Writes are not locked. Each fetch remembers the zone intent and generation it
started under and commits only if both are unchanged when it returns, so a
slow fetch for a zone the user already left can never overwrite newer data.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from praise_admin.core.settings import DEFAULT_ADMIN_DATA_TTL_SECONDS
from praise_admin.domain.errors import DataFetchError
from praise_admin.domain.protocols import PageQueryService
from praise_admin.domain.records import AdminPageRecord, SongRecord
from praise_admin.session.cache_entry import Clock

logger = logging.getLogger(__name__)


@dataclass
class _Snapshot:
    pages: List[AdminPageRecord]
    zone_id: str
    written_at: float
    songs: Dict[str, List[SongRecord]] = field(default_factory=dict)


class AdminDataCache:
    def __init__(
        self,
        queries: PageQueryService,
        *,
        ttl_seconds: float = DEFAULT_ADMIN_DATA_TTL_SECONDS,
        clock: Clock = time.monotonic,
    ) -> None:
        self._queries = queries
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._snapshot: Optional[_Snapshot] = None
        self._zone_intent: Optional[str] = None
        self._generation = 0
        self.fetch_count = 0
        self.song_fetch_count = 0
        self.discarded = 0

    @property
    def zone_id(self) -> Optional[str]:
        return self._snapshot.zone_id if self._snapshot else None

    @property
    def zone_intent(self) -> Optional[str]:
        return self._zone_intent

    def scope_to(self, zone_id: Optional[str]) -> None:
        """Record the zone the session now targets.

        In-flight fetches started for another zone are discarded when they
        return, and a snapshot for another zone is dropped with its songs.
        """

        if zone_id == self._zone_intent:
            return
        self._zone_intent = zone_id
        self._generation += 1
        if self._snapshot is not None and self._snapshot.zone_id != zone_id:
            logger.debug(
                "Admin data scoped to new zone, dropping snapshot",
                extra={"zone_id": zone_id, "previous_zone_id": self._snapshot.zone_id},
            )
            self._snapshot = None

    async def get_pages(self, zone_id: str) -> List[AdminPageRecord]:
        self.scope_to(zone_id)
        snapshot = self._snapshot
        if snapshot is not None and snapshot.zone_id == zone_id:
            age = self._clock() - snapshot.written_at
            if 0 <= age < self._ttl_seconds:
                logger.debug("Admin pages cache hit", extra={"zone_id": zone_id})
                return list(snapshot.pages)

        generation = self._generation
        self.fetch_count += 1
        try:
            pages = list(await self._queries.get_pages_by_zone(zone_id))
        except Exception as exc:
            logger.warning("Page listing fetch failed: %s", exc, extra={"zone_id": zone_id})
            raise DataFetchError("get_pages", zone_id, cause=exc) from exc

        if self._zone_intent != zone_id or self._generation != generation:
            self.discarded += 1
            logger.warning(
                "Discarding stale page listing",
                extra={"zone_id": zone_id, "zone_intent": self._zone_intent},
            )
            return pages

        self._snapshot = _Snapshot(pages=pages, zone_id=zone_id, written_at=self._clock())
        logger.debug("Admin pages cached", extra={"zone_id": zone_id, "pages": len(pages)})
        return list(pages)

    async def get_songs(self, page_id: str, force_refresh: bool = False) -> List[SongRecord]:
        snapshot = self._snapshot
        if snapshot is not None:
            if force_refresh:
                snapshot.songs.pop(page_id, None)
            else:
                cached = snapshot.songs.get(page_id)
                if cached is not None:
                    return list(cached)

        zone_id = snapshot.zone_id if snapshot is not None else self._zone_intent
        generation = self._generation
        self.song_fetch_count += 1
        try:
            songs = list(await self._queries.get_songs_by_page(page_id, zone_id))
        except Exception as exc:
            logger.warning(
                "Song listing fetch failed: %s", exc, extra={"zone_id": zone_id, "page_id": page_id}
            )
            raise DataFetchError("get_songs", zone_id, cause=exc) from exc

        if snapshot is None:
            # Nothing to attach the songs to until pages are loaded.
            return songs
        if self._snapshot is not snapshot or self._generation != generation:
            self.discarded += 1
            logger.warning(
                "Discarding stale song listing",
                extra={"zone_id": zone_id, "page_id": page_id},
            )
            return songs

        snapshot.songs[page_id] = songs
        return list(songs)

    def get_page(self, page_id: str) -> Optional[AdminPageRecord]:
        if self._snapshot is None:
            return None
        for page in self._snapshot.pages:
            if page.id == page_id:
                return page
        return None

    def refresh_data(self) -> None:
        """Discard everything; the next read always fetches."""

        self._snapshot = None
        self._generation += 1
        logger.debug("Admin data cache invalidated", extra={"zone_id": self._zone_intent})

    def reset(self) -> None:
        self.refresh_data()
        self._zone_intent = None


__all__ = ["AdminDataCache"]
