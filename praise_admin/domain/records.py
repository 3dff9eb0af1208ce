"""Read models served by the admin data cache."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

SongRecord = Dict[str, Any]
Profile = Dict[str, Any]


def _as_int(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


@dataclass(frozen=True)
class Countdown:
    days: int = 0
    hours: int = 0
    minutes: int = 0
    seconds: int = 0

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> "Countdown":
        nested = document.get("countdown") or {}
        return cls(
            days=_as_int(document.get("countdownDays") or nested.get("days")),
            hours=_as_int(document.get("countdownHours") or nested.get("hours")),
            minutes=_as_int(document.get("countdownMinutes") or nested.get("minutes")),
            seconds=_as_int(document.get("countdownSeconds") or nested.get("seconds")),
        )


@dataclass(frozen=True)
class AdminPageRecord:
    """A praise night program as listed in the admin tool."""

    id: str
    name: str
    date: str
    location: str
    category: str
    song_count: int = 0
    countdown: Countdown = field(default_factory=Countdown)
    page_category: Optional[str] = None
    banner_image: Optional[str] = None

    @classmethod
    def from_document(cls, document: Mapping[str, Any], *, song_count: int = 0) -> "AdminPageRecord":
        """Build a record from a raw page document, filling the admin defaults."""

        return cls(
            id=str(document["id"]),
            name=document.get("name") or document.get("title") or "Untitled Page",
            date=document.get("date") or datetime.now(timezone.utc).isoformat(),
            location=document.get("location") or "",
            category=document.get("category") or "ongoing",
            song_count=song_count,
            countdown=Countdown.from_document(document),
            page_category=document.get("pageCategory") or document.get("page_category") or None,
            banner_image=document.get("bannerImage") or document.get("banner_image") or None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def song_page_id(song: Mapping[str, Any]) -> Optional[str]:
    """Return the page a song belongs to, whatever spelling the document uses."""

    for name in ("praiseNightId", "praisenightid", "praisenight_id", "pageId", "page_id"):
        value = song.get(name)
        if value:
            return str(value)
    return None


def count_songs_by_page(songs: List[SongRecord]) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for song in songs:
        page_id = song_page_id(song)
        if page_id is not None:
            counts[page_id] = counts.get(page_id, 0) + 1
    return counts


__all__ = [
    "AdminPageRecord",
    "Countdown",
    "Profile",
    "SongRecord",
    "count_songs_by_page",
    "song_page_id",
]
