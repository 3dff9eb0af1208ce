"""Static zone table and the super admin capability check."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

SuperAdminPredicate = Callable[[Optional[str], Optional[str]], bool]


@dataclass(frozen=True)
class Zone:
    """Immutable organizational unit a user may belong to."""

    id: str
    name: str
    theme_color: str
    is_hq: bool = False
    slug: str = ""
    region: str = ""
    invitation_code: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Zone":
        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or data["id"]),
            theme_color=str(data.get("theme_color") or data.get("themeColor") or ""),
            is_hq=bool(data.get("is_hq", data.get("isHQ", False))),
            slug=str(data.get("slug") or ""),
            region=str(data.get("region") or ""),
            invitation_code=str(data.get("invitation_code") or data.get("invitationCode") or ""),
        )


def _never_super_admin(email: Optional[str], user_id: Optional[str]) -> bool:
    return False


def allow_list_predicate(
    *, emails: Iterable[str] = (), user_ids: Iterable[str] = ()
) -> SuperAdminPredicate:
    """Build a super admin check from configured allow-lists."""

    allowed_emails = frozenset(email.strip().lower() for email in emails if email.strip())
    allowed_ids = frozenset(uid.strip() for uid in user_ids if uid.strip())

    def _check(email: Optional[str], user_id: Optional[str]) -> bool:
        if email and email.strip().lower() in allowed_emails:
            return True
        return bool(user_id) and user_id in allowed_ids

    return _check


class ZoneTable:
    """Ordered read-only zone configuration.

    The order matters: the first zone is the fallback current zone for
    super admins without a stored preference.
    """

    def __init__(
        self,
        zones: Sequence[Zone],
        *,
        is_super_admin: SuperAdminPredicate = _never_super_admin,
    ) -> None:
        self._zones: Tuple[Zone, ...] = tuple(zones)
        self._by_id: Dict[str, Zone] = {}
        for zone in self._zones:
            if zone.id in self._by_id:
                raise ValueError(f"Duplicate zone id in zone table: {zone.id}")
            self._by_id[zone.id] = zone
        self._is_super_admin = is_super_admin

    def __iter__(self) -> Iterator[Zone]:
        return iter(self._zones)

    def __len__(self) -> int:
        return len(self._zones)

    def __contains__(self, zone_id: object) -> bool:
        return zone_id in self._by_id

    @property
    def zones(self) -> Tuple[Zone, ...]:
        return self._zones

    def get(self, zone_id: Optional[str]) -> Optional[Zone]:
        if not zone_id:
            return None
        return self._by_id.get(zone_id)

    def by_slug(self, slug: str) -> Optional[Zone]:
        slug_norm = slug.strip().lower()
        for zone in self._zones:
            if zone.slug.lower() == slug_norm:
                return zone
        return None

    def is_super_admin(self, email: Optional[str], user_id: Optional[str]) -> bool:
        if not email and not user_id:
            return False
        return bool(self._is_super_admin(email, user_id))

    @classmethod
    def from_records(
        cls,
        records: Iterable[Mapping[str, Any]],
        *,
        is_super_admin: SuperAdminPredicate = _never_super_admin,
    ) -> "ZoneTable":
        return cls([Zone.from_dict(record) for record in records], is_super_admin=is_super_admin)

    @classmethod
    def from_json_file(
        cls,
        path: Path,
        *,
        is_super_admin: SuperAdminPredicate = _never_super_admin,
    ) -> "ZoneTable":
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
        records: List[Mapping[str, Any]] = raw["zones"] if isinstance(raw, dict) else raw
        table = cls.from_records(records, is_super_admin=is_super_admin)
        logger.info("Loaded %d zones from %s", len(table), path)
        return table


__all__ = ["SuperAdminPredicate", "Zone", "ZoneTable", "allow_list_predicate"]
