"""
Protocol definitions for the collaborators the session layer consumes.

Implementations live outside this package (database services, identity
provider); ``praise_admin.infrastructure.memory`` ships in-memory versions.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Protocol, Sequence

from praise_admin.domain.records import AdminPageRecord, SongRecord

Document = Mapping[str, Any]


@dataclass(frozen=True)
class AuthUser:
    """Authenticated identity as reported by the auth provider."""

    uid: str
    email: Optional[str] = None


class AuthProvider(Protocol):
    """Supplies the current user; ``loading`` is True until it knows."""

    @property
    def loading(self) -> bool:
        ...

    async def current_user(self) -> Optional[AuthUser]:
        ...


class MembershipStore(Protocol):
    """Zone and HQ membership lookups, returning raw documents."""

    async def get_zone_memberships_by_user(self, user_id: str) -> Sequence[Document]:
        """Documents with ``zoneId`` and ``role``."""
        ...

    async def get_hq_memberships_by_user(self, user_id: str) -> Sequence[Document]:
        """Documents with ``hqGroupId`` and ``role``."""
        ...

    async def get_zone_membership(self, user_id: str, zone_id: str) -> Optional[Document]:
        ...

    async def get_hq_membership(self, user_id: str, hq_group_id: str) -> Optional[Document]:
        ...


class PageQueryService(Protocol):
    """Zone-scoped program and song queries."""

    async def get_pages_by_zone(self, zone_id: str) -> List[AdminPageRecord]:
        ...

    async def get_songs_by_page(self, page_id: str, zone_id: Optional[str]) -> List[SongRecord]:
        ...


class ProfileSource(Protocol):
    """Profile documents keyed by user id."""

    async def get_profile(self, user_id: str) -> Optional[Document]:
        ...


__all__ = [
    "AuthProvider",
    "AuthUser",
    "Document",
    "MembershipStore",
    "PageQueryService",
    "ProfileSource",
]
