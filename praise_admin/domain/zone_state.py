from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

from praise_admin.domain.memberships import (
    Membership,
    membership_from_dict,
    membership_to_dict,
)
from praise_admin.domain.roles import UserRole, derive_role, has_permission
from praise_admin.domain.zones import Zone


@dataclass(frozen=True)
class ResolvedZoneState:
    """Zones a user may access, the active one and the derived role."""

    user_id: str
    current_zone: Optional[Zone]
    user_zones: Tuple[Zone, ...]
    role: UserRole
    is_super_admin: bool
    memberships: Tuple[Membership, ...] = ()

    @classmethod
    def empty(cls, user_id: str) -> "ResolvedZoneState":
        return cls(
            user_id=user_id,
            current_zone=None,
            user_zones=(),
            role=UserRole.ZONE_MEMBER,
            is_super_admin=False,
        )

    @property
    def has_access(self) -> bool:
        return bool(self.user_zones)

    @property
    def current_zone_id(self) -> Optional[str]:
        return self.current_zone.id if self.current_zone else None

    @property
    def current_membership(self) -> Optional[Membership]:
        return membership_for(self.memberships, self.current_zone_id)

    def find_zone(self, zone_id: Optional[str]) -> Optional[Zone]:
        if not zone_id:
            return None
        for zone in self.user_zones:
            if zone.id == zone_id:
                return zone
        return None

    def can(self, permission: str) -> bool:
        return has_permission(self.role, permission)

    def with_current(self, zone: Zone, memberships: Optional[Sequence[Membership]] = None) -> "ResolvedZoneState":
        """Return a copy focused on ``zone`` with the role re-derived."""

        members = tuple(memberships) if memberships is not None else self.memberships
        return replace(
            self,
            current_zone=zone,
            memberships=members,
            role=role_for_zone(zone, members, is_super_admin=self.is_super_admin),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "current_zone_id": self.current_zone_id,
            "user_zones": [zone.to_dict() for zone in self.user_zones],
            "role": self.role.value,
            "is_super_admin": self.is_super_admin,
            "memberships": [membership_to_dict(m) for m in self.memberships],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ResolvedZoneState":
        zones = tuple(Zone.from_dict(item) for item in data["user_zones"])
        current_id = data.get("current_zone_id")
        current = next((zone for zone in zones if zone.id == current_id), None)
        return cls(
            user_id=str(data["user_id"]),
            current_zone=current,
            user_zones=zones,
            role=UserRole(data["role"]),
            is_super_admin=bool(data["is_super_admin"]),
            memberships=tuple(membership_from_dict(item) for item in data.get("memberships", [])),
        )


def membership_for(memberships: Sequence[Membership], zone_id: Optional[str]) -> Optional[Membership]:
    if not zone_id:
        return None
    for membership in memberships:
        if membership.zone_id == zone_id:
            return membership
    return None


def role_for_zone(zone: Optional[Zone], memberships: Sequence[Membership], *, is_super_admin: bool) -> UserRole:
    membership = membership_for(memberships, zone.id if zone else None)
    return derive_role(
        is_super_admin=is_super_admin,
        membership_role=membership.role if membership else None,
        zone_is_hq=bool(zone and zone.is_hq),
    )


def select_zone(zones: Sequence[Zone], *preferred_ids: Optional[str]) -> Optional[Zone]:
    """Pick the first preferred id present in ``zones``, else the first zone."""

    for zone_id in preferred_ids:
        if not zone_id:
            continue
        for zone in zones:
            if zone.id == zone_id:
                return zone
    return zones[0] if zones else None


__all__ = ["ResolvedZoneState", "membership_for", "role_for_zone", "select_zone"]
