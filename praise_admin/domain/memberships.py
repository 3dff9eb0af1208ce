"""Membership variants normalized at the collaborator boundary.

Membership stores hand back loosely shaped documents (zone members carry a
``zoneId``, HQ members a ``hqGroupId``). Everything past this module works
with the two tagged dataclasses below.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Literal, Mapping, Optional, Union


class MembershipRole(str, Enum):
    """Role a user holds inside a single zone."""

    COORDINATOR = "coordinator"
    MEMBER = "member"

    @classmethod
    def parse(cls, raw: Any) -> "MembershipRole":
        value = str(raw or "").strip().lower()
        if value == cls.COORDINATOR.value:
            return cls.COORDINATOR
        return cls.MEMBER


@dataclass(frozen=True)
class ZoneMembership:
    user_id: str
    zone_id: str
    role: MembershipRole = MembershipRole.MEMBER
    kind: Literal["zone"] = "zone"

    @property
    def is_hq_member(self) -> bool:
        return False


@dataclass(frozen=True)
class HQMembership:
    user_id: str
    hq_group_id: str
    role: MembershipRole = MembershipRole.MEMBER
    kind: Literal["hq"] = "hq"

    @property
    def zone_id(self) -> str:
        return self.hq_group_id

    @property
    def is_hq_member(self) -> bool:
        return True


Membership = Union[ZoneMembership, HQMembership]


def _first_present(document: Mapping[str, Any], *names: str) -> Optional[str]:
    for name in names:
        value = document.get(name)
        if value:
            return str(value)
    return None


def zone_membership_from_document(document: Mapping[str, Any], *, user_id: str) -> Optional[ZoneMembership]:
    zone_id = _first_present(document, "zone_id", "zoneId")
    if zone_id is None:
        return None
    return ZoneMembership(
        user_id=str(document.get("user_id") or document.get("userId") or user_id),
        zone_id=zone_id,
        role=MembershipRole.parse(document.get("role")),
    )


def hq_membership_from_document(document: Mapping[str, Any], *, user_id: str) -> Optional[HQMembership]:
    hq_group_id = _first_present(document, "hq_group_id", "hqGroupId", "zone_id", "zoneId")
    if hq_group_id is None:
        return None
    return HQMembership(
        user_id=str(document.get("user_id") or document.get("userId") or user_id),
        hq_group_id=hq_group_id,
        role=MembershipRole.parse(document.get("role")),
    )


def membership_to_dict(membership: Membership) -> Dict[str, str]:
    payload = {
        "kind": membership.kind,
        "user_id": membership.user_id,
        "role": membership.role.value,
    }
    if isinstance(membership, HQMembership):
        payload["hq_group_id"] = membership.hq_group_id
    else:
        payload["zone_id"] = membership.zone_id
    return payload


def membership_from_dict(data: Mapping[str, Any]) -> Membership:
    kind = data.get("kind")
    if kind == "hq":
        return HQMembership(
            user_id=str(data["user_id"]),
            hq_group_id=str(data["hq_group_id"]),
            role=MembershipRole(data["role"]),
        )
    if kind == "zone":
        return ZoneMembership(
            user_id=str(data["user_id"]),
            zone_id=str(data["zone_id"]),
            role=MembershipRole(data["role"]),
        )
    raise ValueError(f"Unknown membership kind: {kind!r}")


__all__ = [
    "HQMembership",
    "Membership",
    "MembershipRole",
    "ZoneMembership",
    "hq_membership_from_document",
    "membership_from_dict",
    "membership_to_dict",
    "zone_membership_from_document",
]
