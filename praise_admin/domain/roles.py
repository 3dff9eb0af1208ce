"""User roles and the permissions attached to them.

The role of a session is derived from three inputs only: the super admin
capability check, the membership role in the current zone and whether the
current zone is an HQ group.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, FrozenSet, Optional

from praise_admin.domain.memberships import MembershipRole


class UserRole(str, Enum):
    """Effective role of the user in the current zone."""

    SUPER_ADMIN = "super_admin"
    HQ_MEMBER = "hq_member"
    ZONE_COORDINATOR = "zone_coordinator"
    ZONE_MEMBER = "zone_member"


ROLE_LABELS: Dict[UserRole, str] = {
    UserRole.SUPER_ADMIN: "Super Admin",
    UserRole.HQ_MEMBER: "HQ Member",
    UserRole.ZONE_COORDINATOR: "Zone Coordinator",
    UserRole.ZONE_MEMBER: "Zone Member",
}


def derive_role(
    *,
    is_super_admin: bool,
    membership_role: Optional[MembershipRole],
    zone_is_hq: bool,
) -> UserRole:
    """Total mapping from the three role inputs to a UserRole."""

    if is_super_admin:
        return UserRole.SUPER_ADMIN
    if membership_role is MembershipRole.COORDINATOR:
        return UserRole.ZONE_COORDINATOR
    if zone_is_hq:
        return UserRole.HQ_MEMBER
    return UserRole.ZONE_MEMBER


# Zone management
CAN_MANAGE_ZONE = "can_manage_zone"
CAN_VIEW_ZONE_SETTINGS = "can_view_zone_settings"
CAN_UPGRADE_SUBSCRIPTION = "can_upgrade_subscription"
CAN_CANCEL_SUBSCRIPTION = "can_cancel_subscription"
CAN_VIEW_PAYMENT_HISTORY = "can_view_payment_history"
# Member management
CAN_ADD_MEMBERS = "can_add_members"
CAN_REMOVE_MEMBERS = "can_remove_members"
CAN_VIEW_MEMBERS = "can_view_members"
CAN_SHARE_INVITE_LINK = "can_share_invite_link"
# Content management
CAN_CREATE_PRAISE_NIGHT = "can_create_praise_night"
CAN_EDIT_PRAISE_NIGHT = "can_edit_praise_night"
CAN_DELETE_PRAISE_NIGHT = "can_delete_praise_night"
CAN_CREATE_SONG = "can_create_song"
CAN_EDIT_SONG = "can_edit_song"
CAN_DELETE_SONG = "can_delete_song"
CAN_CREATE_CATEGORY = "can_create_category"
CAN_EDIT_CATEGORY = "can_edit_category"
CAN_DELETE_CATEGORY = "can_delete_category"
# Organization level
CAN_VIEW_ALL_ZONES = "can_view_all_zones"
CAN_ACCESS_SUPER_ADMIN = "can_access_super_admin"

ALL_PERMISSIONS: FrozenSet[str] = frozenset(
    {
        CAN_MANAGE_ZONE,
        CAN_VIEW_ZONE_SETTINGS,
        CAN_UPGRADE_SUBSCRIPTION,
        CAN_CANCEL_SUBSCRIPTION,
        CAN_VIEW_PAYMENT_HISTORY,
        CAN_ADD_MEMBERS,
        CAN_REMOVE_MEMBERS,
        CAN_VIEW_MEMBERS,
        CAN_SHARE_INVITE_LINK,
        CAN_CREATE_PRAISE_NIGHT,
        CAN_EDIT_PRAISE_NIGHT,
        CAN_DELETE_PRAISE_NIGHT,
        CAN_CREATE_SONG,
        CAN_EDIT_SONG,
        CAN_DELETE_SONG,
        CAN_CREATE_CATEGORY,
        CAN_EDIT_CATEGORY,
        CAN_DELETE_CATEGORY,
        CAN_VIEW_ALL_ZONES,
        CAN_ACCESS_SUPER_ADMIN,
    }
)

_CONTENT_PERMISSIONS: FrozenSet[str] = frozenset(
    {
        CAN_CREATE_PRAISE_NIGHT,
        CAN_EDIT_PRAISE_NIGHT,
        CAN_DELETE_PRAISE_NIGHT,
        CAN_CREATE_SONG,
        CAN_EDIT_SONG,
        CAN_DELETE_SONG,
        CAN_CREATE_CATEGORY,
        CAN_EDIT_CATEGORY,
        CAN_DELETE_CATEGORY,
    }
)

_MEMBER_ADMIN_PERMISSIONS: FrozenSet[str] = frozenset(
    {CAN_ADD_MEMBERS, CAN_REMOVE_MEMBERS, CAN_VIEW_MEMBERS, CAN_SHARE_INVITE_LINK}
)

ROLE_PERMISSIONS: Dict[UserRole, FrozenSet[str]] = {
    UserRole.SUPER_ADMIN: ALL_PERMISSIONS,
    # Pays for the zone: full admin rights for that zone only
    UserRole.ZONE_COORDINATOR: _CONTENT_PERMISSIONS
    | _MEMBER_ADMIN_PERMISSIONS
    | {
        CAN_MANAGE_ZONE,
        CAN_VIEW_ZONE_SETTINGS,
        CAN_UPGRADE_SUBSCRIPTION,
        CAN_CANCEL_SUBSCRIPTION,
        CAN_VIEW_PAYMENT_HISTORY,
    },
    # HQ groups need no subscription
    UserRole.HQ_MEMBER: _CONTENT_PERMISSIONS
    | _MEMBER_ADMIN_PERMISSIONS
    | {CAN_MANAGE_ZONE, CAN_VIEW_ZONE_SETTINGS},
    UserRole.ZONE_MEMBER: frozenset({CAN_VIEW_MEMBERS}),
}


def has_permission(role: UserRole, permission: str) -> bool:
    if permission not in ALL_PERMISSIONS:
        raise KeyError(f"Unknown permission: {permission}")
    return permission in ROLE_PERMISSIONS[role]


def permissions_for(role: UserRole) -> Dict[str, bool]:
    granted = ROLE_PERMISSIONS[role]
    return {permission: permission in granted for permission in sorted(ALL_PERMISSIONS)}


__all__ = [
    "ALL_PERMISSIONS",
    "ROLE_LABELS",
    "ROLE_PERMISSIONS",
    "UserRole",
    "derive_role",
    "has_permission",
    "permissions_for",
]
