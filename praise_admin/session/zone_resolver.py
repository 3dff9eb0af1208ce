"""Resolve which zones a user may access, the active zone and the role.

Resolution for one user is single-flight: while a resolve is outstanding,
further calls for that user await the same result instead of hitting the
membership store again.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Optional

from praise_admin.core.result import Result, failure, success
from praise_admin.domain.errors import ResolutionError
from praise_admin.domain.memberships import (
    Membership,
    hq_membership_from_document,
    zone_membership_from_document,
)
from praise_admin.domain.protocols import MembershipStore
from praise_admin.domain.roles import UserRole
from praise_admin.domain.zone_state import ResolvedZoneState, role_for_zone, select_zone
from praise_admin.domain.zones import Zone, ZoneTable

logger = logging.getLogger(__name__)

ResolveResult = Result[ResolvedZoneState, ResolutionError]


class ZoneResolver:
    def __init__(self, zone_table: ZoneTable, memberships: MembershipStore) -> None:
        self._zones = zone_table
        self._memberships = memberships
        self._inflight: Dict[str, "asyncio.Future[ResolveResult]"] = {}
        self.fetch_count = 0

    @property
    def zone_table(self) -> ZoneTable:
        return self._zones

    def is_resolving(self, user_id: str) -> bool:
        return user_id in self._inflight

    async def resolve(
        self,
        user_id: str,
        email: Optional[str],
        preferred_zone_id: Optional[str] = None,
    ) -> ResolveResult:
        pending = self._inflight.get(user_id)
        if pending is not None:
            logger.debug("Joining in-flight zone resolution", extra={"user_id": user_id})
            return await asyncio.shield(pending)

        future: "asyncio.Future[ResolveResult]" = asyncio.get_running_loop().create_future()
        self._inflight[user_id] = future
        try:
            result = await self._resolve(user_id, email, preferred_zone_id)
            future.set_result(result)
            return result
        except asyncio.CancelledError:
            # Cancellation of the leader must not leave joiners hanging.
            future.cancel()
            raise
        except Exception as exc:
            logger.exception("Zone resolution crashed", extra={"user_id": user_id})
            result = failure(ResolutionError(user_id, "resolution failed", cause=exc))
            future.set_result(result)
            return result
        finally:
            self._inflight.pop(user_id, None)

    async def _resolve(
        self,
        user_id: str,
        email: Optional[str],
        preferred_zone_id: Optional[str],
    ) -> ResolveResult:
        try:
            is_super_admin = self._zones.is_super_admin(email, user_id)
        except Exception as exc:
            logger.warning("Super admin check failed", exc_info=True, extra={"user_id": user_id})
            return failure(ResolutionError(user_id, "super admin check failed", cause=exc))

        if is_super_admin:
            zones = self._zones.zones
            logger.info("Resolved super admin zones", extra={"user_id": user_id, "zones": len(zones)})
            return success(
                ResolvedZoneState(
                    user_id=user_id,
                    current_zone=select_zone(zones, preferred_zone_id),
                    user_zones=zones,
                    role=UserRole.SUPER_ADMIN,
                    is_super_admin=True,
                )
            )

        self.fetch_count += 1
        try:
            zone_docs, hq_docs = await asyncio.gather(
                self._memberships.get_zone_memberships_by_user(user_id),
                self._memberships.get_hq_memberships_by_user(user_id),
            )
        except Exception as exc:
            logger.warning(
                "Membership lookup failed: %s", exc, exc_info=True, extra={"user_id": user_id}
            )
            return failure(ResolutionError(user_id, "membership lookup failed", cause=exc))

        memberships: List[Membership] = []
        for doc in zone_docs:
            membership = zone_membership_from_document(doc, user_id=user_id)
            if membership is not None:
                memberships.append(membership)
        for doc in hq_docs:
            hq_membership = hq_membership_from_document(doc, user_id=user_id)
            if hq_membership is not None:
                memberships.append(hq_membership)

        if not memberships:
            logger.info("User has no zone memberships", extra={"user_id": user_id})
            return success(ResolvedZoneState.empty(user_id))

        zones = self._zones_for(memberships)
        current = select_zone(zones, preferred_zone_id)
        state = ResolvedZoneState(
            user_id=user_id,
            current_zone=current,
            user_zones=zones,
            role=role_for_zone(current, memberships, is_super_admin=False),
            is_super_admin=False,
            memberships=tuple(memberships),
        )
        logger.info(
            "Resolved zones",
            extra={
                "user_id": user_id,
                "zone_id": state.current_zone_id,
                "role": state.role.value,
                "zones": len(zones),
            },
        )
        return success(state)

    def _zones_for(self, memberships: List[Membership]) -> tuple[Zone, ...]:
        zones: List[Zone] = []
        seen = set()
        for membership in memberships:
            zone = self._zones.get(membership.zone_id)
            if zone is None:
                logger.debug("Dropping membership for unknown zone %s", membership.zone_id)
                continue
            if zone.id in seen:
                continue
            seen.add(zone.id)
            zones.append(zone)
        return tuple(zones)


__all__ = ["ResolveResult", "ZoneResolver"]
