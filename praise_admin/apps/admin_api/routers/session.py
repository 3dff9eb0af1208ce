"""Session endpoints: profile, zone state, zone switching and logout."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from praise_admin.apps.admin_api.auth import require_user
from praise_admin.apps.admin_api.dependencies import get_admin_session, get_registry
from praise_admin.apps.admin_api.schemas import (
    EmptyResponse,
    ProfileResponse,
    SwitchZoneRequest,
    ZoneStateResponse,
    ZoneSwitchResponse,
)
from praise_admin.domain.protocols import AuthUser
from praise_admin.session.context import AdminSession, SessionRegistry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/session", tags=["session"])


@router.get("/profile", response_model=ProfileResponse)
async def get_profile(session: AdminSession = Depends(get_admin_session)) -> ProfileResponse:
    outcome = await session.get_profile()
    return ProfileResponse(data=outcome.data, **ProfileResponse.flags(outcome))


@router.post("/profile/refresh", response_model=ProfileResponse)
async def refresh_profile(session: AdminSession = Depends(get_admin_session)) -> ProfileResponse:
    outcome = await session.refresh_profile()
    return ProfileResponse(data=outcome.data, **ProfileResponse.flags(outcome))


@router.get("/zone", response_model=ZoneStateResponse)
async def get_zone_state(session: AdminSession = Depends(get_admin_session)) -> ZoneStateResponse:
    return ZoneStateResponse.from_outcome(await session.get_zone_state())


@router.post("/zone/switch", response_model=ZoneSwitchResponse)
async def switch_zone(
    payload: SwitchZoneRequest,
    session: AdminSession = Depends(get_admin_session),
) -> ZoneSwitchResponse:
    """Switch the active zone.

    Switching to a zone the user cannot access is not an HTTP error; the
    response carries ``switched: false`` and the unchanged zone state.
    """
    return ZoneSwitchResponse.from_outcome(await session.switch_zone(payload.zone_id))


@router.post("/zone/refresh", response_model=ZoneStateResponse)
async def refresh_zones(session: AdminSession = Depends(get_admin_session)) -> ZoneStateResponse:
    return ZoneStateResponse.from_outcome(await session.refresh_zones())


@router.post("/logout", response_model=EmptyResponse)
async def logout(
    user: AuthUser = Depends(require_user),
    registry: SessionRegistry = Depends(get_registry),
) -> EmptyResponse:
    await registry.end_session(user.uid)
    logger.info("Logged out via API", extra={"user_id": user.uid})
    return EmptyResponse()
