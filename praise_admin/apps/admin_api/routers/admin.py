"""Zone-scoped program and song listings."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from praise_admin.apps.admin_api.dependencies import get_admin_session
from praise_admin.apps.admin_api.schemas import (
    EmptyResponse,
    PageListResponse,
    PageOut,
    PageResponse,
    SongListResponse,
)
from praise_admin.session.context import AdminSession

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/pages", response_model=PageListResponse)
async def list_pages(
    zone_id: Optional[str] = Query(None, description="Zone to list; defaults to the current zone"),
    session: AdminSession = Depends(get_admin_session),
) -> PageListResponse:
    return PageListResponse.from_outcome(await session.get_pages(zone_id))


@router.get("/pages/{page_id}", response_model=PageResponse)
async def get_page(page_id: str, session: AdminSession = Depends(get_admin_session)) -> PageResponse:
    outcome = await session.get_page(page_id)
    if outcome.ok and not outcome.loading and outcome.data is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Page not found")
    data = PageOut.from_record(outcome.data) if outcome.data is not None else None
    return PageResponse(data=data, **PageResponse.flags(outcome))


@router.get("/pages/{page_id}/songs", response_model=SongListResponse)
async def list_songs(
    page_id: str,
    force_refresh: bool = Query(False),
    session: AdminSession = Depends(get_admin_session),
) -> SongListResponse:
    outcome = await session.get_songs(page_id, force_refresh=force_refresh)
    return SongListResponse(data=outcome.data or [], **SongListResponse.flags(outcome))


@router.post("/refresh", response_model=EmptyResponse)
async def refresh_admin_data(session: AdminSession = Depends(get_admin_session)) -> EmptyResponse:
    outcome = await session.refresh_admin_data()
    return EmptyResponse(**EmptyResponse.flags(outcome))
