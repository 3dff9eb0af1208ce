from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI

from praise_admin import __version__
from praise_admin.apps.admin_api.routers import admin_router, session_router, system_router
from praise_admin.core.kv_store import DurableKeyValueStore, build_kv_store
from praise_admin.core.logging import configure_logging
from praise_admin.core.settings import Settings, get_settings
from praise_admin.domain.zones import ZoneTable, allow_list_predicate
from praise_admin.infrastructure.memory import (
    InMemoryMembershipStore,
    InMemoryPageQueryService,
    InMemoryProfileSource,
    load_seed,
)
from praise_admin.session.context import SessionRegistry

logger = logging.getLogger(__name__)


def build_zone_table(settings: Settings) -> ZoneTable:
    predicate = allow_list_predicate(
        emails=settings.super_admin_emails,
        user_ids=settings.super_admin_uids,
    )
    path = Path(settings.zones_file)
    if not path.exists():
        logger.warning("Zones file %s not found, zone table is empty", path)
        return ZoneTable([], is_super_admin=predicate)
    return ZoneTable.from_json_file(path, is_super_admin=predicate)


def build_registry(
    settings: Settings,
    store: DurableKeyValueStore,
    zone_table: ZoneTable,
) -> SessionRegistry:
    seed = load_seed(Path(settings.seed_file) if settings.seed_file else None)
    return SessionRegistry(
        store=store,
        zone_table=zone_table,
        memberships=InMemoryMembershipStore.from_seed(seed),
        pages=InMemoryPageQueryService.from_seed(
            seed, hq_zone_ids=[zone.id for zone in zone_table if zone.is_hq]
        ),
        profiles=InMemoryProfileSource.from_seed(seed),
        zone_ttl_seconds=settings.zone_cache_ttl_seconds,
        profile_ttl_seconds=settings.profile_cache_ttl_seconds,
        admin_data_ttl_seconds=settings.admin_data_ttl_seconds,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    configure_logging(settings)

    # ZoneTable and SessionRegistry define __len__, so test for None explicitly.
    store = getattr(app.state, "kv_store", None)
    if store is None:
        store = build_kv_store(redis_url=settings.redis_url, namespace=settings.kv_namespace)
    zone_table = getattr(app.state, "zone_table", None)
    if zone_table is None:
        zone_table = build_zone_table(settings)
    registry = getattr(app.state, "session_registry", None)
    if registry is None:
        registry = build_registry(settings, store, zone_table)

    app.state.kv_store = store
    app.state.zone_table = zone_table
    app.state.session_registry = registry
    logger.info(
        "Admin API started",
        extra={"environment": settings.environment, "zones": len(zone_table), "kv": type(store).__name__},
    )

    try:
        yield
    finally:
        await registry.close()
        await store.close()


def create_app(
    *,
    store: Optional[DurableKeyValueStore] = None,
    zone_table: Optional[ZoneTable] = None,
    registry: Optional[SessionRegistry] = None,
) -> FastAPI:
    """Build the API; pre-built collaborators replace the ones built from settings."""

    app = FastAPI(title="Praise Night Admin Session API", version=__version__, lifespan=lifespan)
    if store is not None:
        app.state.kv_store = store
    if zone_table is not None:
        app.state.zone_table = zone_table
    if registry is not None:
        app.state.session_registry = registry

    app.include_router(system_router)
    app.include_router(session_router)
    app.include_router(admin_router)
    return app


__all__ = ["build_registry", "build_zone_table", "create_app", "lifespan"]
