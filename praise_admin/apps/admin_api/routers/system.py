from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, Optional

from fastapi import APIRouter, Request

from praise_admin.core.kv_store import DurableKeyValueStore

router = APIRouter(tags=["system"])


@router.get("/health")
async def health(request: Request) -> Dict[str, Any]:
    state = request.app.state
    registry = getattr(state, "session_registry", None)
    zone_table = getattr(state, "zone_table", None)
    payload: Dict[str, Any] = {
        "ok": registry is not None,
        "sessions": len(registry) if registry is not None else 0,
        "zones": len(zone_table) if zone_table is not None else 0,
    }
    store: Optional[DurableKeyValueStore] = getattr(state, "kv_store", None)
    if store is not None:
        payload["kv_store"] = {"backend": type(store).__name__, **asdict(store.metrics)}
    return payload
