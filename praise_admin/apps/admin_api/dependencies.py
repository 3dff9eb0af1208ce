from __future__ import annotations

from fastapi import Depends, HTTPException, Request, status

from praise_admin.apps.admin_api.auth import require_user
from praise_admin.domain.protocols import AuthUser
from praise_admin.session.context import AdminSession, SessionRegistry


def get_registry(request: Request) -> SessionRegistry:
    registry = getattr(request.app.state, "session_registry", None)
    if registry is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Session registry is not initialised",
        )
    return registry


async def get_admin_session(
    user: AuthUser = Depends(require_user),
    registry: SessionRegistry = Depends(get_registry),
) -> AdminSession:
    return registry.session_for(user)


__all__ = ["get_admin_session", "get_registry"]
