"""Bearer token authentication for the admin API.

Tokens are HS256 JWTs signed with ``SESSION_SECRET``; ``sub`` carries the user
id and ``email`` the address used by the super admin check.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Header, HTTPException, status
from jose import JWTError, jwt

from praise_admin.core.settings import get_settings
from praise_admin.domain.protocols import AuthUser

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
DEFAULT_TOKEN_TTL = timedelta(minutes=30)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create JWT access token.

    Args:
        data: Payload data (must include 'sub' with the user id)
        expires_delta: Optional expiration time delta
    """
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or DEFAULT_TOKEN_TTL)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, get_settings().session_secret, algorithm=ALGORITHM)


def decode_access_token(token: str) -> AuthUser:
    """Validate a token and return the user it names.

    Raises:
        ValueError: If the signature, expiry or claims are invalid
    """
    try:
        claims = jwt.decode(token, get_settings().session_secret, algorithms=[ALGORITHM])
    except JWTError as exc:
        raise ValueError(f"Invalid token: {exc}") from exc
    uid = claims.get("sub")
    if not uid:
        raise ValueError("Token has no subject")
    email = claims.get("email") or None
    return AuthUser(uid=str(uid), email=str(email) if email else None)


class BearerAuth:
    """FastAPI dependency resolving the bearer token to an ``AuthUser``."""

    async def __call__(self, authorization: Optional[str] = Header(None)) -> AuthUser:
        if not authorization:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Missing bearer token",
                headers={"WWW-Authenticate": "Bearer"},
            )
        scheme, _, token = authorization.partition(" ")
        if scheme.lower() != "bearer" or not token.strip():
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid authorization header",
                headers={"WWW-Authenticate": "Bearer"},
            )
        try:
            return decode_access_token(token.strip())
        except ValueError as exc:
            logger.info("Rejected bearer token: %s", exc)
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid or expired token",
                headers={"WWW-Authenticate": "Bearer"},
            ) from exc


require_user = BearerAuth()

__all__ = ["ALGORITHM", "BearerAuth", "create_access_token", "decode_access_token", "require_user"]
