from __future__ import annotations

import os
import secrets
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional, Tuple

from praise_admin.core.env import load_env


PROJECT_ROOT = Path(__file__).resolve().parents[2]
DEFAULT_USER_DATA_DIR = Path.home() / ".praise_admin" / "data"
DEFAULT_ZONES_FILE = Path(__file__).resolve().parents[1] / "data" / "zones.json"

DEFAULT_ZONE_CACHE_TTL_SECONDS = 300
DEFAULT_PROFILE_CACHE_TTL_SECONDS = 300
DEFAULT_ADMIN_DATA_TTL_SECONDS = 30.0


@dataclass(frozen=True)
class Settings:
    environment: str  # development, production, staging, test
    data_dir: Path
    redis_url: str
    kv_namespace: str
    log_level: str
    log_json: bool
    log_file: str
    session_secret: str
    zones_file: str
    seed_file: str
    super_admin_emails: Tuple[str, ...]
    super_admin_uids: Tuple[str, ...]
    zone_cache_ttl_seconds: int
    profile_cache_ttl_seconds: int
    admin_data_ttl_seconds: float


def _get_int(name: str, default: int, *, minimum: Optional[int] = None) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = int(raw.strip())
    except (TypeError, ValueError):
        return default
    if minimum is not None and value < minimum:
        return default
    return value


def _get_float(name: str, default: float, *, minimum: Optional[float] = None) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = float(raw.strip())
    except (TypeError, ValueError):
        return default
    if minimum is not None and value < minimum:
        return default
    return value


def _get_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _get_list(name: str) -> Tuple[str, ...]:
    raw = os.getenv(name, "")
    return tuple(item.strip() for item in raw.split(",") if item.strip())


load_env()


def _default_data_dir() -> Path:
    env_dir = os.getenv("DATA_DIR")
    if env_dir and env_dir.strip():
        return Path(env_dir).expanduser()
    return DEFAULT_USER_DATA_DIR


def _validate_session_secret(session_secret: str) -> None:
    weak_secrets = {
        "change-me",
        "change-me-session-secret",
        "secret",
        "session-secret",
        "my-secret-key",
    }
    if session_secret.lower() in weak_secrets:
        raise ValueError(
            f"SESSION_SECRET must be changed from default value '{session_secret}'. "
            "Generate a strong secret with: python -c \"import secrets; print(secrets.token_hex(32))\""
        )
    if len(session_secret) < 32:
        raise ValueError(
            f"SESSION_SECRET must be at least 32 characters (current: {len(session_secret)}). "
            "Generate a strong secret with: python -c \"import secrets; print(secrets.token_hex(32))\""
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    environment = os.getenv("ENVIRONMENT", "development").strip().lower()
    if environment not in {"development", "production", "staging", "test"}:
        environment = "development"

    data_dir = _default_data_dir()
    data_dir.mkdir(parents=True, exist_ok=True)

    redis_url = os.getenv("REDIS_URL", "").strip()
    kv_namespace = os.getenv("KV_NAMESPACE", "praise-admin").strip().rstrip(":") or "praise-admin"

    session_secret = (
        os.getenv("SESSION_SECRET")
        or os.getenv("SECRET_KEY")
        or secrets.token_urlsafe(32)
    )
    _validate_session_secret(session_secret)

    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO"
    log_json = _get_bool("LOG_JSON", default=False)
    log_file = os.getenv("LOG_FILE", "").strip()
    if not log_file:
        log_dir = data_dir / "logs"
        log_dir.mkdir(parents=True, exist_ok=True)
        log_file = str(log_dir / "app.log")

    return Settings(
        environment=environment,
        data_dir=data_dir,
        redis_url=redis_url,
        kv_namespace=kv_namespace,
        log_level=log_level,
        log_json=log_json,
        log_file=log_file,
        session_secret=session_secret,
        zones_file=os.getenv("ZONES_FILE", "").strip() or str(DEFAULT_ZONES_FILE),
        seed_file=os.getenv("SEED_FILE", "").strip(),
        super_admin_emails=tuple(email.lower() for email in _get_list("SUPER_ADMIN_EMAILS")),
        super_admin_uids=_get_list("SUPER_ADMIN_UIDS"),
        zone_cache_ttl_seconds=_get_int(
            "ZONE_CACHE_TTL_SECONDS", DEFAULT_ZONE_CACHE_TTL_SECONDS, minimum=1
        ),
        profile_cache_ttl_seconds=_get_int(
            "PROFILE_CACHE_TTL_SECONDS", DEFAULT_PROFILE_CACHE_TTL_SECONDS, minimum=1
        ),
        admin_data_ttl_seconds=_get_float(
            "ADMIN_DATA_TTL_SECONDS", DEFAULT_ADMIN_DATA_TTL_SECONDS, minimum=0.0
        ),
    )


__all__ = ["Settings", "get_settings"]
