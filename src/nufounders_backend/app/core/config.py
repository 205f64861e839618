# src/nufounders_backend/app/core/config.py
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Optional, Tuple

log = logging.getLogger(__name__)

COOKIE_NAME = "app_session_id"
ONE_YEAR_SECONDS = 365 * 24 * 60 * 60

DEFAULT_JWT_SECRET = "dev-secret-change-in-production"
DEFAULT_APP_ID = "nufounders"
DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///./nufounders.db"


def _truthy(raw: Optional[str]) -> bool:
    return (raw or "").strip().lower() in ("1", "true", "yes", "on")


def _env(name: str, default: str = "") -> str:
    return (os.getenv(name, default) or "").strip()


def _env_int(name: str, default: int) -> int:
    raw = _env(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        log.warning("ignoring non-integer %s=%r, using %s", name, raw, default)
        return default


@dataclass(frozen=True)
class Settings:
    app_id: str = DEFAULT_APP_ID
    jwt_secret: str = DEFAULT_JWT_SECRET
    session_ttl_seconds: int = ONE_YEAR_SECONDS

    google_client_id: str = ""
    google_client_secret: str = ""
    github_client_id: str = ""
    github_client_secret: str = ""

    database_url: str = DEFAULT_DATABASE_URL
    db_echo: bool = False
    db_create_tables: bool = True
    owner_open_id: str = ""

    # when set, every callback variant redirects here on success
    success_redirect: Optional[str] = None
    # opt-in: sign the OAuth state instead of plain base64 JSON
    oauth_state_secret: Optional[str] = None

    cors_origins: Tuple[str, ...] = field(default_factory=tuple)


def load_settings() -> Settings:
    """Read Settings from the process environment (call load_dotenv() first)."""
    secret = _env("JWT_SECRET")
    if not secret:
        log.warning("JWT_SECRET is not set; falling back to the insecure development secret")
        secret = DEFAULT_JWT_SECRET

    origins = tuple(o.strip() for o in _env("CORS_ORIGINS").split(",") if o.strip())

    return Settings(
        app_id=_env("VITE_APP_ID") or DEFAULT_APP_ID,
        jwt_secret=secret,
        session_ttl_seconds=_env_int("SESSION_TTL_SEC", ONE_YEAR_SECONDS),
        google_client_id=_env("GOOGLE_CLIENT_ID"),
        google_client_secret=_env("GOOGLE_CLIENT_SECRET"),
        github_client_id=_env("GITHUB_CLIENT_ID"),
        github_client_secret=_env("GITHUB_CLIENT_SECRET"),
        database_url=_env("DATABASE_URL") or DEFAULT_DATABASE_URL,
        db_echo=_truthy(os.getenv("DB_ECHO")),
        db_create_tables=_truthy(os.getenv("DB_CREATE_TABLES", "true")),
        owner_open_id=_env("OWNER_OPEN_ID"),
        success_redirect=_env("OAUTH_SUCCESS_REDIRECT") or None,
        oauth_state_secret=_env("OAUTH_STATE_SECRET") or None,
        cors_origins=origins,
    )
