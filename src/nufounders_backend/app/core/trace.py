# src/nufounders_backend/app/core/trace.py
from __future__ import annotations
import logging
import os
import time
from typing import Any

from .logging import setup_logging

setup_logging()

_log = logging.getLogger("nufounders.auth")

# never printed, even with AUTH_TRACE on
_SECRET_KEYS = frozenset({"token", "access_token", "code", "secret", "cookie"})


def trace_enabled() -> bool:
    return os.getenv("AUTH_TRACE", "").strip().lower() in ("1", "true", "yes", "on")


def _value(key: str, value: Any) -> str:
    if key in _SECRET_KEYS and value:
        return f"<{len(str(value))} chars>"
    return str(value)


def auth_trace(event: str, **kv: Any) -> None:
    """
    One `[auth] <event> ts=... k=v` INFO line per sign-in / session step,
    only when AUTH_TRACE is on. Read per call so tests can toggle it.

      [auth] oauth.callback.success ts=... route=google open_id=google_123 target=/dashboard secure=True
    """
    if not trace_enabled():
        return
    fields = " ".join(f"{k}={_value(k, v)}" for k, v in kv.items())
    _log.info("[auth] %s ts=%d %s", event, int(time.time()), fields)
