# src/nufounders_backend/app/auth/authenticator.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable, Optional

from nufounders_backend.app.auth.cookies import parse_cookie_header
from nufounders_backend.app.auth.session import SessionCodec
from nufounders_backend.app.core.config import COOKIE_NAME
from nufounders_backend.app.core.errors import ForbiddenError
from nufounders_backend.app.core.trace import auth_trace
from nufounders_backend.app.schemas.user import UserRecord, UserUpsert


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def session_cookie_from(request: Any) -> Optional[str]:
    """Pre-parsed cookie map first (RPC bridge), raw Cookie header second."""
    cookies = getattr(request, "cookies", None)
    if cookies and cookies.get(COOKIE_NAME):
        return cookies[COOKIE_NAME]
    headers = getattr(request, "headers", None) or {}
    return parse_cookie_header(headers.get("cookie")).get(COOKIE_NAME)


class RequestAuthenticator:
    """
    Resolve the signed-in user for a request.

    Every call reads the user row and writes last_signed_in; a valid token for
    an unknown open_id creates the row from the token claims.
    """

    def __init__(self, codec: SessionCodec, users, *, clock: Callable[[], datetime] = _utcnow):
        self._codec = codec
        self._users = users
        self._clock = clock

    async def authenticate(self, request: Any) -> UserRecord:
        session = self._codec.verify(session_cookie_from(request))
        if session is None:
            auth_trace("authn.no_session")
            raise ForbiddenError("Invalid or missing session")

        signed_in_at = self._clock()
        user = await self._users.get_by_open_id(session.open_id)

        if user is None:
            auth_trace("authn.create_from_session", open_id=session.open_id)
            await self._users.upsert(UserUpsert(
                open_id=session.open_id,
                name=session.name or None,
                last_signed_in=signed_in_at,
            ))
            user = await self._users.get_by_open_id(session.open_id)

        if user is None:
            raise ForbiddenError("User not found")

        await self._users.upsert(UserUpsert(open_id=user.open_id, last_signed_in=signed_in_at))
        auth_trace("authn.ok", open_id=user.open_id, role=user.role.value)
        return user.model_copy(update={"last_signed_in": signed_in_at})
