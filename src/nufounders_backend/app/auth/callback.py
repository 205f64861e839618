# src/nufounders_backend/app/auth/callback.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Mapping, Optional, Tuple

from fastapi import Request, Response
from fastapi.responses import JSONResponse, RedirectResponse

from nufounders_backend.app.auth.cookies import session_cookie_options
from nufounders_backend.app.auth.providers import ProviderAdapter
from nufounders_backend.app.auth.session import SessionCodec
from nufounders_backend.app.auth.state import OAuthState, StateCodec
from nufounders_backend.app.core.config import COOKIE_NAME
from nufounders_backend.app.core.errors import StateDecodeError, UnknownProviderError
from nufounders_backend.app.core.trace import auth_trace
from nufounders_backend.app.schemas.user import UserUpsert

log = logging.getLogger(__name__)

DENIED_REDIRECT = "/?error=oauth_denied"
FAILED_REDIRECT = "/?error=oauth_failed"


@dataclass(frozen=True)
class CallbackConfig:
    """
    One callback route.

    provider: fixed by the URL (google/github) or None for the generic route,
              which reads it from the decoded state.
    callback_path: used to build the default redirect_uri when state has none.
    """

    success_redirect: str
    callback_path: str
    provider: Optional[str] = None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def request_origin(request: Request) -> str:
    return f"{request.url.scheme}://{request.url.netloc}"


class OAuthCallbackHandler:
    """
    code -> access token -> identity -> upsert user -> mint session -> Set-Cookie -> 302.

    Any failure after the request is validated is logged and collapsed into a
    redirect to FAILED_REDIRECT; the client never sees the cause.
    """

    def __init__(
        self,
        adapters: Mapping[str, ProviderAdapter],
        users,
        codec: SessionCodec,
        state_codec: StateCodec,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._adapters = adapters
        self._users = users
        self._codec = codec
        self._state = state_codec
        self._clock = clock

    async def handle(self, request: Request, config: CallbackConfig) -> Response:
        params = request.query_params
        code = params.get("code")
        state = params.get("state")
        error = params.get("error")
        label = config.provider or "generic"

        if error:
            auth_trace("oauth.callback.denied", route=label, error=error)
            return RedirectResponse(DENIED_REDIRECT, status_code=302)

        if not code:
            return JSONResponse({"error": "Missing authorization code"}, status_code=400)
        if config.provider is None and not state:
            return JSONResponse({"error": "Missing code or state"}, status_code=400)

        try:
            provider, redirect_uri = self._resolve_target(request, config, state)
            adapter = self._adapters.get(provider)
            if adapter is None:
                raise UnknownProviderError(f"Unknown OAuth provider: {provider!r}")
            auth_trace("oauth.callback.dispatch", route=label, provider=provider)

            access_token = await adapter.exchange_code(code, redirect_uri)
            identity = await adapter.fetch_identity(access_token)

            await self._users.upsert(UserUpsert(
                open_id=identity.open_id,
                name=identity.name,
                email=identity.email,
                login_method=identity.login_method,
                last_signed_in=self._clock(),
            ))
            session_token = self._codec.mint(identity.open_id, identity.name)
        except Exception:
            log.exception("[%s OAuth] callback failed", label)
            return RedirectResponse(FAILED_REDIRECT, status_code=302)

        options = session_cookie_options(request).with_max_age(self._codec.ttl)
        resp = RedirectResponse(config.success_redirect, status_code=302)
        options.apply(resp, COOKIE_NAME, session_token)
        auth_trace(
            "oauth.callback.success",
            route=label, open_id=identity.open_id,
            target=config.success_redirect, secure=options.secure,
        )
        return resp

    def _resolve_target(
        self, request: Request, config: CallbackConfig, raw_state: Optional[str]
    ) -> Tuple[str, str]:
        default_redirect_uri = request_origin(request) + config.callback_path

        if config.provider is None:
            decoded = self._state.decode(raw_state)
            if not decoded.provider:
                raise UnknownProviderError("state carries no provider")
            return decoded.provider, decoded.redirect_uri or default_redirect_uri

        # provider comes from the route; state may only contribute the redirect_uri
        decoded: Optional[OAuthState] = None
        if self._state.signed:
            decoded = self._state.decode(raw_state)
        elif raw_state:
            try:
                decoded = self._state.decode(raw_state)
            except StateDecodeError as ex:
                auth_trace("oauth.callback.state_fallback", route=config.provider, err=str(ex))

        if decoded and decoded.provider and decoded.provider != config.provider:
            auth_trace(
                "oauth.callback.state_provider_ignored",
                route=config.provider, state_provider=decoded.provider,
            )
        if decoded and decoded.redirect_uri:
            return config.provider, decoded.redirect_uri
        return config.provider, default_redirect_uri
