# src/nufounders_backend/app/services.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from nufounders_backend.app.auth.authenticator import RequestAuthenticator
from nufounders_backend.app.auth.callback import OAuthCallbackHandler
from nufounders_backend.app.auth.providers import ProviderAdapter, build_adapters
from nufounders_backend.app.auth.session import SessionCodec
from nufounders_backend.app.auth.state import StateCodec
from nufounders_backend.app.core.config import Settings


@dataclass
class AppServices:
    """Everything a request handler needs, built once per process."""

    settings: Settings
    users: Any
    codec: SessionCodec
    state_codec: StateCodec
    adapters: Mapping[str, ProviderAdapter]
    authenticator: RequestAuthenticator
    callback_handler: OAuthCallbackHandler


def build_services(
    settings: Settings,
    users: Any,
    adapters: Optional[Mapping[str, ProviderAdapter]] = None,
) -> AppServices:
    codec = SessionCodec(settings.jwt_secret, settings.app_id, ttl=settings.session_ttl_seconds)
    state_codec = StateCodec(settings.oauth_state_secret)
    adapters = adapters if adapters is not None else build_adapters(settings)
    return AppServices(
        settings=settings,
        users=users,
        codec=codec,
        state_codec=state_codec,
        adapters=adapters,
        authenticator=RequestAuthenticator(codec, users),
        callback_handler=OAuthCallbackHandler(adapters, users, codec, state_codec),
    )
