# src/nufounders_backend/app/api/routes/oauth.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse, RedirectResponse

from nufounders_backend.app.auth.callback import CallbackConfig, request_origin
from nufounders_backend.app.auth.state import OAuthState
from nufounders_backend.app.core.config import Settings
from nufounders_backend.app.core.errors import ProviderConfigError
from nufounders_backend.app.core.trace import auth_trace
from nufounders_backend.app.deps import get_services
from nufounders_backend.app.services import AppServices

router = APIRouter(prefix="/api/oauth", tags=["oauth"])

GENERIC_CALLBACK_PATH = "/api/oauth/callback"

# per-route success targets; OAUTH_SUCCESS_REDIRECT overrides all of them
_SUCCESS_REDIRECTS = {
    None: "/",
    "github": "/",
    "google": "/dashboard",
}


def _callback_config(settings: Settings, provider: Optional[str]) -> CallbackConfig:
    path = GENERIC_CALLBACK_PATH if provider is None else f"/api/oauth/{provider}/callback"
    return CallbackConfig(
        success_redirect=settings.success_redirect or _SUCCESS_REDIRECTS[provider],
        callback_path=path,
        provider=provider,
    )


# NOTE: callback routes are declared before "/{provider}" so "/callback" is not read as a provider.
@router.get("/callback")
async def oauth_callback(request: Request, services: AppServices = Depends(get_services)):
    """Generic callback: the provider comes from the decoded state."""
    return await services.callback_handler.handle(request, _callback_config(services.settings, None))


@router.get("/google/callback")
async def google_callback(request: Request, services: AppServices = Depends(get_services)):
    return await services.callback_handler.handle(request, _callback_config(services.settings, "google"))


@router.get("/github/callback")
async def github_callback(request: Request, services: AppServices = Depends(get_services)):
    return await services.callback_handler.handle(request, _callback_config(services.settings, "github"))


@router.get("/{provider}")
async def oauth_login(
    provider: str,
    request: Request,
    redirect_uri: Optional[str] = Query(None, description="Callback URL registered with the provider."),
    services: AppServices = Depends(get_services),
):
    """
    Start a login: build the state and 302 to the provider's consent screen.
    The callback defaults to the generic route, which reads the provider from state.
    """
    adapter = services.adapters.get(provider)
    if adapter is None:
        return JSONResponse({"error": f"Unknown OAuth provider: {provider}"}, status_code=404)

    target = redirect_uri or request_origin(request) + GENERIC_CALLBACK_PATH
    state = services.state_codec.encode(OAuthState(redirect_uri=target, provider=provider))
    try:
        url = adapter.authorization_url(target, state)
    except ProviderConfigError as ex:
        return JSONResponse({"error": str(ex)}, status_code=500)

    auth_trace("oauth.login.start", provider=provider, redirect=target, signed_state=services.state_codec.signed)
    return RedirectResponse(url, status_code=302)
