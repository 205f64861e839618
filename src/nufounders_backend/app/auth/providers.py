# src/nufounders_backend/app/auth/providers.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode

import httpx

from nufounders_backend.app.core.errors import (
    ProviderConfigError,
    TokenExchangeError,
    UserInfoError,
)
from nufounders_backend.app.core.trace import auth_trace
from nufounders_backend.app.schemas.identity import Identity

HTTP_TIMEOUT = 15

GOOGLE_AUTH_URL     = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL    = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://www.googleapis.com/oauth2/v2/userinfo"

GITHUB_AUTH_URL     = "https://github.com/login/oauth/authorize"
GITHUB_TOKEN_URL    = "https://github.com/login/oauth/access_token"
GITHUB_USER_URL     = "https://api.github.com/user"
GITHUB_EMAILS_URL   = "https://api.github.com/user/emails"
GITHUB_ACCEPT       = "application/vnd.github.v3+json"


@dataclass(frozen=True)
class ProviderConfig:
    name: str
    client_id: str
    client_secret: str


class ProviderAdapter:
    """
    One OAuth provider: authorization code -> access token -> normalized Identity.

    Subclasses supply the endpoints and the profile mapping; the client
    credentials come in through ProviderConfig. An httpx.AsyncClient may be
    injected, otherwise one is opened per call.
    """

    name: str = ""
    authorize_url: str = ""
    scope: str = ""

    def __init__(self, config: ProviderConfig, client: Optional[httpx.AsyncClient] = None):
        self.config = config
        self._client = client

    # ---- shared plumbing ----
    def _require_credentials(self) -> None:
        if not self.config.client_id or not self.config.client_secret:
            raise ProviderConfigError(f"{self.name} OAuth not configured")

    async def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        if self._client is not None:
            return await self._client.request(method, url, **kwargs)
        async with httpx.AsyncClient(timeout=HTTP_TIMEOUT) as client:
            return await client.request(method, url, **kwargs)

    def authorization_url(self, redirect_uri: str, state: str) -> str:
        if not self.config.client_id:
            raise ProviderConfigError(f"{self.name} OAuth not configured")
        params = {
            "client_id": self.config.client_id,
            "redirect_uri": redirect_uri,
            "scope": self.scope,
            "state": state,
            **self._extra_authorize_params(),
        }
        return f"{self.authorize_url}?{urlencode(params)}"

    def _extra_authorize_params(self) -> Dict[str, str]:
        return {}

    # ---- provider specific ----
    async def exchange_code(self, code: str, redirect_uri: str) -> str:
        raise NotImplementedError

    async def fetch_identity(self, access_token: str) -> Identity:
        raise NotImplementedError


class GoogleAdapter(ProviderAdapter):
    name = "google"
    authorize_url = GOOGLE_AUTH_URL
    scope = "openid email profile"

    def _extra_authorize_params(self) -> Dict[str, str]:
        return {"response_type": "code", "access_type": "offline", "prompt": "consent"}

    async def exchange_code(self, code: str, redirect_uri: str) -> str:
        self._require_credentials()
        data = {
            "code": code,
            "client_id": self.config.client_id,
            "client_secret": self.config.client_secret,
            "redirect_uri": redirect_uri,
            "grant_type": "authorization_code",
        }
        r = await self._send("POST", GOOGLE_TOKEN_URL, data=data, headers={"Accept": "application/json"})
        if not r.is_success:
            auth_trace("oauth.google.exchange_failed", status=r.status_code)
            raise TokenExchangeError(f"Google token exchange failed: {r.status_code} {r.text[:200]}")

        access = r.json().get("access_token")
        if not access:
            raise TokenExchangeError("Google token response has no access_token")
        return access

    async def fetch_identity(self, access_token: str) -> Identity:
        r = await self._send("GET", GOOGLE_USERINFO_URL, headers={"Authorization": f"Bearer {access_token}"})
        if not r.is_success:
            auth_trace("oauth.google.userinfo_failed", status=r.status_code)
            raise UserInfoError(f"Failed to get Google user info: {r.status_code}")

        profile = r.json()
        email = profile.get("email") or None
        name = profile.get("name") or (email.split("@")[0] if email else "") or "User"
        return Identity(
            open_id=f"google_{profile['id']}",
            name=name,
            email=email,
            login_method="google",
        )


class GitHubAdapter(ProviderAdapter):
    name = "github"
    authorize_url = GITHUB_AUTH_URL
    scope = "read:user user:email"

    def _auth_headers(self, access_token: str) -> Dict[str, str]:
        return {"Authorization": f"Bearer {access_token}", "Accept": GITHUB_ACCEPT}

    async def exchange_code(self, code: str, redirect_uri: str) -> str:
        self._require_credentials()
        body = {
            "client_id": self.config.client_id,
            "client_secret": self.config.client_secret,
            "code": code,
            "redirect_uri": redirect_uri,
        }
        r = await self._send("POST", GITHUB_TOKEN_URL, json=body, headers={"Accept": "application/json"})
        if not r.is_success:
            auth_trace("oauth.github.exchange_failed", status=r.status_code)
            raise TokenExchangeError(f"GitHub token exchange failed: {r.status_code}")

        tokens = r.json()
        # GitHub reports bad codes as 200 + {"error": ...}
        if tokens.get("error"):
            raise TokenExchangeError(f"GitHub OAuth error: {tokens.get('error_description') or tokens['error']}")
        access = tokens.get("access_token")
        if not access:
            raise TokenExchangeError("GitHub token response has no access_token")
        return access

    async def fetch_identity(self, access_token: str) -> Identity:
        r = await self._send("GET", GITHUB_USER_URL, headers=self._auth_headers(access_token))
        if not r.is_success:
            auth_trace("oauth.github.userinfo_failed", status=r.status_code)
            raise UserInfoError(f"Failed to get GitHub user info: {r.status_code}")

        profile = r.json()
        email = profile.get("email") or None
        if not email:
            email = await self._primary_email(access_token)

        return Identity(
            open_id=f"github_{profile['id']}",
            name=profile.get("name") or profile.get("login") or "User",
            email=email,
            login_method="github",
        )

    async def _primary_email(self, access_token: str) -> Optional[str]:
        """Entry flagged primary, else the first one, else None. Failures mean None."""
        r = await self._send("GET", GITHUB_EMAILS_URL, headers=self._auth_headers(access_token))
        if not r.is_success:
            auth_trace("oauth.github.emails_failed", status=r.status_code)
            return None

        emails: List[Dict[str, Any]] = r.json() or []
        primary = next((e for e in emails if e.get("primary")), None)
        if primary and primary.get("email"):
            return primary["email"]
        if emails and emails[0].get("email"):
            return emails[0]["email"]
        return None


def build_adapters(settings, client: Optional[httpx.AsyncClient] = None) -> Dict[str, ProviderAdapter]:
    return {
        "google": GoogleAdapter(
            ProviderConfig("google", settings.google_client_id, settings.google_client_secret), client
        ),
        "github": GitHubAdapter(
            ProviderConfig("github", settings.github_client_id, settings.github_client_secret), client
        ),
    }
