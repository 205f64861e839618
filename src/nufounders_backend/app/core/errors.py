# src/nufounders_backend/app/core/errors.py
from __future__ import annotations


class OAuthError(Exception):
    """Base for every failure inside the OAuth callback flow.

    Never rendered to the client: the callback boundary logs it and
    redirects with a generic error flag.
    """


class ProviderConfigError(OAuthError):
    """Client id / secret for a provider is not configured."""


class TokenExchangeError(OAuthError):
    """Provider token endpoint answered non-2xx or returned an error body."""


class UserInfoError(OAuthError):
    """Provider userinfo endpoint answered non-2xx."""


class UnknownProviderError(OAuthError):
    pass


class StateDecodeError(OAuthError):
    """The OAuth `state` parameter could not be decoded."""


class ForbiddenError(Exception):
    """Raised by the request authenticator when no valid session is present."""

    def __init__(self, message: str = "Invalid or missing session"):
        super().__init__(message)
        self.message = message
