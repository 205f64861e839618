# src/nufounders_backend/app/auth/cookies.py
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Dict, Iterable, Optional, Union

from starlette.requests import cookie_parser
from starlette.responses import Response


@dataclass(frozen=True)
class CookieOptions:
    http_only: bool = True
    path: str = "/"
    same_site: Optional[str] = "none"
    secure: bool = False
    max_age: Optional[int] = None
    domain: Optional[str] = None

    def with_max_age(self, max_age: Optional[int]) -> "CookieOptions":
        return replace(self, max_age=max_age)

    def apply(self, response: Response, name: str, value: str) -> None:
        """Append one Set-Cookie header carrying these attributes."""
        response.set_cookie(
            name,
            value,
            max_age=self.max_age,
            path=self.path,
            domain=self.domain,
            secure=self.secure,
            httponly=self.http_only,
            samesite=self.same_site,
        )


HeaderValue = Union[str, Iterable[str], None]


def _forwarded_protos(value: HeaderValue) -> Iterable[str]:
    if not value:
        return []
    if isinstance(value, str):
        return value.split(",")
    return [p for v in value for p in v.split(",")]


def _header(headers: Any, name: str) -> HeaderValue:
    getlist = getattr(headers, "getlist", None)
    if getlist is not None:
        return getlist(name)
    return headers.get(name)


def _request_scheme(request: Any) -> str:
    scheme = getattr(request, "scheme", None)
    if scheme is None:
        scheme = request.url.scheme
    return (scheme or "").lower()


def is_secure_request(request: Any) -> bool:
    """TLS terminated here, or a proxy says it was (X-Forwarded-Proto list)."""
    if _request_scheme(request) == "https":
        return True
    protos = _forwarded_protos(_header(request.headers, "x-forwarded-proto"))
    return any(p.strip().lower() == "https" for p in protos)


def session_cookie_options(request: Any) -> CookieOptions:
    """
    Cookie attributes for the session cookie. SameSite=None because the app is
    framed and redirected across origins during OAuth.
    """
    return CookieOptions(
        http_only=True,
        path="/",
        same_site="none",
        secure=is_secure_request(request),
    )


def parse_cookie_header(header: Optional[str]) -> Dict[str, str]:
    if not header:
        return {}
    return cookie_parser(header)

