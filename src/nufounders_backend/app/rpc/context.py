# src/nufounders_backend/app/rpc/context.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from fastapi import Request, Response

from nufounders_backend.app.auth.authenticator import RequestAuthenticator
from nufounders_backend.app.auth.cookies import CookieOptions, parse_cookie_header
from nufounders_backend.app.core.errors import ForbiddenError
from nufounders_backend.app.core.trace import auth_trace
from nufounders_backend.app.schemas.user import UserRecord

log = logging.getLogger(__name__)


@dataclass
class RpcRequest:
    """Framework-agnostic view of the inbound request handed to procedures."""

    headers: Dict[str, str] = field(default_factory=dict)
    cookies: Dict[str, str] = field(default_factory=dict)
    scheme: str = "http"


class RpcResponse:
    """Response mutations from procedures, written through to the outgoing headers."""

    def __init__(self, response: Response):
        self._response = response

    def set_header(self, name: str, value: str) -> None:
        self._response.headers[name] = value

    def cookie(self, name: str, value: str, options: CookieOptions) -> None:
        options.apply(self._response, name, value)

    def clear_cookie(self, name: str, options: CookieOptions) -> None:
        self.cookie(name, "", options.with_max_age(-1))


@dataclass
class RpcContext:
    req: RpcRequest
    res: RpcResponse
    user: Optional[UserRecord] = None
    # user repository, for procedures that read or write users
    users: Any = None


def _merged_headers(request: Request) -> Dict[str, str]:
    # repeated headers collapse into one comma list (cookie pairs into "; ")
    merged: Dict[str, str] = {}
    for name, value in request.headers.items():
        if name in merged:
            sep = "; " if name == "cookie" else ", "
            merged[name] = f"{merged[name]}{sep}{value}"
        else:
            merged[name] = value
    return merged


def bridge_request(request: Request) -> RpcRequest:
    headers = _merged_headers(request)
    return RpcRequest(
        headers=headers,
        cookies=parse_cookie_header(headers.get("cookie")),
        scheme=request.url.scheme,
    )


async def create_context(
    request: Request,
    response: Response,
    authenticator: RequestAuthenticator,
    users: Any = None,
) -> RpcContext:
    """
    Build the per-call context. Any authentication failure means an anonymous
    context so public procedures keep working; protected ones reject later.
    """
    req = bridge_request(request)
    user: Optional[UserRecord] = None
    try:
        user = await authenticator.authenticate(req)
    except ForbiddenError as ex:
        auth_trace("rpc.context.anonymous", reason=ex.message)
    except Exception:
        # user store unreachable or failing: serve the call without a user
        log.exception("session lookup failed; continuing as anonymous")
    return RpcContext(req=req, res=RpcResponse(response), user=user, users=users)
