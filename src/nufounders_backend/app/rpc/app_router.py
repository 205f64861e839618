# src/nufounders_backend/app/rpc/app_router.py
from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, ValidationError

from nufounders_backend.app.auth.cookies import session_cookie_options
from nufounders_backend.app.core.config import COOKIE_NAME
from nufounders_backend.app.rpc.context import RpcContext
from nufounders_backend.app.rpc.procedures import Access, ProcedureRegistry, RpcError
from nufounders_backend.app.schemas.user import UserRecord

registry = ProcedureRegistry()


def _user_out(user: Optional[UserRecord]) -> Optional[Dict[str, Any]]:
    if user is None:
        return None
    return user.model_dump(by_alias=True, mode="json")


# ---------------- auth ----------------
@registry.query("auth.me")
async def auth_me(ctx: RpcContext, _input: Any):
    # per-user answer; never cached by proxies or the browser
    ctx.res.set_header("Cache-Control", "no-store")
    return _user_out(ctx.user)


@registry.mutation("auth.logout")
async def auth_logout(ctx: RpcContext, _input: Any):
    ctx.res.clear_cookie(COOKIE_NAME, session_cookie_options(ctx.req))
    return {"success": True}


# ---------------- admin ----------------
class PageInput(BaseModel):
    limit: int = Field(100, ge=1, le=500)
    offset: int = Field(0, ge=0)


@registry.query("admin.getAllUsers", access=Access.ADMIN)
async def admin_get_all_users(ctx: RpcContext, payload: Any):
    try:
        page = PageInput.model_validate(payload or {})
    except ValidationError as ex:
        raise RpcError("BAD_REQUEST", str(ex))
    users = await ctx.users.list_users(limit=page.limit, offset=page.offset)
    return [_user_out(u) for u in users]
