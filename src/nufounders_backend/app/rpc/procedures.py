# src/nufounders_backend/app/rpc/procedures.py
from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional

from nufounders_backend.app.rpc.context import RpcContext
from nufounders_backend.app.schemas.user import UserRole

# tRPC error code -> (JSON-RPC code, HTTP status)
ERROR_CODES: Dict[str, tuple] = {
    "PARSE_ERROR":           (-32700, 400),
    "BAD_REQUEST":           (-32600, 400),
    "UNAUTHORIZED":          (-32001, 401),
    "FORBIDDEN":             (-32003, 403),
    "NOT_FOUND":             (-32004, 404),
    "METHOD_NOT_SUPPORTED":  (-32005, 405),
    "INTERNAL_SERVER_ERROR": (-32603, 500),
}

UNAUTHED_ERR_MSG = "Please login (10001)"


class RpcError(Exception):
    def __init__(self, code: str, message: str):
        if code not in ERROR_CODES:
            raise ValueError(f"unknown rpc error code: {code}")
        super().__init__(message)
        self.code = code
        self.message = message

    @property
    def http_status(self) -> int:
        return ERROR_CODES[self.code][1]

    def to_shape(self, path: Optional[str]) -> Dict[str, Any]:
        rpc_code, status = ERROR_CODES[self.code]
        return {
            "error": {
                "message": self.message,
                "code": rpc_code,
                "data": {"code": self.code, "httpStatus": status, "path": path},
            }
        }


class Access(enum.Enum):
    PUBLIC = "public"
    PROTECTED = "protected"
    SME = "sme"
    ADMIN = "admin"


def check_access(access: Access, ctx: RpcContext) -> None:
    if access is Access.PUBLIC:
        return
    if ctx.user is None:
        raise RpcError("UNAUTHORIZED", UNAUTHED_ERR_MSG)
    role = ctx.user.role
    if access is Access.ADMIN and role is not UserRole.admin:
        raise RpcError("FORBIDDEN", "Admin access required")
    if access is Access.SME and role not in (UserRole.sme, UserRole.admin):
        raise RpcError("FORBIDDEN", "SME access required")


Handler = Callable[[RpcContext, Any], Awaitable[Any]]


@dataclass(frozen=True)
class Procedure:
    path: str
    kind: str  # "query" | "mutation"
    access: Access
    handler: Handler

    async def __call__(self, ctx: RpcContext, payload: Any) -> Any:
        check_access(self.access, ctx)
        return await self.handler(ctx, payload)


class ProcedureRegistry:
    """Flat map of dotted paths ("auth.me") to procedures."""

    def __init__(self):
        self._procedures: Dict[str, Procedure] = {}

    def _register(self, path: str, kind: str, access: Access):
        def deco(fn: Handler) -> Handler:
            if path in self._procedures:
                raise ValueError(f"duplicate procedure: {path}")
            self._procedures[path] = Procedure(path, kind, access, fn)
            return fn
        return deco

    def query(self, path: str, access: Access = Access.PUBLIC):
        return self._register(path, "query", access)

    def mutation(self, path: str, access: Access = Access.PUBLIC):
        return self._register(path, "mutation", access)

    def get(self, path: str) -> Optional[Procedure]:
        return self._procedures.get(path)

    def __contains__(self, path: str) -> bool:
        return path in self._procedures
