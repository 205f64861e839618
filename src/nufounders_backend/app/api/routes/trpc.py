# src/nufounders_backend/app/api/routes/trpc.py
from __future__ import annotations

import json
import logging
from typing import Any, List, Tuple

from fastapi import APIRouter, Depends, Request, Response

from nufounders_backend.app.deps import get_services
from nufounders_backend.app.rpc.app_router import registry
from nufounders_backend.app.rpc.context import RpcContext, create_context
from nufounders_backend.app.rpc.procedures import RpcError
from nufounders_backend.app.services import AppServices

log = logging.getLogger(__name__)

router = APIRouter(prefix="/api/trpc", tags=["trpc"])


def _loads(raw: Any) -> Any:
    try:
        return json.loads(raw)
    except ValueError as ex:
        raise RpcError("PARSE_ERROR", f"input is not valid JSON: {ex}")


async def _read_inputs(request: Request, batch: bool, count: int) -> List[Any]:
    if request.method == "GET":
        raw = request.query_params.get("input")
        data = _loads(raw) if raw is not None else None
    else:
        body = await request.body()
        data = _loads(body) if body else None

    if not batch:
        return [data]
    if data is None:
        return [None] * count
    if not isinstance(data, dict):
        raise RpcError("BAD_REQUEST", "batch input must be an object keyed by call index")
    return [data.get(str(i)) for i in range(count)]


async def _call(path: str, method: str, ctx: RpcContext, payload: Any) -> Tuple[Any, int]:
    kind = "query" if method == "GET" else "mutation"
    proc = registry.get(path)
    try:
        if proc is None:
            raise RpcError("NOT_FOUND", f'No "{kind}"-procedure on path "{path}"')
        if proc.kind != kind:
            raise RpcError("METHOD_NOT_SUPPORTED", f'Unsupported {method}-request to {proc.kind} procedure at path "{path}"')
        data = await proc(ctx, payload)
    except RpcError as ex:
        return ex.to_shape(path), ex.http_status
    except Exception:
        log.exception("rpc procedure %s failed", path)
        err = RpcError("INTERNAL_SERVER_ERROR", "Internal server error")
        return err.to_shape(path), err.http_status
    return {"result": {"data": data}}, 200


@router.api_route("/{path:path}", methods=["GET", "POST"])
async def trpc_endpoint(
    path: str,
    request: Request,
    response: Response,
    services: AppServices = Depends(get_services),
):
    """Single RPC endpoint; `path` is one dotted procedure or, with ?batch=1, a comma list."""
    batch = request.query_params.get("batch") in ("1", "true")
    paths = path.split(",") if batch else [path]

    try:
        inputs = await _read_inputs(request, batch, len(paths))
    except RpcError as ex:
        response.status_code = ex.http_status
        shapes = [ex.to_shape(p) for p in paths]
        return shapes if batch else shapes[0]

    ctx = await create_context(request, response, services.authenticator, services.users)

    bodies, statuses = [], []
    for p, payload in zip(paths, inputs):
        body, status = await _call(p, request.method, ctx, payload)
        bodies.append(body)
        statuses.append(status)

    response.status_code = statuses[0] if len(set(statuses)) == 1 else 207
    return bodies if batch else bodies[0]
