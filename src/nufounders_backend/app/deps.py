# src/nufounders_backend/app/deps.py
from __future__ import annotations

from fastapi import HTTPException, Request

from nufounders_backend.app.services import AppServices


def get_services(request: Request) -> AppServices:
    services = getattr(request.app.state, "services", None)
    if services is None:
        # lifespan did not run (e.g. TestClient used without a `with` block)
        raise HTTPException(status_code=503, detail="service not ready")
    return services
