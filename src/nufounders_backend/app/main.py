# src/nufounders_backend/app/main.py
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, Mapping, Optional

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Load .env before settings are read
load_dotenv()

from nufounders_backend.app.core.logging import setup_logging
setup_logging()

from nufounders_backend.app.api.routes.oauth import router as oauth_router
from nufounders_backend.app.api.routes.trpc import router as trpc_router
from nufounders_backend.app.auth.providers import ProviderAdapter
from nufounders_backend.app.core.config import Settings, load_settings
from nufounders_backend.app.db.session import Database
from nufounders_backend.app.db.users import SqlUserRepository
from nufounders_backend.app.services import build_services

log = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    *,
    users: Any = None,
    adapters: Optional[Mapping[str, ProviderAdapter]] = None,
) -> FastAPI:
    """
    Build the API. `users` / `adapters` replace the SQL repository and the
    real provider adapters (tests, alternative stores).
    """
    settings = settings or load_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        db: Optional[Database] = None
        repo = users
        if repo is None:
            db = Database(settings.database_url, echo=settings.db_echo)
            if settings.db_create_tables:
                await db.create_all()
            await db.check_connection()
            repo = SqlUserRepository(db, owner_open_id=settings.owner_open_id)
        app.state.db = db
        app.state.services = build_services(settings, repo, adapters)
        log.info("nufounders api ready (app_id=%s)", settings.app_id)
        try:
            yield
        finally:
            if db is not None:
                await db.dispose()

    app = FastAPI(title="NuFounders API", version="0.1.0", lifespan=lifespan)

    if settings.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(settings.cors_origins),
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.get("/healthz")
    def health():
        return {"status": "ok"}

    app.include_router(oauth_router)
    app.include_router(trpc_router)
    return app


def get_app() -> FastAPI:
    """uvicorn factory: `uvicorn nufounders_backend.app.main:get_app --factory`."""
    return create_app()
