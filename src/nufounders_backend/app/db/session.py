# src/nufounders_backend/app/db/session.py
from __future__ import annotations

import logging

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

log = logging.getLogger(__name__)


# ------------------------------------------------------------
# Base class for ORM models
# ------------------------------------------------------------
class Base(DeclarativeBase):
    """Base for all ORM models."""
    pass


# ------------------------------------------------------------
# Connection provider
# ------------------------------------------------------------
class Database:
    """
    Engine + session factory for one process.

    Built once in the application lifespan and kept on `app.state`;
    request handlers receive it through dependencies instead of a
    module-level lazy singleton.
    """

    def __init__(self, url: str, *, echo: bool = False):
        self.url = url
        self.engine: AsyncEngine = create_async_engine(url, echo=echo)
        self.sessionmaker = async_sessionmaker(
            self.engine,
            expire_on_commit=False,
            class_=AsyncSession,
        )

    @property
    def dialect(self) -> str:
        return self.engine.dialect.name

    async def create_all(self) -> None:
        from . import models  # noqa: F401  (register tables on Base.metadata)

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def check_connection(self) -> None:
        async with self.engine.connect() as conn:
            result = await conn.execute(text("SELECT 1"))
            result.scalar_one()
        log.info("database connection ok (%s)", self.dialect)

    async def dispose(self) -> None:
        await self.engine.dispose()
