# src/nufounders_backend/app/db/users.py

from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from nufounders_backend.app.schemas.user import UserRecord, UserRole, UserUpsert
from .models import User
from .session import Database

_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SqlUserRepository:
    """User persistence keyed by open_id. Writes are unconditional upserts (last write wins)."""

    def __init__(
        self,
        db: Database,
        *,
        owner_open_id: str = "",
        clock: Callable[[], datetime] = _utcnow,
    ):
        insert = _INSERTS.get(db.dialect)
        if insert is None:
            raise RuntimeError(f"unsupported database dialect for upsert: {db.dialect}")
        self._db = db
        self._insert = insert
        self._owner_open_id = owner_open_id
        self._clock = clock

    async def get_by_open_id(self, open_id: str) -> Optional[UserRecord]:
        async with self._db.sessionmaker() as session:
            row = await session.get(User, open_id)
            return UserRecord.model_validate(row) if row is not None else None

    async def upsert(self, data: UserUpsert) -> None:
        fields: Dict[str, Any] = data.model_dump(exclude_unset=True)
        open_id = fields.pop("open_id")
        if not open_id:
            raise ValueError("User open_id is required for upsert")

        values: Dict[str, Any] = {"open_id": open_id, **fields}
        update_set: Dict[str, Any] = dict(fields)

        if "role" not in fields and self._owner_open_id and open_id == self._owner_open_id:
            values["role"] = update_set["role"] = UserRole.admin

        now = self._clock()
        if values.get("last_signed_in") is None:
            values["last_signed_in"] = now
        if not update_set:
            update_set["last_signed_in"] = now
        update_set["updated_at"] = now

        stmt = self._insert(User).values(**values)
        stmt = stmt.on_conflict_do_update(index_elements=[User.open_id], set_=update_set)

        async with self._db.sessionmaker() as session:
            await session.execute(stmt)
            await session.commit()

    async def list_users(self, limit: int = 100, offset: int = 0) -> List[UserRecord]:
        stmt = (
            select(User)
            .order_by(User.created_at.desc(), User.open_id)
            .limit(limit)
            .offset(offset)
        )
        async with self._db.sessionmaker() as session:
            result = await session.execute(stmt)
            return [UserRecord.model_validate(row) for row in result.scalars().all()]
