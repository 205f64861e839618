# src/nufounders_backend/app/schemas/user.py
from __future__ import annotations

import enum
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class UserRole(str, enum.Enum):
    user = "user"
    sme = "sme"
    admin = "admin"


class UserRecord(BaseModel):
    """Persisted user as handed to business logic (detached from the ORM session)."""

    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)

    open_id: str
    name: Optional[str] = None
    email: Optional[str] = None
    login_method: Optional[str] = None
    role: UserRole = UserRole.user
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    last_signed_in: Optional[datetime] = None


class UserUpsert(BaseModel):
    """
    Upsert payload. Only fields that were explicitly set are written on
    conflict, so `UserUpsert(open_id=..., last_signed_in=now)` touches nothing else.
    """

    open_id: str
    name: Optional[str] = None
    email: Optional[str] = None
    login_method: Optional[str] = None
    role: Optional[UserRole] = None
    last_signed_in: Optional[datetime] = None
