# src/nufounders_backend/app/db/models.py

from sqlalchemy import Column, Enum, String, Text, TIMESTAMP, func

from nufounders_backend.app.schemas.user import UserRole
from .session import Base


class User(Base):
    __tablename__ = "users"

    # provider-prefixed id ("google_123", "github_42"); join key with session claims
    open_id = Column(String(64), primary_key=True)
    name = Column(Text)
    email = Column(String(320))
    login_method = Column(String(64))
    role = Column(
        Enum(UserRole, name="user_role"),
        nullable=False,
        default=UserRole.user,
        server_default=UserRole.user.value,
    )

    created_at = Column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at = Column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    last_signed_in = Column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
