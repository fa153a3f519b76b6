"""
SQLModel-based User model.

UserBase holds the public profile fields shared with the API schemas in
``authbase.schemas.auth``; Users adds the credential and bookkeeping fields
that must never be exposed.
"""

import uuid
from datetime import UTC, datetime

from sqlalchemy import Index
from sqlmodel import Field, SQLModel

from authbase.config import UserRole


def _utcnow() -> datetime:
    return datetime.now(UTC)


class UserBase(SQLModel):
    """Public profile fields."""

    name: str = Field(max_length=100)
    email: str = Field(max_length=120)
    address: str | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, max_length=30)
    photo: str | None = Field(default=None, max_length=255)


class Users(UserBase, table=True):
    """
    Database table for users.

    Internal/sensitive fields (should NOT be exposed via public API):
    - password: bcrypt hash
    - active: access control
    """

    __tablename__ = "users"

    __table_args__ = (Index("idx_users_email", "email", unique=True),)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True, max_length=36)

    password: str = Field(max_length=255)
    role: str = Field(default=UserRole.USER, max_length=20)
    active: bool = Field(default=True)

    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(
        default_factory=_utcnow, sa_column_kwargs={"onupdate": _utcnow}
    )
