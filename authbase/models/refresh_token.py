"""
SQLModel-based RefreshToken model.

Invariant: a user has at most one row in this table. The session manager
enforces it by deleting every row for the user and inserting the new one in
the same transaction on each login/refresh, so presenting any older refresh
token fails the row lookup.
"""

from datetime import UTC, datetime

from sqlalchemy import ForeignKeyConstraint, Index
from sqlmodel import Field, SQLModel


class RefreshTokens(SQLModel, table=True):
    """Database table for the currently valid refresh token of each user."""

    __tablename__ = "refresh_tokens"

    __table_args__ = (
        ForeignKeyConstraint(
            ["user_id"],
            ["users.id"],
            ondelete="CASCADE",
            onupdate="CASCADE",
            name="fk_refresh_tokens_user_id",
        ),
        Index("idx_refresh_tokens_user_id", "user_id"),
    )

    id: int | None = Field(default=None, primary_key=True)

    user_id: str = Field(foreign_key="users.id", max_length=36)

    # The signed refresh JWT as handed to the client
    token: str = Field(max_length=1024)

    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
