"""
Database schema models (SQLModel tables).

Import from here so every table is registered on ``SQLModel.metadata``
before ``create_all`` runs.
"""

from authbase.models.refresh_token import RefreshTokens
from authbase.models.user import UserBase, Users

__all__ = [
    "UserBase",
    "Users",
    "RefreshTokens",
]
