"""
Pydantic schemas for API responses and requests
"""

from authbase.schemas.auth import (
    AuthResponse,
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    UserResponse,
)
from authbase.schemas.base import UTCDatetime

__all__ = [
    "AuthResponse",
    "LoginRequest",
    "RefreshRequest",
    "RegisterRequest",
    "UserResponse",
    "UTCDatetime",
]
