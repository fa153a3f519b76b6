"""
Authentication schemas for request/response validation.

This module defines Pydantic models for authentication-related API operations:
- Registration and login payloads
- Refresh token payload
- User profile and token pair responses

Request bodies and responses use camelCase on the wire (``refreshToken``,
``accessToken``) to match existing clients.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from authbase.models.user import UserBase
from authbase.schemas.base import UTCDatetime


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RegisterRequest(BaseModel):
    """
    Request schema for user registration.

    Fields are optional at the schema level so the session manager can report
    missing data with its own error instead of a generic validation failure.
    """

    name: str | None = Field(default=None, max_length=100)
    email: str | None = Field(default=None, max_length=120)
    password: str | None = Field(default=None, max_length=255)
    address: str | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, max_length=30)
    photo: str | None = Field(default=None, max_length=255)


class LoginRequest(BaseModel):
    """Request schema for user login."""

    email: str | None = Field(default=None, max_length=120)
    password: str | None = Field(default=None, max_length=255)


class RefreshRequest(CamelModel):
    """Request schema for token refresh."""

    refresh_token: str | None = Field(default=None)


class UserResponse(UserBase):
    """Public view of a user."""

    id: str
    role: str
    active: bool
    created_at: UTCDatetime
    updated_at: UTCDatetime


class AuthResponse(CamelModel):
    """User plus a fresh token pair."""

    user: UserResponse
    access_token: str
    refresh_token: str
