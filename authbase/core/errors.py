"""
Application error taxonomy.

Every error raised by business logic is one of the classes below. Each class
carries the HTTP status it maps to; the exception handlers registered in
``authbase.core.responses`` are the only place that turns them into responses.

Cache (Redis) failures are not part of it: they are caught where they
happen and degrade to a logged warning.
"""

from typing import Any

from fastapi import status


class AppError(Exception):
    """Base class for caller-visible errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal server error"

    def __init__(
        self,
        message: str | None = None,
        detail: Any = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        self.message = message or self.default_message
        self.detail = detail
        self.headers = headers
        super().__init__(self.message)


class TokenConfigurationError(AppError):
    """A signing secret is missing from configuration."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Token signing is not configured"


class ValidationFailed(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Incomplete data"


class InvalidEmailFormat(ValidationFailed):
    default_message = "Invalid email format"


class EmailAlreadyExists(AppError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Email already exists"


class InvalidCredentials(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid email or password"


class InvalidOrExpiredToken(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid or expired token"


class Unauthorized(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized"


class UserNotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "User not found"


class TooManyRequests(AppError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    default_message = "Too many requests"
