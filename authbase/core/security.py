"""
Security utilities for authentication.

This module provides:
- Password hashing and verification using bcrypt
- Email format validation
- JWT access/refresh token issuing and verification
"""

import base64
import hashlib
import re
import secrets
from datetime import UTC, datetime, timedelta
from typing import Any

import bcrypt
import jwt

from authbase.config import Settings, TokenType
from authbase.core.errors import InvalidOrExpiredToken, TokenConfigurationError

ACCESS_TOKEN_TTL = 24 * 60 * 60  # 1 day
REFRESH_TOKEN_TTL = 7 * 24 * 60 * 60  # 7 days

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def is_email_valid(email: str) -> bool:
    """Loose email check: something@something.tld, no whitespace."""
    return bool(EMAIL_PATTERN.match(email))


def _prepare_password_for_bcrypt(password: str) -> str:
    """
    Prepare password for bcrypt by handling long passwords.

    Bcrypt has a 72 byte limit. For passwords longer than 72 bytes,
    we SHA256 hash them first and encode as base64.
    """
    password_bytes = password.encode("utf-8")

    if len(password_bytes) <= 72:
        return password

    # SHA256 produces 32 bytes, base64 encoding produces 44 chars (well under 72)
    hashed = hashlib.sha256(password_bytes).digest()
    return base64.b64encode(hashed).decode("ascii")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a plain password against a hashed password.

    Args:
        plain_password: The plain text password to verify
        hashed_password: The bcrypt hashed password

    Returns:
        True if password matches, False otherwise
    """
    prepared_password = _prepare_password_for_bcrypt(plain_password)
    try:
        return bcrypt.checkpw(prepared_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        # Stored hash is not a bcrypt hash
        return False


def get_password_hash(password: str, rounds: int = 12) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: The plain text password to hash
        rounds: bcrypt cost factor

    Returns:
        The bcrypt hashed password
    """
    prepared_password = _prepare_password_for_bcrypt(password)
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(prepared_password.encode("utf-8"), salt)
    return hashed.decode("utf-8")


class TokenIssuer:
    """
    Creates and validates signed session tokens.

    Access and refresh tokens are HS256 JWTs signed with separate secrets.
    Stateless: revocation is handled by the token store, not here.
    """

    def __init__(
        self,
        access_secret: str | None,
        refresh_secret: str | None,
        algorithm: str = "HS256",
    ) -> None:
        self.access_secret = access_secret
        self.refresh_secret = refresh_secret
        self.algorithm = algorithm

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenIssuer":
        return cls(settings.JWT_SECRET, settings.JWT_REFRESH_SECRET, settings.JWT_ALGORITHM)

    def issue_access(self, claims: dict[str, Any]) -> str:
        """Sign ``claims`` as an access token valid for one day."""
        return self._encode(claims, TokenType.ACCESS, self.access_secret, ACCESS_TOKEN_TTL)

    def issue_refresh(self, claims: dict[str, Any]) -> str:
        """Sign ``claims`` as a refresh token valid for seven days."""
        return self._encode(claims, TokenType.REFRESH, self.refresh_secret, REFRESH_TOKEN_TTL)

    def verify_access(self, token: str) -> dict[str, Any]:
        """
        Verify signature, expiry and type of an access token.

        Raises:
            InvalidOrExpiredToken: On any verification failure
        """
        return self._decode(token, TokenType.ACCESS, self.access_secret)

    def verify_refresh(self, token: str) -> dict[str, Any]:
        """
        Verify signature, expiry and type of a refresh token.

        Raises:
            InvalidOrExpiredToken: On any verification failure
        """
        return self._decode(token, TokenType.REFRESH, self.refresh_secret)

    def _encode(
        self,
        claims: dict[str, Any],
        token_type: str,
        secret: str | None,
        ttl_seconds: int,
    ) -> str:
        if not secret:
            raise TokenConfigurationError(f"Missing signing secret for {token_type} tokens")

        now = datetime.now(UTC)
        payload = {
            **claims,
            "type": token_type,
            "jti": secrets.token_hex(8),  # distinct tokens within the same second
            "iat": now,
            "exp": now + timedelta(seconds=ttl_seconds),
        }
        return jwt.encode(payload, secret, algorithm=self.algorithm)

    def _decode(self, token: str, token_type: str, secret: str | None) -> dict[str, Any]:
        if not secret:
            raise TokenConfigurationError(f"Missing signing secret for {token_type} tokens")

        try:
            payload: dict[str, Any] = jwt.decode(
                token,
                secret,
                algorithms=[self.algorithm],
                options={"verify_exp": True, "verify_signature": True, "require": ["exp"]},
            )
        except jwt.PyJWTError as exc:
            raise InvalidOrExpiredToken() from exc

        if payload.get("type") != token_type or not payload.get("id"):
            raise InvalidOrExpiredToken()

        return payload
