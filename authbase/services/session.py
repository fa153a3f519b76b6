"""
Session lifecycle: register, login, refresh, logout, profile.

Single active session per user:
- Every login/refresh deletes all refresh-token rows for the user and inserts
  the new one inside one transaction, then caches the new access and refresh
  tokens (after commit, best effort).
- Logout deletes the rows and both cached tokens.

A refresh token is accepted only if it verifies against the refresh secret,
its user still exists, and it matches the user's stored row exactly. Any
earlier token of the same user therefore fails after a rotation.
"""

import asyncio
import secrets
from functools import lru_cache
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from authbase.config import TokenType
from authbase.core.errors import (
    EmailAlreadyExists,
    InvalidCredentials,
    InvalidEmailFormat,
    InvalidOrExpiredToken,
    UserNotFound,
    ValidationFailed,
)
from authbase.core.logging import get_logger
from authbase.core.security import (
    ACCESS_TOKEN_TTL,
    REFRESH_TOKEN_TTL,
    TokenIssuer,
    get_password_hash,
    is_email_valid,
    verify_password,
)
from authbase.models.refresh_token import RefreshTokens
from authbase.models.user import Users
from authbase.schemas.auth import AuthResponse, RegisterRequest, UserResponse
from authbase.services.token_store import TokenStore

logger = get_logger(__name__)


@lru_cache
def _dummy_hash(rounds: int) -> str:
    return get_password_hash(secrets.token_urlsafe(16), rounds)


class SessionManager:
    """Coordinates the token issuer, token store and credential store."""

    def __init__(
        self,
        db: AsyncSession,
        token_store: TokenStore,
        issuer: TokenIssuer,
        bcrypt_rounds: int = 12,
    ) -> None:
        self.db = db
        self.tokens = token_store
        self.issuer = issuer
        self.bcrypt_rounds = bcrypt_rounds

    async def register(self, data: RegisterRequest) -> AuthResponse:
        """
        Create an account and log it in.

        Raises:
            ValidationFailed: name, email or password missing
            InvalidEmailFormat: email is not shaped like an address
            EmailAlreadyExists: email is taken
        """
        name = (data.name or "").strip()
        email = (data.email or "").strip()
        password = data.password or ""
        if not name or not email or not password:
            raise ValidationFailed("Incomplete data")
        if not is_email_valid(email):
            raise InvalidEmailFormat()

        if await self._find_user_by_email(email) is not None:
            raise EmailAlreadyExists()

        password_hash = await asyncio.to_thread(get_password_hash, password, self.bcrypt_rounds)
        user = Users(
            name=name,
            email=email,
            password=password_hash,
            address=data.address,
            phone=data.phone,
            photo=data.photo,
        )
        self.db.add(user)

        try:
            await self.db.flush()
            result = await self._rotate(user)
        except IntegrityError as exc:
            # Lost a race with a concurrent registration for the same email
            await self.db.rollback()
            raise EmailAlreadyExists() from exc

        logger.info("user_registered", user_id=user.id)
        return result

    async def login(self, email: str | None, password: str | None) -> AuthResponse:
        """
        Verify credentials and start a new session, revoking any previous one.

        Raises:
            ValidationFailed: email or password missing
            InvalidCredentials: unknown email, wrong password or inactive account
        """
        if not email or not password:
            raise ValidationFailed("Incomplete data")

        user = await self._find_user_by_email(email.strip())
        if user is None:
            # Pay the same bcrypt cost as a wrong password
            await asyncio.to_thread(verify_password, password, _dummy_hash(self.bcrypt_rounds))
            logger.info("login_failed", reason="unknown_email")
            raise InvalidCredentials()

        password_valid = await asyncio.to_thread(verify_password, password, user.password)
        if not password_valid or not user.active:
            logger.info("login_failed", user_id=user.id, reason="bad_password_or_inactive")
            raise InvalidCredentials()

        result = await self._rotate(user)
        logger.info("user_logged_in", user_id=user.id)
        return result

    async def refresh(self, refresh_token: str | None) -> AuthResponse:
        """
        Exchange the current refresh token for a new token pair.

        Raises:
            ValidationFailed: no token supplied
            InvalidOrExpiredToken: token fails verification, its user is gone,
                or it is not the user's current refresh token
        """
        if not refresh_token:
            raise ValidationFailed("Incomplete data")

        claims = self.issuer.verify_refresh(refresh_token)
        user = await self.db.get(Users, str(claims["id"]))
        if user is None or not user.active:
            raise InvalidOrExpiredToken()

        result = await self.db.execute(
            select(RefreshTokens).where(
                RefreshTokens.user_id == user.id,  # type: ignore[arg-type]
                RefreshTokens.token == refresh_token,  # type: ignore[arg-type]
            )
        )
        if result.scalars().first() is None:
            logger.warning("refresh_token_not_current", user_id=user.id)
            raise InvalidOrExpiredToken()

        rotated = await self._rotate(user)
        logger.info("session_refreshed", user_id=user.id)
        return rotated

    async def logout(self, user_id: str) -> None:
        """
        End the user's session. Calling it again is a no-op.

        Raises:
            UserNotFound: the account no longer exists
        """
        user = await self.db.get(Users, user_id)
        if user is None:
            raise UserNotFound()

        await self.db.execute(delete(RefreshTokens).where(RefreshTokens.user_id == user_id))  # type: ignore[arg-type]
        await self.db.commit()

        await self.tokens.delete(user_id, TokenType.ACCESS)
        await self.tokens.delete(user_id, TokenType.REFRESH)
        logger.info("user_logged_out", user_id=user_id)

    async def profile(self, user_id: str) -> Users:
        """
        Raises:
            UserNotFound: the account no longer exists
        """
        user = await self.db.get(Users, user_id)
        if user is None:
            raise UserNotFound()
        return user

    async def _find_user_by_email(self, email: str) -> Users | None:
        result = await self.db.execute(select(Users).where(Users.email == email))  # type: ignore[arg-type]
        return result.scalars().first()

    async def _rotate(self, user: Users) -> AuthResponse:
        """
        Issue a new token pair and make it the only valid one for ``user``.

        The refresh-row swap (and any pending user insert) commits atomically;
        a failure rolls everything back and leaves the previous session intact.
        Cache writes follow the commit and may fail without undoing it.
        """
        claims: dict[str, Any] = {"id": user.id, "email": user.email, "role": user.role}
        access_token = self.issuer.issue_access(claims)
        refresh_token = self.issuer.issue_refresh(claims)

        try:
            await self.db.execute(delete(RefreshTokens).where(RefreshTokens.user_id == user.id))  # type: ignore[arg-type]
            self.db.add(RefreshTokens(user_id=user.id, token=refresh_token))
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        await self.tokens.store(user.id, access_token, TokenType.ACCESS, ACCESS_TOKEN_TTL)
        await self.tokens.store(user.id, refresh_token, TokenType.REFRESH, REFRESH_TOKEN_TTL)

        return AuthResponse(
            user=UserResponse.model_validate(user),
            access_token=access_token,
            refresh_token=refresh_token,
        )
