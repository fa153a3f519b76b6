"""
Authentication dependencies for FastAPI route protection.

This module provides dependency functions for:
- Extracting and verifying the bearer access token
- Checking the token against the cached current token for its user
- Resolving the client IP for rate limiting
"""

from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel

from authbase.config import TokenType
from authbase.core.errors import InvalidOrExpiredToken, Unauthorized
from authbase.core.logging import get_logger, set_user_context
from authbase.core.security import TokenIssuer
from authbase.services.token_store import TokenStore

logger = get_logger(__name__)

# auto_error=False so a missing header goes through our own 401 envelope
bearer_scheme = HTTPBearer(auto_error=False)


class Identity(BaseModel):
    """The caller resolved from a valid access token."""

    id: str
    email: str | None = None
    role: str | None = None


def get_token_issuer(request: Request) -> TokenIssuer:
    issuer: TokenIssuer = request.app.state.token_issuer
    return issuer


def get_token_store(request: Request) -> TokenStore:
    return TokenStore(request.app.state.redis)


async def get_current_identity(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    issuer: Annotated[TokenIssuer, Depends(get_token_issuer)],
    token_store: Annotated[TokenStore, Depends(get_token_store)],
) -> Identity:
    """
    Authenticate the request from its ``Authorization: Bearer`` header.

    The token must verify as an access token AND equal the access token
    currently cached for its user, so logout and rotation revoke older
    tokens before they expire. While Redis is unavailable only the signature
    is checked.

    Raises:
        Unauthorized: 401 on any failure (one message for every cause)
    """
    if credentials is None or not credentials.credentials:
        raise Unauthorized()

    token = credentials.credentials
    try:
        claims = issuer.verify_access(token)
    except InvalidOrExpiredToken:
        raise Unauthorized() from None

    user_id = str(claims["id"])

    if token_store.enforcing:
        stored = await token_store.fetch(user_id, TokenType.ACCESS)
        # A failed fetch flips enforcing off; treat that as degraded, not revoked
        if stored != token and token_store.enforcing:
            logger.info("access_token_not_current", user_id=user_id)
            raise Unauthorized()
    else:
        logger.warning("session_check_skipped_redis_unavailable", user_id=user_id)

    identity = Identity(id=user_id, email=claims.get("email"), role=claims.get("role"))
    request.state.identity = identity
    set_user_context(user_id)
    return identity


def get_client_ip(request: Request) -> str:
    """
    Extract client IP address from request.

    Checks X-Forwarded-For header first (for proxies/load balancers),
    falls back to direct client IP.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        # X-Forwarded-For can contain multiple IPs, take the first (client)
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


# Type alias for dependency injection
CurrentIdentity = Annotated[Identity, Depends(get_current_identity)]
