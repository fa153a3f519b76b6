"""
Redis-backed store for the single currently valid token of each user.

Keys are ``access_token:{user_id}`` and ``refresh_token:{user_id}``. A
presented token is only honoured if it equals the stored value, which makes
logout and rotation take effect immediately.

Every operation degrades to a logged warning when Redis is unavailable, so
authentication keeps working without single-session enforcement.
"""

from redis.exceptions import RedisError

from authbase.config import TokenType
from authbase.core.logging import get_logger
from authbase.core.redis import RedisManager

logger = get_logger(__name__)

ACCESS_TOKEN_PREFIX = "access_token:"
REFRESH_TOKEN_PREFIX = "refresh_token:"


def key_for(user_id: str, token_type: str) -> str:
    """Build the cache key for a user's token of the given type."""
    prefix = ACCESS_TOKEN_PREFIX if token_type == TokenType.ACCESS else REFRESH_TOKEN_PREFIX
    return f"{prefix}{user_id}"


class TokenStore:
    """Store, fetch and delete cached session tokens."""

    def __init__(self, redis_manager: RedisManager) -> None:
        self.redis = redis_manager

    @property
    def enforcing(self) -> bool:
        """True while Redis is reachable and cached tokens are authoritative."""
        return self.redis.available

    async def store(
        self, user_id: str, token: str, token_type: str, ttl_seconds: int
    ) -> str | None:
        """
        Cache ``token`` for ``user_id`` with an expiry.

        Returns:
            The cache key, or None when the write did not happen
        """
        key = key_for(user_id, token_type)
        if not self.redis.available:
            logger.warning("token_store_skipped", operation="store", key=key)
            return None

        try:
            acknowledged = await self.redis.client.set(key, token, ex=ttl_seconds)
        except RedisError as exc:
            self.redis.mark_unavailable(exc)
            logger.warning("token_store_failed", operation="store", key=key, error=str(exc))
            return None

        self.redis.mark_available()
        if not acknowledged:
            logger.warning("token_store_not_acknowledged", key=key)
            return None
        return key

    async def fetch(self, user_id: str, token_type: str) -> str | None:
        """Return the cached token, or None on miss or when Redis is unavailable."""
        key = key_for(user_id, token_type)
        if not self.redis.available:
            logger.warning("token_store_skipped", operation="fetch", key=key)
            return None

        try:
            value = await self.redis.client.get(key)
        except RedisError as exc:
            self.redis.mark_unavailable(exc)
            logger.warning("token_store_failed", operation="fetch", key=key, error=str(exc))
            return None

        self.redis.mark_available()
        if value is None:
            return None
        return value.decode("utf-8") if isinstance(value, bytes) else str(value)

    async def delete(self, user_id: str, token_type: str) -> None:
        """Remove the cached token. Never raises."""
        key = key_for(user_id, token_type)
        if not self.redis.available:
            logger.warning("token_store_skipped", operation="delete", key=key)
            return

        try:
            await self.redis.client.delete(key)
        except RedisError as exc:
            self.redis.mark_unavailable(exc)
            logger.warning("token_store_failed", operation="delete", key=key, error=str(exc))
            return

        self.redis.mark_available()
