"""
Redis client lifecycle and health tracking.

The ``RedisManager`` is built once by the application lifespan and shared by
the token store and the rate limiter. It doubles as a small circuit breaker:
once a command fails, ``available`` reports False until ``retry_seconds``
have passed, after which the next caller is allowed to probe again.
"""

import time

import redis.asyncio as redis
from redis.exceptions import RedisError

from authbase.config import Settings
from authbase.core.logging import get_logger

logger = get_logger(__name__)


class RedisManager:
    """Owns the async Redis client and its availability state."""

    def __init__(
        self,
        url: str | None = None,
        *,
        enabled: bool = True,
        connect_timeout: float = 10.0,
        socket_timeout: float = 5.0,
        retry_seconds: float = 30.0,
        client: redis.Redis | None = None,  # type: ignore[type-arg]
    ) -> None:
        self.url = url
        self.enabled = enabled
        self.connect_timeout = connect_timeout
        self.socket_timeout = socket_timeout
        self.retry_seconds = retry_seconds
        self._client = client
        self._healthy = client is not None
        self._retry_at = 0.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "RedisManager":
        return cls(
            settings.REDIS_URL,
            enabled=settings.REDIS_ENABLED,
            connect_timeout=settings.REDIS_CONNECT_TIMEOUT,
            socket_timeout=settings.REDIS_SOCKET_TIMEOUT,
            retry_seconds=settings.REDIS_RETRY_SECONDS,
        )

    @property
    def client(self) -> redis.Redis:  # type: ignore[type-arg]
        if self._client is None:
            raise RuntimeError("Redis client is not connected")
        return self._client

    @property
    def available(self) -> bool:
        """
        Whether callers should attempt Redis commands right now.

        False when Redis is disabled or never connected. After a failure,
        stays False until the retry window elapses.
        """
        if self._client is None:
            return False
        if self._healthy:
            return True
        return time.monotonic() >= self._retry_at

    async def connect(self) -> None:
        """Create the client and probe it with PING."""
        if not self.enabled or not self.url:
            logger.warning("redis_disabled")
            return

        if self._client is None:
            self._client = redis.from_url(
                self.url,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=self.connect_timeout,
                socket_timeout=self.socket_timeout,
            )

        try:
            await self._client.ping()
        except (RedisError, OSError) as exc:
            self.mark_unavailable(exc)
            return

        self.mark_available()
        logger.info("redis_connected", url=self._safe_url())

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            self._healthy = False
            logger.info("redis_closed")

    def mark_unavailable(self, exc: BaseException | None = None) -> None:
        if self._healthy or self._retry_at <= time.monotonic():
            logger.warning(
                "redis_unavailable",
                error=str(exc) if exc else None,
                retry_in_seconds=self.retry_seconds,
            )
        self._healthy = False
        self._retry_at = time.monotonic() + self.retry_seconds

    def mark_available(self) -> None:
        if not self._healthy:
            logger.info("redis_available")
        self._healthy = True
        self._retry_at = 0.0

    def _safe_url(self) -> str:
        if not self.url:
            return "unset"
        return self.url.split("@")[-1]

