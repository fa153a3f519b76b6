"""Rate limiting service using Redis."""

from collections.abc import Awaitable, Callable
from typing import Any

from fastapi import Request

from authbase.config import Settings
from authbase.core.auth import get_client_ip
from authbase.core.errors import TooManyRequests
from authbase.core.logging import get_logger
from authbase.core.redis import RedisManager

logger = get_logger(__name__)


class RateLimiter:
    """
    Fixed-window request counter.

    Each request increments ``{key_prefix}{identity}`` and reads its TTL in
    one transaction. A counter without an expiry (the first request of a
    window, or one whose EXPIRE failed) gets the window as its TTL, so the
    count always restarts once Redis expires the key. Going over
    ``max_requests`` writes an informational ``{key_prefix}blocked:{identity}``
    marker and rejects with 429.

    Identity is the authenticated user's id when ``use_user_id`` is set and
    the Auth Gate ran before this dependency, otherwise the client IP.

    Fails open: when Redis is unavailable or errors, the request is allowed.
    """

    def __init__(
        self,
        key_prefix: str = "rate_limit:",
        window_in_seconds: int = 60,
        max_requests: int = 30,
        block_duration: int = 60,
        use_user_id: bool = True,
    ) -> None:
        self.key_prefix = key_prefix
        self.window_in_seconds = window_in_seconds
        self.max_requests = max_requests
        self.block_duration = block_duration
        self.use_user_id = use_user_id

    @classmethod
    def from_settings(cls, settings: Settings, **overrides: Any) -> "RateLimiter":
        options: dict[str, Any] = {
            "window_in_seconds": settings.RATE_LIMIT_WINDOW_SECONDS,
            "max_requests": settings.RATE_LIMIT_MAX_REQUESTS,
            "block_duration": settings.RATE_LIMIT_BLOCK_SECONDS,
        }
        options.update(overrides)
        return cls(**options)

    def identity_for(self, request: Request) -> str:
        identity = getattr(request.state, "identity", None)
        if self.use_user_id and identity is not None:
            return str(identity.id)
        return get_client_ip(request)

    async def __call__(self, request: Request) -> None:
        await self.check(request.app.state.redis, self.identity_for(request))

    async def check(self, redis_manager: RedisManager, identity: str) -> None:
        """
        Count one request for ``identity``.

        Raises:
            TooManyRequests: count exceeded ``max_requests`` within the window
        """
        if not redis_manager.available:
            logger.warning("rate_limit_skipped_redis_unavailable", identity=identity)
            return

        key = f"{self.key_prefix}{identity}"
        try:
            client = redis_manager.client
            pipe = client.pipeline(transaction=True)
            pipe.incr(key)
            pipe.ttl(key)
            current, ttl = await pipe.execute()
            if ttl < 0:
                # First request in this window, or an earlier EXPIRE was lost
                await client.expire(key, self.window_in_seconds)
                ttl = self.window_in_seconds

            if current > self.max_requests:
                retry_after = max(int(ttl), 1)
                # Informational only; nothing reads the marker back
                await client.set(
                    f"{self.key_prefix}blocked:{identity}", "1", ex=self.block_duration
                )
                logger.warning(
                    "rate_limit_exceeded",
                    identity=identity,
                    count=current,
                    limit=self.max_requests,
                    retry_after=retry_after,
                )
                raise TooManyRequests(
                    "Too many requests",
                    detail=f"Too many requests. Try again in {retry_after} seconds.",
                    headers={"Retry-After": str(retry_after)},
                )

            redis_manager.mark_available()
            logger.debug(
                "rate_limit_check",
                identity=identity,
                count=current,
                limit=self.max_requests,
            )
        except TooManyRequests:
            raise
        except Exception as exc:
            redis_manager.mark_unavailable(exc)
            logger.warning(
                "rate_limit_redis_error",
                identity=identity,
                exc_info=True,
            )


def rate_limit(name: str) -> Callable[[Request], Awaitable[None]]:
    """
    Dependency that applies the limiter registered under ``name``.

    Limiters are built from settings in ``create_app`` and kept in
    ``app.state.rate_limiters``, so routes can be declared at import time.

    Usage:
        @router.post("/login", dependencies=[Depends(rate_limit("auth"))])
    """

    async def dependency(request: Request) -> None:
        limiter: RateLimiter = request.app.state.rate_limiters[name]
        await limiter(request)

    return dependency
