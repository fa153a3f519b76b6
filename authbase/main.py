"""
FastAPI Application - authbase API
Boilerplate backend with JWT sessions and Redis rate limiting
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse, RedirectResponse

from authbase.api.v1 import router as api_v1_router
from authbase.config import Settings, get_settings
from authbase.core.database import Database
from authbase.core.logging import configure_logging, get_logger
from authbase.core.redis import RedisManager
from authbase.core.request_log import RequestLoggingMiddleware
from authbase.core.responses import register_exception_handlers, success_response
from authbase.core.security import TokenIssuer
from authbase.core.security_headers import SecurityHeadersMiddleware
from authbase.services.rate_limit import RateLimiter

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Connect shared clients on startup and release them on shutdown."""
    settings: Settings = app.state.settings
    database: Database = app.state.db
    redis_manager: RedisManager = app.state.redis

    logger.info(
        "app_starting",
        environment=settings.ENVIRONMENT,
        database=database.url.split("@")[-1],
    )
    if settings.DB_CREATE_ALL:
        await database.create_all()
    await redis_manager.connect()

    yield

    logger.info("app_stopping")
    await redis_manager.close()
    await database.dispose()


def create_app(
    settings: Settings | None = None,
    *,
    database: Database | None = None,
    redis_manager: RedisManager | None = None,
) -> FastAPI:
    """
    Build the application with its clients attached to ``app.state``.

    Construction does no I/O; connections open in the lifespan.
    """
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="Boilerplate REST API with JWT sessions and Redis rate limiting",
        version=settings.VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.db = database or Database(settings.DATABASE_URL, echo=settings.DB_ECHO)
    app.state.redis = redis_manager or RedisManager.from_settings(settings)
    app.state.token_issuer = TokenIssuer.from_settings(settings)
    app.state.rate_limiters = {
        "default": RateLimiter.from_settings(settings, key_prefix="rate_limit:"),
        "auth": RateLimiter.from_settings(
            settings,
            key_prefix="rate_limit:auth:",
            max_requests=settings.AUTH_RATE_LIMIT_MAX_REQUESTS,
            use_user_id=False,
        ),
    }

    wildcard = settings.CORS_ORIGINS == ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=not wildcard,
        allow_methods=["GET", "HEAD", "PUT", "PATCH", "POST", "DELETE"],
        allow_headers=["*"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(SecurityHeadersMiddleware, csp_exempt_paths=("/docs", "/redoc"))
    app.add_middleware(RequestLoggingMiddleware)

    register_exception_handlers(app, expose_errors=settings.ENVIRONMENT != "production")

    @app.get("/", include_in_schema=False)
    async def root() -> RedirectResponse:
        return RedirectResponse(url="/health")

    @app.get("/health")
    async def health(request: Request) -> JSONResponse:
        """Health check endpoint"""
        return success_response(
            request,
            "Service is healthy",
            {
                "status": "ok",
                "timestamp": datetime.now(UTC).isoformat(),
                "environment": settings.ENVIRONMENT,
                "redis": "available" if app.state.redis.available else "unavailable",
            },
        )

    app.include_router(api_v1_router, prefix=settings.API_V1_STR)

    return app


app = create_app()
