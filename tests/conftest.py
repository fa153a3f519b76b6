"""
Pytest configuration and shared fixtures.

Every test gets its own SQLite database file (aiosqlite) and an in-process
Redis (fakeredis), wired into an app built by ``create_app``.
"""

import os
from collections.abc import AsyncGenerator

import pytest
from fakeredis import FakeAsyncRedis
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

# authbase.main builds a module-level app on import; keep it away from any .env
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DB_CREATE_ALL", "false")
os.environ.setdefault("REDIS_ENABLED", "false")

from authbase.config import Settings  # noqa: E402
from authbase.core.database import Database  # noqa: E402
from authbase.core.redis import RedisManager  # noqa: E402
from authbase.core.security import TokenIssuer  # noqa: E402
from authbase.main import create_app  # noqa: E402
from authbase.services.token_store import TokenStore  # noqa: E402

ACCESS_SECRET = "test-access-secret-0123456789abcdef"
REFRESH_SECRET = "test-refresh-secret-0123456789abcdef"
USER_KEY = "test-user-key"
API_SECRET = "test-api-secret"


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings isolated from the environment and any .env file."""
    return Settings(
        _env_file=None,  # type: ignore[call-arg]
        ENVIRONMENT="test",
        JWT_SECRET=ACCESS_SECRET,
        JWT_REFRESH_SECRET=REFRESH_SECRET,
        USER_KEY=USER_KEY,
        SECRET_KEY=API_SECRET,
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        BCRYPT_ROUNDS=4,
        AUTH_RATE_LIMIT_MAX_REQUESTS=100,
        RATE_LIMIT_MAX_REQUESTS=100,
        LOG_LEVEL="WARNING",
    )


@pytest.fixture
async def fake_redis() -> AsyncGenerator[FakeAsyncRedis, None]:
    client = FakeAsyncRedis(decode_responses=True)
    yield client
    await client.flushall()
    await client.aclose()


@pytest.fixture
def redis_manager(fake_redis: FakeAsyncRedis) -> RedisManager:
    return RedisManager(client=fake_redis)


@pytest.fixture
async def database(settings: Settings) -> AsyncGenerator[Database, None]:
    db = Database(settings.DATABASE_URL)
    await db.create_all()
    yield db
    await db.dispose()


@pytest.fixture
async def db_session(database: Database) -> AsyncGenerator[AsyncSession, None]:
    async with database.session() as session:
        yield session
        await session.rollback()


@pytest.fixture
def token_issuer(settings: Settings) -> TokenIssuer:
    return TokenIssuer.from_settings(settings)


@pytest.fixture
def token_store(redis_manager: RedisManager) -> TokenStore:
    return TokenStore(redis_manager)


@pytest.fixture
def app(settings: Settings, database: Database, redis_manager: RedisManager) -> FastAPI:
    """App wired to the test database and fake Redis."""
    return create_app(settings, database=database, redis_manager=redis_manager)


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """
    Async HTTP client for testing API endpoints.

    Usage:
        async def test_endpoint(client):
            response = await client.get("/health")
            assert response.status_code == 200
    """
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
def sample_user_data() -> dict:
    """Sample registration payload."""
    return {
        "name": "Test User",
        "email": "newuser@example.com",
        "password": "SecurePassword123!",
    }
