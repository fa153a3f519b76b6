"""
Database configuration and session management
"""

from collections.abc import AsyncGenerator

from fastapi import Request
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlmodel import SQLModel

from authbase.core.logging import get_logger

logger = get_logger(__name__)


class Database:
    """
    Owns the async engine and session factory for the Credential Store.

    Created once by the application lifespan and disposed on shutdown.
    """

    def __init__(self, url: str, echo: bool = False) -> None:
        self.url = url
        engine_kwargs: dict[str, object] = {"echo": echo, "pool_pre_ping": True}
        if not url.startswith("sqlite"):
            engine_kwargs["pool_recycle"] = 3600
        self.engine: AsyncEngine = create_async_engine(url, **engine_kwargs)
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    async def create_all(self) -> None:
        """Create all tables from SQLModel metadata."""
        # Register the tables before create_all
        from authbase.models import RefreshTokens, Users  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)
        logger.info("database_tables_ensured")

    async def dispose(self) -> None:
        await self.engine.dispose()
        logger.info("database_disposed")

    def session(self) -> AsyncSession:
        """
        Get a standalone async database session.

        Use with 'async with'; caller is responsible for committing/rolling back.
        """
        return self.session_factory()


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency for getting async database sessions.

    Usage in FastAPI:
        @router.get("/items")
        async def read_items(db: AsyncSession = Depends(get_db)):
            result = await db.execute(select(Item))
            return result.scalars().all()
    """
    database: Database = request.app.state.db
    async with database.session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
