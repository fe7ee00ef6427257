"""
Database Configuration.

SQLAlchemy async engine and session management.

The engine is owned by an explicitly constructed Database object. The
process entry point (FastAPI lifespan, CLI command) creates it, passes it
where it is needed and disposes of it on shutdown. There is no module-level
engine.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Request
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from quicknote.backend.core.logging import get_logger

logger = get_logger(__name__)


class Database:
    """
    Engine and session factory for the note store.

    Usage:
        database = Database.from_config()
        await database.create_tables()
        async with database.session() as session:
            ...
        await database.dispose()
    """

    def __init__(self, url: str, **engine_kwargs: Any) -> None:
        self.url = url
        self.engine: AsyncEngine = create_async_engine(url, **engine_kwargs)
        self.session_factory: async_sessionmaker[AsyncSession] = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @classmethod
    def from_config(cls) -> "Database":
        """Create a Database from database.yaml and config/.env."""
        from quicknote.backend.core.config import get_app_config, get_database_url

        db_config = get_app_config().database
        url = get_database_url()

        engine_kwargs: dict[str, Any] = {"echo": db_config.echo}
        if db_config.driver != "sqlite":
            engine_kwargs.update(
                pool_size=db_config.pool_size,
                max_overflow=db_config.max_overflow,
                pool_timeout=db_config.pool_timeout,
                pool_recycle=db_config.pool_recycle,
            )

        database = cls(url, **engine_kwargs)
        logger.debug("Database engine created", extra={"driver": db_config.driver})
        return database

    async def create_tables(self) -> None:
        """Create all tables that do not exist yet."""
        from quicknote.backend.models.base import Base

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Provide a session that commits on success and rolls back on error."""
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def dispose(self) -> None:
        """Close all pooled connections."""
        await self.engine.dispose()


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency that provides a database session.

    Reads the Database created by the application lifespan from app.state.

    Usage in endpoints:
        @router.get("/items")
        async def get_items(db: AsyncSession = Depends(get_db_session)):
            ...
    """
    database: Database = request.app.state.database
    async with database.session() as session:
        yield session
