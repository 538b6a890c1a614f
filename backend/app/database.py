"""
Async SQLAlchemy engine, session factory, and Base.

The engine lives on a Database handle created once in the FastAPI lifespan
and stored on app.state. Request handlers receive sessions through get_db;
the scheduler gets the same handle passed in when it starts.
"""

from collections.abc import AsyncGenerator
from typing import Optional

from fastapi import Request
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from app.config import Settings, get_settings


class Base(DeclarativeBase):
    pass


class Database:
    """Owns one connection pool and the session factory bound to it."""

    def __init__(self, engine: AsyncEngine) -> None:
        self.engine = engine
        self.sessionmaker = async_sessionmaker(
            bind=engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "Database":
        settings = settings or get_settings()
        engine = create_async_engine(
            settings.database_url,
            echo=settings.log_level == "DEBUG",
            pool_size=10,
            max_overflow=20,
            pool_pre_ping=True,  # Detect stale connections
        )
        return cls(engine)

    def session(self) -> AsyncSession:
        return self.sessionmaker()

    async def create_all(self) -> None:
        """Create all tables. Called at application startup."""
        async with self.engine.begin() as conn:
            # Import all models so Base knows about them before create_all
            import app.models  # noqa: F401
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        """Dispose engine pool. Called at application shutdown."""
        await self.engine.dispose()


def get_database(request: Request) -> Database:
    return request.app.state.database


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency — yields an async DB session."""
    database = get_database(request)
    async with database.session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
