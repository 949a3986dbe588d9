"""Database configuration with SQLAlchemy 2.0 async support.

The engine is owned by a process-wide ``DatabaseConnection`` that is created
lazily on first use and reused for the lifetime of the process. A failed
connection attempt leaves the handle in the ``failed`` state and the next
caller tries again.
"""

import asyncio
import threading
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from enum import Enum
from typing import Any

import structlog
from sqlalchemy import MetaData, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from app.core.config import get_settings
from app.core.errors import TransientStoreError, describe_store_error

logger = structlog.get_logger()

# Naming convention for constraints (helps with migrations)
convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    metadata = MetaData(naming_convention=convention)


class ConnectionState(str, Enum):
    """Lifecycle of the shared database handle."""

    UNINITIALIZED = "uninitialized"
    CONNECTING = "connecting"
    READY = "ready"
    FAILED = "failed"


def _engine_options(url: str, echo: bool) -> dict[str, Any]:
    """Engine keyword arguments for the given database URL."""
    options: dict[str, Any] = {"echo": echo}
    if url.startswith("sqlite"):
        # SQLite picks its own pool class and rejects sizing options
        return options
    options.update(
        pool_size=5,  # Number of connections to keep in the pool
        max_overflow=10,  # Additional connections beyond pool_size
        pool_timeout=30,  # Seconds to wait for a connection
        pool_recycle=1800,  # Recycle connections after 30 minutes
        pool_pre_ping=True,  # Verify connections before use
    )
    return options


class DatabaseConnection:
    """Lazily connected engine and session factory.

    Usage:
        database = get_database()
        factory = await database.connect()
        async with factory() as session:
            ...
    """

    def __init__(self, url: str, echo: bool = False) -> None:
        self.url = url
        self.echo = echo
        self._state = ConnectionState.UNINITIALIZED
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None
        self._lock = asyncio.Lock()
        self._last_error: str | None = None

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def engine(self) -> AsyncEngine | None:
        return self._engine

    @property
    def last_error(self) -> str | None:
        return self._last_error

    async def connect(self) -> async_sessionmaker[AsyncSession]:
        """Return the session factory, connecting first if needed.

        Raises TransientStoreError when the database cannot be reached.
        """
        if self._state is ConnectionState.READY and self._session_factory is not None:
            return self._session_factory

        async with self._lock:
            # Another caller may have finished connecting while we waited
            if self._state is ConnectionState.READY and self._session_factory is not None:
                return self._session_factory

            if self._state is ConnectionState.FAILED:
                logger.info("Retrying database connection", last_error=self._last_error)

            self._state = ConnectionState.CONNECTING
            engine = create_async_engine(self.url, **_engine_options(self.url, self.echo))
            try:
                async with engine.connect() as conn:
                    await conn.execute(text("SELECT 1"))
            except (SQLAlchemyError, OSError) as e:
                await engine.dispose()
                self._state = ConnectionState.FAILED
                self._last_error = str(e)
                logger.error("Database connection failed", error=str(e))
                raise TransientStoreError(
                    "Database unavailable",
                    error=describe_store_error(e),
                ) from e

            self._engine = engine
            self._session_factory = async_sessionmaker(
                engine,
                class_=AsyncSession,
                expire_on_commit=False,
                autoflush=False,
            )
            self._state = ConnectionState.READY
            self._last_error = None
            logger.info("Database connected")
            return self._session_factory

    async def close(self) -> None:
        """Dispose of the engine and return to the uninitialized state."""
        async with self._lock:
            if self._engine is not None:
                await self._engine.dispose()
            self._engine = None
            self._session_factory = None
            self._state = ConnectionState.UNINITIALIZED


# Global database handle
_database: DatabaseConnection | None = None
_database_guard = threading.Lock()


def get_database() -> DatabaseConnection:
    """Get the process-wide database handle, creating it if necessary."""
    global _database
    if _database is None:
        with _database_guard:
            if _database is None:
                settings = get_settings()
                _database = DatabaseConnection(settings.database_url, echo=settings.debug)
    return _database


@asynccontextmanager
async def session_scope() -> AsyncGenerator[AsyncSession, None]:
    """Open a session that commits on success and rolls back on error."""
    factory = await get_database().connect()
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """Dependency that provides an async database session.

    Usage:
        @router.get("/items")
        async def get_items(session: AsyncSession = Depends(get_async_session)):
            ...
    """
    async with session_scope() as session:
        yield session


async def close_db() -> None:
    """Close database connections."""
    if _database is not None:
        await _database.close()
