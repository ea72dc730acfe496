"""Database Session Manager — async connection pool with automatic rollback and health checks.

Invariants:
    - Every session auto-rolls-back on exception (no partial commits leak)
    - Connection pool uses pool_pre_ping for stale connection detection
    - SQLAlchemy exceptions mapped to AppError: IntegrityError → conflict (409),
      everything else → database (503)
    - commit_or_raise is the only place services commit

Design Decisions:
    - Singleton db_manager initialized on startup: FastAPI lifespan manages lifecycle
    - expire_on_commit=False: prevents lazy-load issues in async context
    - Mapping inside commit_or_raise (not only in session()): errors surface while the
      route is still running, so the global handler sees an AppError
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from sqlalchemy.exc import (
    IntegrityError, OperationalError, DBAPIError, SQLAlchemyError,
)
from sqlalchemy import text

from app.core.errors import AppError

logger = logging.getLogger(__name__)


def map_db_error(e: SQLAlchemyError, operation: str) -> AppError:
    """Translate a SQLAlchemy exception into an AppError."""
    if isinstance(e, IntegrityError):
        logger.warning(f"DB integrity error during {operation}: {e}")
        return AppError.conflict(
            "Integrity constraint violated", code="INTEGRITY_ERROR",
        )
    if isinstance(e, OperationalError):
        logger.error(f"DB operational error during {operation}: {e}")
        return AppError.database("Connection or operational error", operation)
    if isinstance(e, DBAPIError):
        logger.error(f"DB driver error during {operation}: {e}")
        return AppError.database("Database driver error", operation)
    logger.error(f"SQLAlchemy error during {operation}: {e}")
    return AppError.database("Database operation failed", operation)


async def commit_or_raise(session: AsyncSession, operation: str = "commit") -> None:
    """Commit, rolling back and raising AppError on failure."""
    try:
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        raise map_db_error(e, operation) from e


class DatabaseSessionManager:
    """Manages async database sessions with pooling, rollback, and health checks."""

    def __init__(
        self, database_url: str, pool_size: int = 20, max_overflow: int = 10,
    ):
        self.engine = create_async_engine(
            database_url,
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_pre_ping=True,
            pool_recycle=3600,
        )
        self._session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Provide session with auto-rollback on exception."""
        session = self._session_factory()
        try:
            yield session
        except SQLAlchemyError as e:
            await session.rollback()
            raise map_db_error(e, "session") from e
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    async def health_check(self) -> bool:
        """Check database connectivity (for readiness probes)."""
        try:
            async with self.session() as db:
                await db.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"DB health check failed: {e}")
            return False

    async def dispose(self) -> None:
        await self.engine.dispose()


# Singleton (initialized on startup)
db_manager: DatabaseSessionManager | None = None


def init_db(database_url: str, **kwargs) -> DatabaseSessionManager:
    global db_manager
    db_manager = DatabaseSessionManager(database_url, **kwargs)
    return db_manager


async def close_db() -> None:
    global db_manager
    if db_manager is not None:
        await db_manager.dispose()
        db_manager = None


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency for database sessions."""
    if not db_manager:
        raise RuntimeError("Database not initialized")
    async with db_manager.session() as session:
        yield session
