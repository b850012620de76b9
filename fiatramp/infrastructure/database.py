"""Database Session Manager — async engine, per-request sessions, storage error translation.

Invariants:
    - Every session rolls back on exception and is always closed (no partial commits leak)
    - SQLAlchemy exceptions escaping a session become PersistenceError (core/errors.py)
    - PostgreSQL connections carry a statement_timeout, so a stuck statement aborts
      and its transaction rolls back instead of holding locks
    - Pool sizing only applies to pooled server databases; SQLite gets the dialect default

Design Decisions:
    - Singleton db_manager initialized on startup: FastAPI lifespan manages lifecycle
    - expire_on_commit=False: committed orders stay readable for the response
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import (
    IntegrityError, OperationalError, DBAPIError, SQLAlchemyError,
)
from sqlalchemy.ext.asyncio import (
    AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker,
)

from fiatramp.core.errors import PersistenceError

logger = logging.getLogger(__name__)

# Most specific first.
_ERROR_MAP: tuple[tuple[type[SQLAlchemyError], str, str], ...] = (
    (IntegrityError, "Integrity constraint violated", "commit"),
    (OperationalError, "Connection or operational error", "execute"),
    (DBAPIError, "Database driver error", "query"),
    (SQLAlchemyError, "Database operation failed", "unknown"),
)


def translate_db_error(e: SQLAlchemyError) -> PersistenceError:
    for error_type, message, operation in _ERROR_MAP:
        if isinstance(e, error_type):
            return PersistenceError(message, operation)
    return PersistenceError("Database operation failed", "unknown")


def build_engine_options(
    database_url: str,
    pool_size: int = 20,
    max_overflow: int = 10,
    statement_timeout_ms: int | None = None,
) -> dict:
    """Engine kwargs appropriate for the URL's backend."""
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite":
        return {}
    options: dict = {
        "pool_size": pool_size,
        "max_overflow": max_overflow,
        "pool_pre_ping": True,
        "pool_recycle": 3600,
    }
    if statement_timeout_ms and url.get_driver_name() == "asyncpg":
        options["connect_args"] = {
            "server_settings": {"statement_timeout": str(statement_timeout_ms)},
        }
    return options


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory with the settings every caller expects (scripts, tests, the manager)."""
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


class DatabaseSessionManager:
    """Owns the engine and hands out sessions with rollback and error translation."""

    def __init__(self, database_url: str, **engine_kwargs):
        self.engine = create_async_engine(
            database_url, **build_engine_options(database_url, **engine_kwargs),
        )
        self._session_factory = create_session_factory(self.engine)

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Provide session with auto-rollback on exception."""
        session = self._session_factory()
        try:
            yield session
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error(f"DB error ({type(e).__name__}): {e}")
            raise translate_db_error(e) from e
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


def init_db(database_url: str, **kwargs):
    global db_manager
    db_manager = DatabaseSessionManager(database_url, **kwargs)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency for database sessions."""
    if not db_manager:
        raise RuntimeError("Database not initialized")
    async with db_manager.session() as session:
        yield session
