"""Identity Resolver — stable identity for callers without authentication.

Invariants:
    - The anonymous row is created at most once for the lifetime of the system
    - Insert-or-read is ONE statement: INSERT ... ON CONFLICT (email) DO UPDATE
      ... RETURNING id. No insert followed by a separate select.
    - The upsert runs in its own session and commits at once, never inside a
      request transaction
    - After the first success the id is served from memory (no further DB round-trips)
    - Zero rows back → IdentityResolutionError; the resolver never fabricates an id

Design Decisions:
    - DO UPDATE SET email = excluded.email instead of DO NOTHING: the conflict
      branch returns the existing row from the same statement, so a concurrent
      winner is always visible to the loser
    - asyncio.Lock only guards first initialization inside one process. Separate
      processes each keep their own slot and are reconciled by the unique
      constraint on users.email.
"""

import asyncio
import logging
import uuid
from contextlib import AbstractAsyncContextManager
from typing import Callable

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from fiatramp.core.domain_types import UserId
from fiatramp.core.errors import (
    FiatRampError, IdentityResolutionError, PersistenceError,
)
from fiatramp.models.user import User

logger = logging.getLogger(__name__)

DEFAULT_ANONYMOUS_EMAIL = "anonymous@fiatramp.local"

SessionScope = Callable[[], AbstractAsyncContextManager[AsyncSession]]

_UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


async def upsert_user_by_email(db: AsyncSession, email: str) -> UserId | None:
    """Insert the user if absent and return its id either way, atomically."""
    dialect = db.get_bind().dialect.name
    insert = _UPSERT_DIALECTS.get(dialect)
    if insert is None:
        raise IdentityResolutionError(
            f"Dialect '{dialect}' has no atomic upsert",
        )
    stmt = insert(User).values(id=uuid.uuid4(), email=email)
    stmt = stmt.on_conflict_do_update(
        index_elements=[User.email],
        set_={"email": stmt.excluded.email},
    ).returning(User.id)
    result = await db.execute(stmt)
    row = result.first()
    return UserId(row[0]) if row else None


class AnonymousIdentityResolver:
    """Resolves, and caches, the single shared anonymous identity."""

    def __init__(
        self, session_scope: SessionScope,
        email: str = DEFAULT_ANONYMOUS_EMAIL,
    ):
        self._session_scope = session_scope
        self._email = email
        self._cached: UserId | None = None
        self._lock: asyncio.Lock | None = None

    @property
    def cached_id(self) -> UserId | None:
        return self._cached

    async def resolve(self) -> UserId:
        """Return the anonymous identity id, creating the row on first use."""
        if self._cached is not None:
            return self._cached
        if self._lock is None:
            self._lock = asyncio.Lock()
        async with self._lock:
            if self._cached is None:
                self._cached = await self._upsert()
                logger.info(
                    "Anonymous identity resolved",
                    extra={"user_id": self._cached},
                )
        return self._cached

    async def resolve_caller(self, caller_id: uuid.UUID | None) -> UserId:
        """Authenticated caller id when present, else the anonymous identity."""
        if caller_id is not None:
            return UserId(caller_id)
        return await self.resolve()

    async def _upsert(self) -> UserId:
        try:
            async with self._session_scope() as db:
                user_id = await upsert_user_by_email(db, self._email)
                if user_id is None:
                    await db.rollback()
                    raise IdentityResolutionError(
                        "Failed to get or create anonymous user",
                    )
                await db.commit()
                return user_id
        except FiatRampError:
            logger.error("Anonymous identity resolution failed", exc_info=True)
            raise
        except SQLAlchemyError as e:
            logger.error(f"Anonymous identity upsert failed: {e}")
            raise PersistenceError("Anonymous identity upsert failed", "upsert") from e
