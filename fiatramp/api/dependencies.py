"""Dependency Wiring — per-process collaborators handed to route handlers.

Invariants:
    - One quote book and one anonymous identity resolver per process
    - Caller identity comes only from request.state.user_id, set by an upstream
      auth layer; absent → None (anonymous), not a UUID → IdentityResolutionError
    - Every collaborator is a FastAPI dependency, so tests swap them via
      app.dependency_overrides
"""

import logging
import uuid

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

import fiatramp.infrastructure.database as db_module
from fiatramp.config import get_settings
from fiatramp.core.errors import IdentityResolutionError
from fiatramp.core.repository_protocols import QuoteService
from fiatramp.infrastructure.database import get_db
from fiatramp.services.identity_resolver import AnonymousIdentityResolver
from fiatramp.services.order_workflow import OrderWorkflow
from fiatramp.services.quote_book import InMemoryQuoteBook

logger = logging.getLogger(__name__)

_quote_book: InMemoryQuoteBook | None = None
_identity_resolver: AnonymousIdentityResolver | None = None


def get_quote_service() -> QuoteService:
    global _quote_book
    if _quote_book is None:
        _quote_book = InMemoryQuoteBook(get_settings().quote_ttl_seconds)
    return _quote_book


def get_identity_resolver() -> AnonymousIdentityResolver:
    global _identity_resolver
    if _identity_resolver is None:
        if not db_module.db_manager:
            raise RuntimeError("Database not initialized")
        _identity_resolver = AnonymousIdentityResolver(
            db_module.db_manager.session, get_settings().anonymous_email,
        )
    return _identity_resolver


def get_caller_identity(request: Request) -> uuid.UUID | None:
    """Authenticated user id placed on request.state by an auth layer, if any."""
    user_id = getattr(request.state, "user_id", None)
    if user_id is None:
        return None
    if isinstance(user_id, uuid.UUID):
        return user_id
    try:
        return uuid.UUID(str(user_id))
    except ValueError as e:
        logger.error(f"Malformed caller identity: {user_id!r}")
        raise IdentityResolutionError("Caller identity is not a valid UUID") from e


def get_order_workflow(
    db: AsyncSession = Depends(get_db),
    quotes: QuoteService = Depends(get_quote_service),
    identities: AnonymousIdentityResolver = Depends(get_identity_resolver),
) -> OrderWorkflow:
    return OrderWorkflow(db, quotes, identities)


def reset_singletons() -> None:
    """Forget per-process collaborators (used on shutdown)."""
    global _quote_book, _identity_resolver
    _quote_book = None
    _identity_resolver = None
