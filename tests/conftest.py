"""Root conftest — database, quote book, resolver, and HTTP client fixtures.

Invariants:
    - Every test gets a fresh SQLite database file under tmp_path
    - get_db, get_quote_service, get_identity_resolver and get_caller_identity
      are overridden on the app for route tests
    - The quote book clock is a FakeClock the test can advance

Design Decisions:
    - File-backed SQLite instead of :memory:: concurrency tests need several real
      connections to one database, and :memory: gives each connection its own
"""

import os

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///test.db")

from fiatramp.api.dependencies import (  # noqa: E402
    get_caller_identity, get_identity_resolver, get_quote_service,
)
from fiatramp.db.base import Base  # noqa: E402
from fiatramp.infrastructure.database import (  # noqa: E402
    create_session_factory, get_db,
)
import fiatramp.models  # noqa: E402, F401
from fiatramp.services.identity_resolver import (  # noqa: E402
    AnonymousIdentityResolver, upsert_user_by_email,
)
from fiatramp.services.quote_book import InMemoryQuoteBook  # noqa: E402
from tests.factories import ANONYMOUS_EMAIL, FakeClock, make_quote  # noqa: E402


@pytest.fixture
async def test_engine(tmp_path):
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'fiatramp.db'}", echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return create_session_factory(test_engine)


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def quote_book(clock):
    book = InMemoryQuoteBook(ttl_seconds=60, clock=clock)
    book.publish(make_quote("Q1"))
    return book


@pytest.fixture
def resolver(test_session_factory):
    return AnonymousIdentityResolver(test_session_factory, ANONYMOUS_EMAIL)


@pytest.fixture
def make_user(test_session_factory):
    """Create (or fetch) a registered user by email and return its id."""
    async def _make(email: str):
        async with test_session_factory() as db:
            user_id = await upsert_user_by_email(db, email)
            await db.commit()
            return user_id
    return _make


@pytest.fixture
def caller():
    """Mutable caller identity for route tests. None → anonymous."""
    return {"id": None}


@pytest.fixture
async def client(test_session_factory, quote_book, resolver, caller):
    """FastAPI test client with every collaborator overridden."""
    from fiatramp.main import app

    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_quote_service] = lambda: quote_book
    app.dependency_overrides[get_identity_resolver] = lambda: resolver
    app.dependency_overrides[get_caller_identity] = lambda: caller["id"]

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
