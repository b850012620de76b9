"""Order Store — numbering uniqueness, rollback behavior, and read ordering.

Invariants:
    - Sequential and concurrent creations get distinct, consecutive numbers
    - A failed insert leaves no row and no duplicate on the next attempt
    - find_by_user_id is newest first
"""

import asyncio
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from uuid import uuid4

import pytest
from sqlalchemy import func, select
from sqlalchemy.dialects import postgresql

from fiatramp.core.domain_types import OrderDraft, OrderId, UserId
from fiatramp.core.errors import PersistenceError
from fiatramp.models.order import Order
from fiatramp.services.order_store import OrderStore
from tests.factories import make_quote


def _draft(user_id, order_id=None, quote_id="Q1"):
    return OrderDraft.from_quote(
        OrderId(order_id or uuid4()), UserId(user_id), make_quote(quote_id),
    )


async def _create_committed(factory, draft):
    async with factory() as db:
        order = await OrderStore(db).create(draft)
        await db.commit()
        return order.order_number


async def test_sequential_creations_are_consecutive(test_db, make_user):
    user_id = await make_user("u@example.com")
    store = OrderStore(test_db)

    numbers = []
    for _ in range(5):
        order = await store.create(_draft(user_id))
        numbers.append(order.order_number)
    await test_db.commit()

    assert numbers == [1, 2, 3, 4, 5]


async def test_concurrent_creations_never_collide(test_session_factory, make_user):
    user_id = await make_user("u@example.com")

    numbers = await asyncio.gather(*(
        _create_committed(test_session_factory, _draft(user_id))
        for _ in range(10)
    ))

    assert sorted(numbers) == list(range(1, 11))


async def test_failed_insert_rolls_back_and_next_number_is_unique(
    test_session_factory, make_user,
):
    user_id = await make_user("u@example.com")
    existing_id = uuid4()
    first = await _create_committed(
        test_session_factory, _draft(user_id, order_id=existing_id),
    )

    async with test_session_factory() as db:
        with pytest.raises(PersistenceError):
            await OrderStore(db).create(_draft(user_id, order_id=existing_id))
        await db.rollback()

    second = await _create_committed(test_session_factory, _draft(user_id))

    async with test_session_factory() as db:
        count = await db.scalar(select(func.count()).select_from(Order))
    assert count == 2
    assert second > first


async def test_find_by_id(test_db, make_user):
    user_id = await make_user("u@example.com")
    store = OrderStore(test_db)
    order = await store.create(_draft(user_id))
    await test_db.commit()

    found = await store.find_by_id(order.id)
    assert found is not None
    assert found.order_number == order.order_number
    assert await store.find_by_id(uuid4()) is None


async def test_find_by_user_id_newest_first(test_db, make_user):
    owner = await make_user("owner@example.com")
    other = await make_user("other@example.com")
    store = OrderStore(test_db)

    base_time = datetime(2026, 3, 1, tzinfo=timezone.utc)
    created = []
    for i in range(3):
        order = await store.create(_draft(owner, quote_id=f"Q{i}"))
        order.created_at = base_time + timedelta(minutes=i)
        created.append(order.id)
    await store.create(_draft(other))
    await test_db.commit()

    orders = await store.find_by_user_id(owner)

    assert [o.id for o in orders] == list(reversed(created))
    assert all(o.user_id == owner for o in orders)


async def test_find_by_user_id_ties_break_on_order_number(test_db, make_user):
    owner = await make_user("owner@example.com")
    store = OrderStore(test_db)

    same_time = datetime(2026, 3, 1, tzinfo=timezone.utc)
    for _ in range(3):
        order = await store.create(_draft(owner))
        order.created_at = same_time
    await test_db.commit()

    orders = await store.find_by_user_id(owner)
    assert [o.order_number for o in orders] == [3, 2, 1]


async def test_find_by_user_id_empty(test_db):
    assert await OrderStore(test_db).find_by_user_id(uuid4()) == []


class _PostgresSession:
    """Records statements; bound to the PostgreSQL dialect."""

    def __init__(self):
        self.dialect = postgresql.dialect()
        self.statements = []
        self.added = []

    def get_bind(self):
        return SimpleNamespace(dialect=self.dialect)

    async def scalar(self, stmt):
        self.statements.append(str(stmt.compile(dialect=self.dialect)))
        return 42

    def add(self, obj):
        self.added.append(obj)

    async def flush(self):
        pass


async def test_postgresql_numbers_come_from_sequence():
    db = _PostgresSession()

    order = await OrderStore(db).create(_draft(uuid4()))

    assert order.order_number == 42
    assert db.added == [order]
    assert len(db.statements) == 1
    assert "nextval('order_number_seq')" in db.statements[0]
    assert "order_number_counters" not in db.statements[0]
