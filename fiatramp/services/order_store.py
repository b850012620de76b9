"""Order Store — order numbering and persistence.

Invariants:
    - order_number comes from ONE counter shared by every connection and process
    - create() runs inside the caller's transaction; commit/rollback is the caller's
    - A rolled-back create never yields a duplicate number on retry (gaps allowed)
    - find_by_user_id is newest first, ties broken by order_number
    - SQLAlchemy errors leave this module as PersistenceError

Design Decisions:
    - PostgreSQL: nextval('order_number_seq'). Dialects without sequences: one
      upsert-returning statement on order_number_counters, which takes the write
      lock before reading so two transactions cannot read the same value
"""

import logging
import uuid

from sqlalchemy import select
from sqlalchemy.dialects import sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from fiatramp.core.domain_types import OrderDraft
from fiatramp.core.errors import PersistenceError
from fiatramp.models.order import Order, ORDER_NUMBER_SEQ
from fiatramp.models.order_number_counter import OrderNumberCounter

logger = logging.getLogger(__name__)

ORDER_COUNTER_NAME = "orders"


class OrderStore:
    """Durable repository of orders."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def next_order_number(self) -> int:
        """Advance the shared counter and return its new value."""
        dialect = self.db.get_bind().dialect
        if dialect.supports_sequences:
            return await self.db.scalar(select(ORDER_NUMBER_SEQ.next_value()))
        stmt = sqlite.insert(OrderNumberCounter).values(
            name=ORDER_COUNTER_NAME, last_value=1,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[OrderNumberCounter.name],
            set_={"last_value": OrderNumberCounter.last_value + 1},
        ).returning(OrderNumberCounter.last_value)
        return await self.db.scalar(stmt)

    async def create(self, draft: OrderDraft) -> Order:
        """Number and insert an order. Flushes, does not commit."""
        try:
            order_number = await self.next_order_number()
            order = Order(
                id=draft.id,
                order_number=order_number,
                user_id=draft.user_id,
                quote_id=draft.quote_id,
                type=draft.type.value,
                base=draft.base,
                asset=draft.asset,
                fiat_amount=draft.fiat_amount,
                crypto_amount=draft.crypto_amount,
                exchange_rate=draft.exchange_rate,
                fee=draft.fee,
                status=draft.status.value,
            )
            self.db.add(order)
            await self.db.flush()
        except SQLAlchemyError as e:
            logger.error(
                f"Order insert failed: {e}",
                extra={"order_id": draft.id, "quote_id": draft.quote_id},
            )
            raise PersistenceError("Order insert failed", "insert") from e
        return order

    async def find_by_id(self, order_id: uuid.UUID) -> Order | None:
        try:
            result = await self.db.execute(
                select(Order).where(Order.id == order_id),
            )
        except SQLAlchemyError as e:
            logger.error(f"Order lookup failed: {e}", extra={"order_id": order_id})
            raise PersistenceError("Order lookup failed", "query") from e
        return result.scalar_one_or_none()

    async def find_by_user_id(self, user_id: uuid.UUID) -> list[Order]:
        try:
            result = await self.db.execute(
                select(Order)
                .where(Order.user_id == user_id)
                .order_by(Order.created_at.desc(), Order.order_number.desc()),
            )
        except SQLAlchemyError as e:
            logger.error(f"Order listing failed: {e}", extra={"user_id": user_id})
            raise PersistenceError("Order listing failed", "query") from e
        return list(result.scalars().all())
