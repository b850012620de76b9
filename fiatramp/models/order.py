"""Order ORM — durable record created from a locked quote.

Invariants:
    - id is a UUID generated by the workflow, not the database
    - order_number is unique, not null, drawn from the shared order_number_seq
    - quote-derived columns (base, asset, amounts, rate, fee) never change after insert
    - status and payment_id are the only columns the webhook path mutates

Design Decisions:
    - Amount columns are ExactDecimal: unscaled, so a quote value is stored as issued
    - order_number assigned explicitly by OrderStore before insert, so the value is
      known without a RETURNING round-trip and the same code path serves SQLite
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    String, Integer, DateTime, ForeignKey, Index, Sequence,
)
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from fiatramp.core.domain_types import OrderType, format_reference
from fiatramp.db.base import Base
from fiatramp.db.types import ExactDecimal

# Shared by every connection and process. Non-transactional: a rolled-back
# insert leaves a gap, never a duplicate.
ORDER_NUMBER_SEQ = Sequence("order_number_seq", metadata=Base.metadata)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Order(Base):
    """Order aggregate — one row per accepted quote."""
    __tablename__ = "orders"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True,
    )
    order_number: Mapped[int] = mapped_column(Integer, nullable=False)
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=False,
    )
    quote_id: Mapped[str] = mapped_column(String(64), nullable=False)
    type: Mapped[str] = mapped_column(
        String(10), nullable=False, default=OrderType.BUY.value,
    )
    base: Mapped[str] = mapped_column(String(10), nullable=False)
    asset: Mapped[str] = mapped_column(String(10), nullable=False)
    fiat_amount: Mapped[Decimal] = mapped_column(
        ExactDecimal(), nullable=False,
    )
    crypto_amount: Mapped[Decimal] = mapped_column(
        ExactDecimal(), nullable=False,
    )
    exchange_rate: Mapped[Decimal] = mapped_column(
        ExactDecimal(), nullable=False,
    )
    fee: Mapped[Decimal] = mapped_column(
        ExactDecimal(), nullable=False,
    )
    status: Mapped[str] = mapped_column(String(30), nullable=False)
    payment_id: Mapped[str | None] = mapped_column(
        String(255), nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
        default=_utcnow, onupdate=_utcnow,
    )

    __table_args__ = (
        Index("ix_orders_user_created", "user_id", "created_at"),
        Index("orders_order_number_idx", "order_number", unique=True),
    )

    @property
    def reference(self) -> str:
        return format_reference(self.order_number)
