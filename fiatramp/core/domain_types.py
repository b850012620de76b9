"""Domain Types — identity types, order enums, and frozen quote/order value objects.

Invariants:
    - OrderId and UserId wrap UUIDs; QuoteId wraps the quote service's string id
    - Quote and OrderDraft are frozen: quote-derived values are copied, never referenced
    - QUOTE_LOCKED is the only status produced by order creation
    - Amounts are Decimal end to end (never float)

Design Decisions:
    - NewType over dataclass wrappers for ids: zero runtime cost
    - str Enums: serialize to JSON and store in String columns without custom encoders
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

OrderId = NewType("OrderId", UUID)
UserId = NewType("UserId", UUID)
QuoteId = NewType("QuoteId", str)


# ─── Enums ───────────────────────────────────────────────────────

class OrderType(str, Enum):
    """Order direction. Only fiat → crypto purchases exist today."""
    BUY = "buy"


class OrderStatus(str, Enum):
    """Order lifecycle states — maps to DB `status` column.

    Creation only ever produces QUOTE_LOCKED. Every other state is written
    by the payment webhook subsystem.
    """
    QUOTE_LOCKED = "QUOTE_LOCKED"
    PAYMENT_PENDING = "PAYMENT_PENDING"
    PAID = "PAID"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    EXPIRED = "EXPIRED"


INITIAL_ORDER_STATUS = OrderStatus.QUOTE_LOCKED


# ─── Value Objects ───────────────────────────────────────────────

@dataclass(frozen=True)
class Quote:
    """Time-bounded price snapshot produced by the pricing service."""
    id: QuoteId
    base: str
    asset: str
    amount: Decimal
    crypto_amount: Decimal
    exchange_rate: Decimal
    fee: Decimal
    expires_at: datetime | None = None


@dataclass(frozen=True)
class OrderDraft:
    """Everything needed to insert an order, except its number."""
    id: OrderId
    user_id: UserId
    quote_id: QuoteId
    type: OrderType
    base: str
    asset: str
    fiat_amount: Decimal
    crypto_amount: Decimal
    exchange_rate: Decimal
    fee: Decimal
    status: OrderStatus = INITIAL_ORDER_STATUS

    @classmethod
    def from_quote(
        cls, order_id: OrderId, user_id: UserId, quote: Quote,
    ) -> "OrderDraft":
        """Freeze the quote's values into a new draft."""
        return cls(
            id=order_id,
            user_id=user_id,
            quote_id=quote.id,
            type=OrderType.BUY,
            base=quote.base,
            asset=quote.asset,
            fiat_amount=Decimal(str(quote.amount)),
            crypto_amount=Decimal(str(quote.crypto_amount)),
            exchange_rate=Decimal(str(quote.exchange_rate)),
            fee=Decimal(str(quote.fee)),
        )


@dataclass(frozen=True)
class OrderReceipt:
    """Result of a successful order creation."""
    id: OrderId
    order_number: int
    status: OrderStatus

    @property
    def reference(self) -> str:
        return format_reference(self.order_number)


def format_reference(order_number: int) -> str:
    """User-facing reference — always the decimal order number."""
    return str(order_number)
