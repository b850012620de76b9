"""Order Schemas — request body and response projections for /orders.

Invariants:
    - quote_id is optional at the schema level; absence is reported by the
      workflow as INVALID_REQUEST, not as a Pydantic validation error
    - reference is always str(order_number)
    - id and order_id carry the same value (clients read either)
    - Amounts serialize as decimal strings
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field

from fiatramp.core.domain_types import OrderReceipt
from fiatramp.models.order import Order


class OrderCreate(BaseModel):
    """POST /orders body."""
    quote_id: str | None = Field(None, max_length=64)


class OrderCreatedResponse(BaseModel):
    id: UUID
    order_id: UUID
    order_number: int
    reference: str
    status: str

    @classmethod
    def from_receipt(cls, receipt: OrderReceipt) -> "OrderCreatedResponse":
        return cls(
            id=receipt.id,
            order_id=receipt.id,
            order_number=receipt.order_number,
            reference=receipt.reference,
            status=receipt.status.value,
        )


class OrderResponse(BaseModel):
    """Full order projection."""
    id: UUID
    order_id: UUID
    order_number: int
    reference: str
    quote_id: str
    type: str
    base: str
    asset: str
    fiat_amount: Decimal
    amount: Decimal
    crypto_amount: Decimal
    exchange_rate: Decimal
    fee: Decimal
    status: str
    payment_id: str | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_order(cls, order: Order) -> "OrderResponse":
        return cls(
            id=order.id,
            order_id=order.id,
            order_number=order.order_number,
            reference=order.reference,
            quote_id=order.quote_id,
            type=order.type,
            base=order.base,
            asset=order.asset,
            fiat_amount=order.fiat_amount,
            amount=order.fiat_amount,
            crypto_amount=order.crypto_amount,
            exchange_rate=order.exchange_rate,
            fee=order.fee,
            status=order.status,
            payment_id=order.payment_id,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )


class OrderListResponse(BaseModel):
    orders: list[OrderResponse]
