"""Order Workflow — turns a quote into a numbered order, and serves owned orders back.

Invariants:
    - Missing quote_id fails before ANY side effect (no identity upsert, no counter advance)
    - Quote validation and fetch happen outside the order transaction
    - QuoteExpired (validate_quote false) and QuoteNotFound (fetch after validation
      came back empty) stay distinct
    - The transaction covers exactly counter advance + insert: commit or full rollback
    - Every read checks ownership, anonymous callers included
    - Collaborator failures leave as taxonomy errors; only the store and resolver
      look at storage exceptions

Design Decisions:
    - Caller identity is an explicit optional argument on every operation
    - Quote values copied into an OrderDraft by value; the order never holds the Quote
"""

import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from fiatramp.core.domain_types import (
    OrderDraft, OrderId, OrderReceipt, OrderStatus, UserId,
)
from fiatramp.core.errors import (
    AccessDeniedError, ErrorContext, FiatRampError, InvalidRequestError,
    OrderNotFoundError, PersistenceError, QuoteExpiredError, QuoteNotFoundError,
)
from fiatramp.core.repository_protocols import QuoteService
from fiatramp.models.order import Order
from fiatramp.services.identity_resolver import AnonymousIdentityResolver
from fiatramp.services.order_store import OrderStore

logger = logging.getLogger(__name__)


class OrderWorkflow:
    """Creates orders from quotes and reads them back for their owner."""

    def __init__(
        self,
        db: AsyncSession,
        quotes: QuoteService,
        identities: AnonymousIdentityResolver,
    ):
        self.db = db
        self.quotes = quotes
        self.identities = identities
        self.store = OrderStore(db)

    async def create_order(
        self, quote_id: str | None, caller_id: uuid.UUID | None = None,
    ) -> OrderReceipt:
        """Lock a quote into a new order owned by the acting identity."""
        if not quote_id or not quote_id.strip():
            raise InvalidRequestError("quote_id is required", "quote_id")

        user_id = await self.identities.resolve_caller(caller_id)

        if not await self._validate_quote(quote_id):
            raise QuoteExpiredError(quote_id)
        quote = await self._fetch_quote(quote_id)
        if quote is None:
            raise QuoteNotFoundError(quote_id)

        draft = OrderDraft.from_quote(OrderId(uuid.uuid4()), user_id, quote)
        order = await self._persist(draft)

        logger.info(
            "Order created",
            extra={
                "order_id": order.id, "order_number": order.order_number,
                "quote_id": quote_id, "user_id": user_id,
            },
        )
        return OrderReceipt(
            id=OrderId(order.id),
            order_number=order.order_number,
            status=OrderStatus(order.status),
        )

    async def get_order(
        self, order_id: uuid.UUID, caller_id: uuid.UUID | None = None,
    ) -> Order:
        """Fetch one order; the acting identity must own it."""
        user_id = await self.identities.resolve_caller(caller_id)
        order = await self.store.find_by_id(order_id)
        if order is None:
            raise OrderNotFoundError(str(order_id))
        if order.user_id != user_id:
            logger.warning(
                "Order access denied",
                extra={"order_id": order_id, "user_id": user_id},
            )
            raise AccessDeniedError()
        return order

    async def list_user_orders(
        self, caller_id: uuid.UUID | None = None,
    ) -> list[Order]:
        """All orders owned by the acting identity, newest first."""
        user_id = await self.identities.resolve_caller(caller_id)
        return await self.store.find_by_user_id(user_id)

    # ─── Helpers ─────────────────────────────────────────────────

    async def _validate_quote(self, quote_id: str) -> bool:
        try:
            return await self.quotes.validate_quote(quote_id)
        except Exception as e:
            logger.error(
                f"Quote validation failed: {e}",
                extra={"quote_id": quote_id}, exc_info=True,
            )
            raise QuoteExpiredError(quote_id) from e

    async def _fetch_quote(self, quote_id: str):
        try:
            return await self.quotes.get_quote(quote_id)
        except Exception as e:
            logger.error(
                f"Quote fetch failed: {e}",
                extra={"quote_id": quote_id}, exc_info=True,
            )
            raise QuoteNotFoundError(quote_id) from e

    async def _persist(self, draft: OrderDraft) -> Order:
        ctx = ErrorContext(order_id=str(draft.id), quote_id=draft.quote_id)
        try:
            order = await self.store.create(draft)
            await self.db.commit()
        except Exception as e:
            await self._rollback(draft)
            logger.error(
                f"Order transaction rolled back: {e}",
                extra={"order_id": draft.id, "quote_id": draft.quote_id},
            )
            if isinstance(e, FiatRampError):
                e.context.order_id = ctx.order_id
                e.context.quote_id = ctx.quote_id
                raise
            raise PersistenceError("Failed to create order", "commit", ctx) from e
        return order

    async def _rollback(self, draft: OrderDraft) -> None:
        try:
            await self.db.rollback()
        except Exception as e:
            # Connection already gone; the server discards the transaction.
            logger.error(
                f"Rollback failed: {e}", extra={"order_id": draft.id},
            )
