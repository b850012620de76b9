"""Quote Book — in-process QuoteService adapter holding issued quotes until they lapse.

Invariants:
    - A quote is valid only while present and not past expires_at
    - get_quote returns the stored frozen Quote, or None; expiry is validate_quote's concern
    - Quotes without expires_at get one at publish time (now + ttl)

Design Decisions:
    - Pricing computation lives upstream; this book only stores what it is handed
    - Clock injectable for tests
"""

import logging
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Callable

from fiatramp.core.domain_types import Quote

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryQuoteBook:
    """Implements QuoteService over a dict of published quotes."""

    def __init__(self, ttl_seconds: int = 60, clock: Clock = _utcnow):
        self._ttl = timedelta(seconds=ttl_seconds)
        self._clock = clock
        self._quotes: dict[str, Quote] = {}

    def publish(self, quote: Quote) -> Quote:
        """Store a quote from the pricing layer and return the stored copy."""
        if quote.expires_at is None:
            quote = replace(quote, expires_at=self._clock() + self._ttl)
        self._quotes[quote.id] = quote
        logger.debug("Quote published", extra={"quote_id": quote.id})
        return quote

    def withdraw(self, quote_id: str) -> None:
        self._quotes.pop(quote_id, None)

    async def validate_quote(self, quote_id: str) -> bool:
        quote = self._quotes.get(quote_id)
        if quote is None:
            return False
        return quote.expires_at is None or self._clock() < quote.expires_at

    async def get_quote(self, quote_id: str) -> Quote | None:
        return self._quotes.get(quote_id)

    def purge_expired(self) -> int:
        """Drop lapsed quotes. Returns how many were removed."""
        now = self._clock()
        expired = [
            qid for qid, q in self._quotes.items()
            if q.expires_at is not None and q.expires_at <= now
        ]
        for qid in expired:
            del self._quotes[qid]
        return len(expired)
