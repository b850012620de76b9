"""Test factories — reference quote and a controllable clock."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

from fiatramp.core.domain_types import Quote, QuoteId

ANONYMOUS_EMAIL = "anonymous@test.local"


class FakeClock:
    def __init__(self):
        self.now = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


def make_quote(quote_id: str = "Q1", **overrides) -> Quote:
    """Q1 from the reference scenario: 100 EUR → 0.002 BTC at 50000, fee 1."""
    fields = dict(
        id=QuoteId(quote_id),
        base="EUR",
        asset="BTC",
        amount=Decimal("100"),
        crypto_amount=Decimal("0.002"),
        exchange_rate=Decimal("50000"),
        fee=Decimal("1"),
    )
    fields.update(overrides)
    return Quote(**fields)
