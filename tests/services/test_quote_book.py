"""Quote Book — validity window, lookup, withdrawal, purge."""

from datetime import timedelta
from decimal import Decimal

from fiatramp.services.quote_book import InMemoryQuoteBook
from tests.factories import make_quote


async def test_published_quote_is_valid_until_ttl(clock):
    book = InMemoryQuoteBook(ttl_seconds=30, clock=clock)
    stored = book.publish(make_quote("Q1"))

    assert stored.expires_at == clock.now + timedelta(seconds=30)
    assert await book.validate_quote("Q1")

    clock.advance(29)
    assert await book.validate_quote("Q1")

    clock.advance(1)
    assert not await book.validate_quote("Q1")


async def test_explicit_expiry_is_kept(clock):
    book = InMemoryQuoteBook(ttl_seconds=30, clock=clock)
    expires = clock.now + timedelta(seconds=5)
    book.publish(make_quote("Q1", expires_at=expires))

    clock.advance(6)
    assert not await book.validate_quote("Q1")


async def test_unknown_quote_is_invalid_and_absent(clock):
    book = InMemoryQuoteBook(clock=clock)
    assert not await book.validate_quote("nope")
    assert await book.get_quote("nope") is None


async def test_get_quote_returns_expired_quote(clock):
    book = InMemoryQuoteBook(ttl_seconds=1, clock=clock)
    book.publish(make_quote("Q1"))
    clock.advance(10)

    quote = await book.get_quote("Q1")
    assert quote is not None
    assert quote.amount == Decimal("100")


async def test_withdraw_removes_quote(clock):
    book = InMemoryQuoteBook(clock=clock)
    book.publish(make_quote("Q1"))
    book.withdraw("Q1")
    book.withdraw("Q1")

    assert await book.get_quote("Q1") is None


async def test_purge_expired_drops_only_lapsed(clock):
    book = InMemoryQuoteBook(ttl_seconds=10, clock=clock)
    book.publish(make_quote("old"))
    clock.advance(11)
    book.publish(make_quote("fresh"))

    assert book.purge_expired() == 1
    assert await book.get_quote("old") is None
    assert await book.get_quote("fresh") is not None
