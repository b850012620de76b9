"""Domain Types — verifies enums, reference formatting, and quote freezing.

Tests:
    - OrderStatus starts at QUOTE_LOCKED; OrderType only knows buy
    - reference is the decimal order number
    - OrderDraft.from_quote copies values, detached from the Quote
"""

import dataclasses
from decimal import Decimal
from uuid import uuid4

import pytest

from fiatramp.core.domain_types import (
    INITIAL_ORDER_STATUS, OrderDraft, OrderId, OrderReceipt, OrderStatus,
    OrderType, UserId, format_reference,
)
from tests.factories import make_quote


def test_initial_status_is_quote_locked():
    assert INITIAL_ORDER_STATUS is OrderStatus.QUOTE_LOCKED
    assert OrderStatus.QUOTE_LOCKED.value == "QUOTE_LOCKED"


def test_order_type_has_only_buy():
    assert [t.value for t in OrderType] == ["buy"]


def test_reference_is_decimal_order_number():
    assert format_reference(42) == "42"
    assert format_reference(1234567890) == "1234567890"


def test_receipt_reference_matches_order_number():
    receipt = OrderReceipt(
        id=OrderId(uuid4()), order_number=17, status=OrderStatus.QUOTE_LOCKED,
    )
    assert receipt.reference == "17"


def test_draft_copies_quote_fields():
    quote = make_quote("Q1")
    draft = OrderDraft.from_quote(OrderId(uuid4()), UserId(uuid4()), quote)

    assert draft.quote_id == "Q1"
    assert draft.type is OrderType.BUY
    assert draft.base == "EUR"
    assert draft.asset == "BTC"
    assert draft.fiat_amount == Decimal("100")
    assert draft.crypto_amount == Decimal("0.002")
    assert draft.exchange_rate == Decimal("50000")
    assert draft.fee == Decimal("1")
    assert draft.status is OrderStatus.QUOTE_LOCKED


def test_draft_unaffected_by_later_quote_version():
    quote = make_quote("Q1")
    draft = OrderDraft.from_quote(OrderId(uuid4()), UserId(uuid4()), quote)

    repriced = dataclasses.replace(quote, amount=Decimal("250"), fee=Decimal("3"))

    assert repriced.amount == Decimal("250")
    assert draft.fiat_amount == Decimal("100")
    assert draft.fee == Decimal("1")


def test_draft_is_frozen():
    draft = OrderDraft.from_quote(OrderId(uuid4()), UserId(uuid4()), make_quote())
    with pytest.raises(dataclasses.FrozenInstanceError):
        draft.fiat_amount = Decimal("1")
