from __future__ import annotations

from decimal import Decimal

import pytest

from commerce.core.errors import ValidationError
from commerce.domain.money import (
    STANDARD_SHIPPING,
    apply_totals,
    compute_totals,
    raw_subtotal,
    require_places,
    round_money,
    to_decimal,
)
from commerce.domain.orders.models import Address, Order, OrderLineItem


def _line(qty: int, price: str, discount: int = 0) -> OrderLineItem:
    return OrderLineItem(product_id="sku", quantity=qty, unit_price=Decimal(price), discount=discount)


def test_mixed_discount_order_totals():
    totals = compute_totals([_line(2, "25.00"), _line(1, "50.00", discount=10)])

    assert totals.subtotal == Decimal("95.00")
    assert totals.tax == Decimal("7.60")
    assert totals.shipping == Decimal("9.99")
    assert totals.total == Decimal("112.59")


def test_free_shipping_at_threshold():
    totals = compute_totals([_line(5, "25.00")])

    assert totals.subtotal == Decimal("125.00")
    assert totals.shipping == Decimal("0.00")
    assert totals.total == Decimal("135.00")

    exactly = compute_totals([_line(4, "25.00")])
    assert exactly.subtotal == Decimal("100.00")
    assert exactly.shipping == Decimal("0.00")


def test_just_below_threshold_pays_standard_shipping():
    totals = compute_totals([_line(1, "99.99")])
    assert totals.shipping == STANDARD_SHIPPING
    assert totals.total == Decimal("117.98")


def test_round_half_away_from_zero():
    assert round_money(Decimal("0.005")) == Decimal("0.01")
    assert round_money(Decimal("2.675")) == Decimal("2.68")
    assert round_money(Decimal("-0.005")) == Decimal("-0.01")
    assert round_money(Decimal("1.004")) == Decimal("1.00")


def test_subtotal_kept_unrounded_until_the_end():
    # Rounding each line first would give 0.00 + 0.00.
    lines = [_line(1, "0.004"), _line(1, "0.004")]
    assert raw_subtotal(lines) == Decimal("0.008")

    totals = compute_totals(lines)
    assert totals.subtotal == Decimal("0.01")
    assert totals.tax == Decimal("0.00")
    assert totals.total == Decimal("10.00")


@pytest.mark.parametrize(
    "lines",
    [
        [("1", "0.01", 0)],
        [("3", "19.99", 15), ("2", "4.45", 0)],
        [("7", "13.37", 33), ("1", "0.99", 100), ("10", "9.95", 5)],
        [("1", "333.333", 0)],
    ],
)
def test_total_equals_sum_of_rounded_parts(lines):
    totals = compute_totals([_line(int(q), p, d) for q, p, d in lines])

    assert totals.total == totals.subtotal + totals.tax + totals.shipping
    assert (totals.shipping == Decimal("0.00")) == (totals.subtotal >= Decimal("100.00"))
    for value in (totals.subtotal, totals.tax, totals.shipping, totals.total):
        assert value.as_tuple().exponent == -2


def test_full_discount_line_contributes_nothing():
    assert _line(4, "12.50", discount=100).line_total == Decimal(0)


def test_apply_totals_is_idempotent():
    order = Order(
        user_id="user-1",
        shipping_address=Address(street="1 Main St", city="Oslo", state="OS", postal_code="01500", country="NO"),
        items=[_line(3, "19.99", 15), _line(2, "4.45")],
    )
    first = apply_totals(order)
    second = apply_totals(order)

    assert first == second
    assert order.total == first.total


def test_threshold_compares_rounded_subtotal():
    totals = compute_totals([_line(1, "99.995")])
    assert totals.subtotal == Decimal("100.00")
    assert totals.shipping == Decimal("0.00")
    assert totals.total == Decimal("108.00")


@pytest.mark.parametrize("value,places", [("25.500", 2), ("100", 2), ("1E+3", 0), ("0.1235", 4), ("0", 2)])
def test_require_places_ignores_trailing_zeros(value, places):
    assert require_places(Decimal(value), places, "amount") == Decimal(value)


@pytest.mark.parametrize("value,places", [("0.015", 2), ("0.12345", 4), ("1.5", 0)])
def test_require_places_rejects_extra_digits(value, places):
    with pytest.raises(ValidationError, match=f"at most {places} decimal places"):
        require_places(Decimal(value), places, "amount")


def test_to_decimal_parses_and_rejects():
    assert to_decimal("1.10", "price") == Decimal("1.10")
    assert to_decimal(3, "price") == Decimal(3)
    with pytest.raises(ValidationError, match="price is required"):
        to_decimal(None, "price")
    with pytest.raises(ValidationError, match="not a decimal"):
        to_decimal("abc", "price")
    with pytest.raises(ValidationError, match="must be finite"):
        to_decimal(Decimal("-Infinity"), "price")
