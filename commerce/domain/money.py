from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Iterable

from commerce.core.errors import ValidationError
from commerce.domain.orders.models import Order, OrderLineItem, OrderTotals

TAX_RATE = Decimal("0.08")
FREE_SHIPPING_THRESHOLD = Decimal("100.00")
STANDARD_SHIPPING = Decimal("9.99")
FREE_SHIPPING = Decimal("0.00")
CENT = Decimal("0.01")

# Widest scale the storage columns hold without rounding.
PRICE_PLACES = 4
AMOUNT_PLACES = 2


def to_decimal(value, field_name: str) -> Decimal:
    if value is None:
        raise ValidationError(f"{field_name} is required")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except InvalidOperation as exc:
        raise ValidationError(f"{field_name} is not a decimal: {value!r}") from exc
    if not amount.is_finite():
        raise ValidationError(f"{field_name} must be finite, got {value!r}")
    return amount


def require_places(amount: Decimal, places: int, field_name: str) -> Decimal:
    """Reject values with more significant decimal places than ``places``.

    Trailing zeros do not count, so ``Decimal("25.500")`` passes with two places.
    """
    if -amount.normalize().as_tuple().exponent > places:
        raise ValidationError(f"{field_name} allows at most {places} decimal places, got {amount}")
    return amount


def round_money(value: Decimal) -> Decimal:
    # ROUND_HALF_UP in the decimal module rounds ties away from zero.
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def line_total(item: OrderLineItem) -> Decimal:
    return item.line_total


def raw_subtotal(items: Iterable[OrderLineItem]) -> Decimal:
    return sum((line_total(item) for item in items), Decimal(0))


def shipping_for(subtotal: Decimal) -> Decimal:
    if subtotal >= FREE_SHIPPING_THRESHOLD:
        return FREE_SHIPPING
    return STANDARD_SHIPPING


def compute_totals(items: Iterable[OrderLineItem]) -> OrderTotals:
    raw = raw_subtotal(items)
    subtotal = round_money(raw)
    tax = round_money(raw * TAX_RATE)
    shipping = shipping_for(subtotal)
    total = round_money(raw + tax + shipping)
    return OrderTotals(subtotal=subtotal, tax=tax, shipping=shipping, total=total)


def apply_totals(order: Order) -> OrderTotals:
    totals = compute_totals(order.items)
    order._set_totals(totals)
    return totals
