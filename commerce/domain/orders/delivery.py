from __future__ import annotations

from datetime import date, timedelta

DEFAULT_SHIPPING_METHOD = "standard"
TRANSIT_DAYS: dict[str, int] = {
    "overnight": 1,
    "express": 2,
    DEFAULT_SHIPPING_METHOD: 5,
}


def transit_days(shipping_method: str | None) -> int:
    method = (shipping_method or DEFAULT_SHIPPING_METHOD).strip().lower()
    return TRANSIT_DAYS.get(method, TRANSIT_DAYS[DEFAULT_SHIPPING_METHOD])


def estimated_delivery(shipping_method: str | None, today: date | None = None) -> date:
    delivery = (today or date.today()) + timedelta(days=transit_days(shipping_method))
    # isoweekday: Saturday=6, Sunday=7
    while delivery.isoweekday() > 5:
        delivery += timedelta(days=1)
    return delivery
