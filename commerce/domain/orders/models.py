from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

ADDRESS_MIN_LENGTHS: dict[str, int] = {
    "street": 5,
    "city": 2,
    "state": 2,
    "postal_code": 5,
    "country": 2,
}


def _new_id() -> str:
    return str(uuid4())


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class OrderStatus(str, Enum):
    DRAFT = "DRAFT"
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"
    REFUNDED = "REFUNDED"


class Address(BaseModel):
    model_config = ConfigDict(frozen=True)

    street: str | None = None
    city: str | None = None
    state: str | None = None
    postal_code: str | None = None
    country: str | None = None

    def is_valid(self) -> bool:
        for name, min_length in ADDRESS_MIN_LENGTHS.items():
            value = getattr(self, name)
            if value is None or len(value) < min_length:
                return False
        return True


class OrderItemRequest(BaseModel):
    product_id: str
    quantity: int
    unit_price: Decimal = Field(description="price per unit, fixed-point")
    discount: int = Field(default=0, description="whole percent, 0-100")
    product_name: str | None = None


class CreateOrderRequest(BaseModel):
    user_id: str
    items: list[OrderItemRequest] = Field(default_factory=list)
    shipping_address: Address | None = None
    notes: str | None = None


@dataclass
class OrderLineItem:
    product_id: str
    quantity: int
    unit_price: Decimal
    discount: int = 0
    product_name: str | None = None
    id: str = field(default_factory=_new_id)

    @property
    def line_total(self) -> Decimal:
        multiplier = Decimal(1) - Decimal(self.discount) / Decimal(100)
        return self.unit_price * Decimal(self.quantity) * multiplier


@dataclass(frozen=True)
class OrderTotals:
    subtotal: Decimal
    tax: Decimal
    shipping: Decimal
    total: Decimal


ZERO_TOTALS = OrderTotals(
    subtotal=Decimal("0.00"),
    tax=Decimal("0.00"),
    shipping=Decimal("0.00"),
    total=Decimal("0.00"),
)


@dataclass
class Order:
    """Order aggregate.

    The monetary fields are derived from ``items`` and are exposed read-only;
    only the money engine writes them, through ``_set_totals``.
    """

    user_id: str
    shipping_address: Address
    items: list[OrderLineItem] = field(default_factory=list)
    notes: str | None = None
    status: OrderStatus = OrderStatus.DRAFT
    id: str = field(default_factory=_new_id)
    created_at: datetime = field(default_factory=_utc_now)
    updated_at: datetime = field(default_factory=_utc_now)
    _totals: OrderTotals = field(init=False, default=ZERO_TOTALS, repr=False)

    @property
    def subtotal(self) -> Decimal:
        return self._totals.subtotal

    @property
    def tax(self) -> Decimal:
        return self._totals.tax

    @property
    def shipping(self) -> Decimal:
        return self._totals.shipping

    @property
    def total(self) -> Decimal:
        return self._totals.total

    @property
    def totals(self) -> OrderTotals:
        return self._totals

    def _set_totals(self, totals: OrderTotals) -> None:
        self._totals = totals

    def find_item(self, item_id: str) -> OrderLineItem | None:
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    def touch(self) -> None:
        self.updated_at = _utc_now()
