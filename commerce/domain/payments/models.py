from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, Field


def _new_id() -> str:
    return str(uuid4())


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_transaction_id() -> str:
    return "TXN-" + uuid4().hex[:8].upper()


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"
    CANCELLED = "CANCELLED"


class PaymentMethod(str, Enum):
    CREDIT_CARD = "CREDIT_CARD"
    DEBIT_CARD = "DEBIT_CARD"
    BANK_TRANSFER = "BANK_TRANSFER"
    WALLET = "WALLET"
    CRYPTO = "CRYPTO"

    @property
    def is_card(self) -> bool:
        return self in CARD_METHODS


CARD_METHODS = frozenset({PaymentMethod.CREDIT_CARD, PaymentMethod.DEBIT_CARD})


class Currency(str, Enum):
    USD = "USD"
    EUR = "EUR"
    GBP = "GBP"
    CAD = "CAD"
    AUD = "AUD"
    JPY = "JPY"


def parse_currency(code: str | Currency | None) -> Currency | None:
    if isinstance(code, Currency):
        return code
    if not code:
        return None
    try:
        return Currency(code.strip().upper())
    except ValueError:
        return None


class PaymentRequest(BaseModel):
    order_id: str
    user_id: str
    amount: Decimal
    currency: str = Field(description="ISO 4217 code; checked against Currency")
    method: PaymentMethod

    card_number: str | None = None
    card_expiry: str | None = Field(default=None, description="MM/YY")
    card_cvv: str | None = None
    card_holder_name: str | None = None


@dataclass
class Payment:
    order_id: str
    user_id: str
    amount: Decimal
    currency: Currency
    method: PaymentMethod
    status: PaymentStatus = PaymentStatus.PENDING
    transaction_id: str = field(default_factory=new_transaction_id)
    card_last_four: str | None = None
    error_message: str | None = None
    refund_amount: Decimal | None = None
    refund_reason: str | None = None
    id: str = field(default_factory=_new_id)
    created_at: datetime = field(default_factory=_utc_now)
    updated_at: datetime = field(default_factory=_utc_now)

    def touch(self) -> None:
        self.updated_at = _utc_now()
