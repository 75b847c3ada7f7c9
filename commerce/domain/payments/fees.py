from __future__ import annotations

from decimal import Decimal

from commerce.domain.money import round_money
from commerce.domain.payments.models import PaymentMethod

PROCESSING_FEE_RATES: dict[PaymentMethod, Decimal] = {
    PaymentMethod.CREDIT_CARD: Decimal("0.029"),
    PaymentMethod.DEBIT_CARD: Decimal("0.015"),
    PaymentMethod.BANK_TRANSFER: Decimal("0.005"),
    PaymentMethod.WALLET: Decimal("0.02"),
    PaymentMethod.CRYPTO: Decimal("0.01"),
}


def calculate_processing_fee(amount: Decimal, method: PaymentMethod) -> Decimal:
    rate = PROCESSING_FEE_RATES[PaymentMethod(method)]
    return round_money(Decimal(amount) * rate)
