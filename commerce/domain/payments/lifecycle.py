from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal

from commerce.core.errors import NotFoundError, StateError, ValidationError
from commerce.domain.cards import card_last_four, validate_card_details
from commerce.domain.money import AMOUNT_PLACES, require_places, to_decimal
from commerce.domain.payments.models import (
    Payment,
    PaymentRequest,
    PaymentStatus,
    parse_currency,
)
from commerce.domain.payments.outcomes import PaymentOutcomeSource
from commerce.domain.transitions import can_transition_payment
from commerce.persistence.repositories import PaymentRepository

logger = logging.getLogger(__name__)

MIN_AMOUNT = Decimal("0.01")
MAX_AMOUNT = Decimal("1000000")
MIN_REFUND_REASON_LENGTH = 10
FAILURE_MESSAGE = "payment processing failed"


class PaymentLifecycle:
    """Validates, resolves, refunds and cancels payments.

    ``outcome_source`` decides whether a processed payment settles; pass a
    seeded or fixed source for reproducible behaviour. ``today`` pins the date
    used for card expiry checks.
    """

    def __init__(
        self,
        repository: PaymentRepository,
        outcome_source: PaymentOutcomeSource,
        today: date | None = None,
    ):
        self.repository = repository
        self.outcome_source = outcome_source
        self.today = today

    def process_payment(self, request: PaymentRequest) -> Payment:
        amount = to_decimal(request.amount, "amount")
        if amount < MIN_AMOUNT:
            raise ValidationError(f"amount must be at least {MIN_AMOUNT}, got {amount}")
        if amount > MAX_AMOUNT:
            raise ValidationError(f"amount cannot exceed {MAX_AMOUNT}, got {amount}")
        require_places(amount, AMOUNT_PLACES, "amount")

        currency = parse_currency(request.currency)
        if currency is None:
            raise ValidationError(f"unsupported currency: {request.currency}")

        if request.method.is_card:
            validate_card_details(request, today=self.today)

        payment = Payment(
            order_id=request.order_id,
            user_id=request.user_id,
            amount=amount,
            currency=currency,
            method=request.method,
            status=PaymentStatus.PROCESSING,
        )
        if request.method.is_card:
            payment.card_last_four = card_last_four(request.card_number)

        if self.outcome_source.succeeds(payment):
            self._move(payment, PaymentStatus.COMPLETED)
        else:
            self._move(payment, PaymentStatus.FAILED)
            payment.error_message = FAILURE_MESSAGE

        saved = self.repository.save(payment)
        logger.info(
            "payment processed: payment_id=%s order_id=%s transaction_id=%s method=%s amount=%s %s status=%s",
            saved.id,
            saved.order_id,
            saved.transaction_id,
            saved.method.value,
            saved.amount,
            saved.currency.value,
            saved.status.value,
        )
        return saved

    def refund_payment(self, payment: Payment, refund_amount: Decimal, reason: str | None) -> Payment:
        if payment.status != PaymentStatus.COMPLETED:
            raise StateError(f"can only refund completed payments, payment {payment.id} is {payment.status.value}")

        amount = to_decimal(refund_amount, "refund amount")
        if amount <= 0:
            raise ValidationError(f"refund amount must be positive, got {amount}")
        if amount > payment.amount:
            raise ValidationError(f"refund amount {amount} cannot exceed payment amount {payment.amount}")
        require_places(amount, AMOUNT_PLACES, "refund amount")

        if reason is None or len(reason.strip()) < MIN_REFUND_REASON_LENGTH:
            raise ValidationError(f"refund reason must be at least {MIN_REFUND_REASON_LENGTH} characters")

        self._move(payment, PaymentStatus.REFUNDED)
        payment.refund_amount = amount
        payment.refund_reason = reason.strip()
        saved = self.repository.save(payment)
        logger.info("payment refunded: payment_id=%s amount=%s", saved.id, amount)
        return saved

    def cancel_payment(self, payment: Payment) -> Payment:
        if payment.status != PaymentStatus.PENDING:
            raise StateError(f"can only cancel pending payments, payment {payment.id} is {payment.status.value}")

        self._move(payment, PaymentStatus.CANCELLED)
        saved = self.repository.save(payment)
        logger.info("payment cancelled: payment_id=%s", saved.id)
        return saved

    def get_payment(self, payment_id: str) -> Payment | None:
        return self.repository.find_by_id(payment_id)

    def require_payment(self, payment_id: str) -> Payment:
        payment = self.repository.find_by_id(payment_id)
        if payment is None:
            raise NotFoundError(payment_id)
        return payment

    def payments_for_user(self, user_id: str) -> list[Payment]:
        return self.repository.find_by_user(user_id)

    def payments_for_order(self, order_id: str) -> list[Payment]:
        return self.repository.find_by_order(order_id)

    def payments_with_status(self, status: PaymentStatus) -> list[Payment]:
        return self.repository.find_by_status(PaymentStatus(status))

    def payments_for_user_with_status(self, user_id: str, status: PaymentStatus) -> list[Payment]:
        return self.repository.find_by_user_and_status(user_id, PaymentStatus(status))

    def refund(self, payment_id: str, refund_amount: Decimal, reason: str | None) -> Payment:
        return self.refund_payment(self.require_payment(payment_id), refund_amount, reason)

    def cancel(self, payment_id: str) -> Payment:
        return self.cancel_payment(self.require_payment(payment_id))

    @staticmethod
    def _move(payment: Payment, target: PaymentStatus) -> None:
        if not can_transition_payment(payment.status, target):
            raise StateError(f"cannot transition payment from {payment.status.value} to {target.value}")
        payment.status = target
        payment.touch()
