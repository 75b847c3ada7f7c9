"""Status transition tables for orders and payments.

Each table is a flat tuple of ``(from, to)`` edges; a status absent from the
left-hand side has no successors. Self-edges never appear.
"""

from __future__ import annotations

from commerce.domain.orders.models import OrderStatus
from commerce.domain.payments.models import PaymentStatus

ORDER_TRANSITIONS: tuple[tuple[OrderStatus, OrderStatus], ...] = (
    (OrderStatus.DRAFT, OrderStatus.PENDING),
    (OrderStatus.DRAFT, OrderStatus.CANCELLED),
    (OrderStatus.PENDING, OrderStatus.CONFIRMED),
    (OrderStatus.PENDING, OrderStatus.CANCELLED),
    (OrderStatus.CONFIRMED, OrderStatus.PROCESSING),
    (OrderStatus.CONFIRMED, OrderStatus.CANCELLED),
    (OrderStatus.PROCESSING, OrderStatus.SHIPPED),
    (OrderStatus.PROCESSING, OrderStatus.CANCELLED),
    (OrderStatus.SHIPPED, OrderStatus.DELIVERED),
    (OrderStatus.DELIVERED, OrderStatus.REFUNDED),
)

PAYMENT_TRANSITIONS: tuple[tuple[PaymentStatus, PaymentStatus], ...] = (
    (PaymentStatus.PENDING, PaymentStatus.PROCESSING),
    (PaymentStatus.PENDING, PaymentStatus.CANCELLED),
    (PaymentStatus.PROCESSING, PaymentStatus.COMPLETED),
    (PaymentStatus.PROCESSING, PaymentStatus.FAILED),
    (PaymentStatus.COMPLETED, PaymentStatus.REFUNDED),
)


def allowed_order_successors(status: OrderStatus) -> frozenset[OrderStatus]:
    return frozenset(target for source, target in ORDER_TRANSITIONS if source == status)


def can_transition_order(current: OrderStatus, target: OrderStatus) -> bool:
    return (current, target) in ORDER_TRANSITIONS


def is_terminal_order_status(status: OrderStatus) -> bool:
    return not allowed_order_successors(status)


def allowed_payment_successors(status: PaymentStatus) -> frozenset[PaymentStatus]:
    return frozenset(target for source, target in PAYMENT_TRANSITIONS if source == status)


def can_transition_payment(current: PaymentStatus, target: PaymentStatus) -> bool:
    return (current, target) in PAYMENT_TRANSITIONS
