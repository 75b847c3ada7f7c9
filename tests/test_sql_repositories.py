from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from commerce.core.errors import ValidationError
from commerce.domain.orders.lifecycle import OrderLifecycle
from commerce.domain.orders.models import OrderItemRequest, OrderStatus
from commerce.domain.payments.lifecycle import PaymentLifecycle
from commerce.domain.payments.models import PaymentStatus
from commerce.domain.payments.outcomes import FixedOutcomeSource
from commerce.persistence.db import session_scope
from commerce.persistence.models import OrderItemModel, OrderModel
from commerce.persistence.repositories import SqlOrderRepository, SqlPaymentRepository


def test_order_round_trip_preserves_items_and_totals(session, items, address):
    lifecycle = OrderLifecycle(SqlOrderRepository(session))
    created = lifecycle.create_order("user-1", items, address, notes="gift wrap")

    loaded = SqlOrderRepository(session).find_by_id(created.id)
    assert loaded is not None
    assert [item.id for item in loaded.items] == [item.id for item in created.items]
    assert [item.discount for item in loaded.items] == [0, 10]
    assert loaded.shipping_address == address
    assert loaded.notes == "gift wrap"
    assert loaded.totals == created.totals
    assert loaded.total == Decimal("112.59")

    row = session.get(OrderModel, created.id)
    assert row.total == Decimal("112.59")
    assert row.shipping == Decimal("9.99")


def test_item_removal_deletes_row(session, items, address):
    repo = SqlOrderRepository(session)
    lifecycle = OrderLifecycle(repo)
    order = lifecycle.create_order("user-1", items, address)
    lifecycle.remove_item_from(order.id, order.items[0].id)

    loaded = repo.find_by_id(order.id)
    assert [item.product_id for item in loaded.items] == ["sku-kettle"]
    assert session.query(OrderItemModel).filter_by(order_id=order.id).count() == 1


def test_status_survives_commit(configure_test_engine, items, address):
    with session_scope() as session:
        lifecycle = OrderLifecycle(SqlOrderRepository(session))
        order = lifecycle.create_order("user-1", items, address)
        lifecycle.transition(order, OrderStatus.PENDING)
        order_id = order.id

    with session_scope() as session:
        repo = SqlOrderRepository(session)
        loaded = repo.find_by_id(order_id)
        assert loaded.status == OrderStatus.PENDING
        assert loaded.created_at.tzinfo is not None
        assert [o.id for o in repo.find_by_status(OrderStatus.PENDING)] == [order_id]
        assert [o.id for o in repo.find_by_user("user-1")] == [order_id]
        assert repo.find_by_user("user-2") == []


def test_payment_round_trip(session, card_request):
    repo = SqlPaymentRepository(session)
    lifecycle = PaymentLifecycle(repo, FixedOutcomeSource(True), today=date(2026, 1, 15))
    payment = lifecycle.process_payment(card_request)
    lifecycle.refund(payment.id, Decimal("25.50"), "damaged in transit")

    loaded = repo.find_by_id(payment.id)
    assert loaded.status == PaymentStatus.REFUNDED
    assert loaded.amount == Decimal("100.00")
    assert loaded.refund_amount == Decimal("25.50")
    assert loaded.card_last_four == "1111"
    assert loaded.transaction_id == payment.transaction_id
    assert [p.id for p in repo.find_by_order("order-1")] == [payment.id]
    assert [p.id for p in repo.find_by_user("user-1")] == [payment.id]
    assert repo.find_by_status(PaymentStatus.COMPLETED) == []


def test_four_place_price_round_trips_exactly(session, address):
    repo = SqlOrderRepository(session)
    created = OrderLifecycle(repo).create_order(
        "user-1",
        [OrderItemRequest(product_id="sku-bolt", quantity=1000, unit_price=Decimal("0.1235"))],
        address,
    )

    loaded = repo.find_by_id(created.id)
    assert loaded.items[0].unit_price == Decimal("0.1235")
    assert loaded.totals == created.totals
    assert loaded.subtotal == Decimal("123.50")


def test_price_wider_than_column_is_rejected(session, address):
    repo = SqlOrderRepository(session)
    with pytest.raises(ValidationError, match="at most 4 decimal places"):
        OrderLifecycle(repo).create_order(
            "user-1",
            [OrderItemRequest(product_id="sku-bolt", quantity=1000, unit_price=Decimal("0.12345"))],
            address,
        )
    assert session.query(OrderModel).count() == 0


def test_sub_cent_payment_amounts_are_rejected(session, card_request):
    repo = SqlPaymentRepository(session)
    lifecycle = PaymentLifecycle(repo, FixedOutcomeSource(True), today=date(2026, 1, 15))
    with pytest.raises(ValidationError, match="at most 2 decimal places"):
        lifecycle.process_payment(card_request.model_copy(update={"amount": Decimal("0.015")}))
    assert repo.find_by_user("user-1") == []

    payment = lifecycle.process_payment(card_request.model_copy(update={"amount": Decimal("19.990")}))
    with pytest.raises(ValidationError, match="at most 2 decimal places"):
        lifecycle.refund(payment.id, Decimal("1.005"), "damaged in transit")
    assert repo.find_by_id(payment.id).amount == payment.amount
    assert repo.find_by_id(payment.id).status == PaymentStatus.COMPLETED


def test_find_by_user_and_status(session, items, address, card_request):
    orders = SqlOrderRepository(session)
    lifecycle = OrderLifecycle(orders)
    pending = lifecycle.create_order("user-1", items, address)
    lifecycle.transition(pending, OrderStatus.PENDING)
    lifecycle.create_order("user-1", items, address)
    other = lifecycle.create_order("user-2", items, address)
    lifecycle.transition(other, OrderStatus.PENDING)

    assert [o.id for o in orders.find_by_user_and_status("user-1", OrderStatus.PENDING)] == [pending.id]
    assert orders.find_by_user_and_status("user-2", OrderStatus.DRAFT) == []

    payments = SqlPaymentRepository(session)
    payment_lifecycle = PaymentLifecycle(payments, FixedOutcomeSource(True), today=date(2026, 1, 15))
    completed = payment_lifecycle.process_payment(card_request)
    payment_lifecycle.process_payment(card_request.model_copy(update={"user_id": "user-2"}))

    assert [p.id for p in payments.find_by_user_and_status("user-1", PaymentStatus.COMPLETED)] == [completed.id]
    assert payments.find_by_user_and_status("user-1", PaymentStatus.REFUNDED) == []
