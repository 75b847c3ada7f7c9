"""Repository port for order and payment aggregates.

The lifecycles only ever talk to the ``OrderRepository`` / ``PaymentRepository``
protocols. Two adapters are provided: dict-backed stores for tests and
embedding, and SQLAlchemy stores bound to a session owned by the caller.
Neither adapter serializes concurrent writers to the same aggregate; callers
do that through their transaction boundary.
"""

from __future__ import annotations

import copy
from datetime import datetime, timezone
from decimal import Decimal
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from commerce.domain.money import apply_totals
from commerce.domain.orders.models import Address, Order, OrderLineItem, OrderStatus
from commerce.domain.payments.models import Currency, Payment, PaymentMethod, PaymentStatus
from commerce.persistence.models import OrderItemModel, OrderModel, PaymentModel


class OrderRepository(Protocol):
    def find_by_id(self, order_id: str) -> Order | None: ...

    def save(self, order: Order) -> Order: ...

    def find_by_user(self, user_id: str) -> list[Order]: ...

    def find_by_status(self, status: OrderStatus) -> list[Order]: ...

    def find_by_user_and_status(self, user_id: str, status: OrderStatus) -> list[Order]: ...


class PaymentRepository(Protocol):
    def find_by_id(self, payment_id: str) -> Payment | None: ...

    def save(self, payment: Payment) -> Payment: ...

    def find_by_user(self, user_id: str) -> list[Payment]: ...

    def find_by_status(self, status: PaymentStatus) -> list[Payment]: ...

    def find_by_user_and_status(self, user_id: str, status: PaymentStatus) -> list[Payment]: ...

    def find_by_order(self, order_id: str) -> list[Payment]: ...


class InMemoryOrderRepository:
    def __init__(self) -> None:
        self._rows: dict[str, Order] = {}

    def find_by_id(self, order_id: str) -> Order | None:
        row = self._rows.get(order_id)
        return copy.deepcopy(row) if row is not None else None

    def save(self, order: Order) -> Order:
        self._rows[order.id] = copy.deepcopy(order)
        return order

    def find_by_user(self, user_id: str) -> list[Order]:
        return [copy.deepcopy(row) for row in self._rows.values() if row.user_id == user_id]

    def find_by_status(self, status: OrderStatus) -> list[Order]:
        return [copy.deepcopy(row) for row in self._rows.values() if row.status == status]

    def find_by_user_and_status(self, user_id: str, status: OrderStatus) -> list[Order]:
        return [
            copy.deepcopy(row)
            for row in self._rows.values()
            if row.user_id == user_id and row.status == status
        ]

    def __len__(self) -> int:
        return len(self._rows)


class InMemoryPaymentRepository:
    def __init__(self) -> None:
        self._rows: dict[str, Payment] = {}

    def find_by_id(self, payment_id: str) -> Payment | None:
        row = self._rows.get(payment_id)
        return copy.deepcopy(row) if row is not None else None

    def save(self, payment: Payment) -> Payment:
        self._rows[payment.id] = copy.deepcopy(payment)
        return payment

    def find_by_user(self, user_id: str) -> list[Payment]:
        return [copy.deepcopy(row) for row in self._rows.values() if row.user_id == user_id]

    def find_by_status(self, status: PaymentStatus) -> list[Payment]:
        return [copy.deepcopy(row) for row in self._rows.values() if row.status == status]

    def find_by_user_and_status(self, user_id: str, status: PaymentStatus) -> list[Payment]:
        return [
            copy.deepcopy(row)
            for row in self._rows.values()
            if row.user_id == user_id and row.status == status
        ]

    def find_by_order(self, order_id: str) -> list[Payment]:
        return [copy.deepcopy(row) for row in self._rows.values() if row.order_id == order_id]

    def __len__(self) -> int:
        return len(self._rows)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _order_from_row(row: OrderModel) -> Order:
    order = Order(
        id=row.id,
        user_id=row.user_id,
        status=OrderStatus(row.status),
        notes=row.notes,
        shipping_address=Address(
            street=row.street,
            city=row.city,
            state=row.state,
            postal_code=row.postal_code,
            country=row.country,
        ),
        items=[
            OrderLineItem(
                id=item.id,
                product_id=item.product_id,
                product_name=item.product_name,
                quantity=item.quantity,
                unit_price=Decimal(item.unit_price),
                discount=item.discount,
            )
            for item in row.items
        ],
        created_at=_as_utc(row.created_at),
        updated_at=_as_utc(row.updated_at),
    )
    # Stored totals are for querying only; the aggregate always re-derives them.
    apply_totals(order)
    return order


def _copy_order_to_row(order: Order, row: OrderModel) -> None:
    address = order.shipping_address
    row.user_id = order.user_id
    row.status = order.status.value
    row.notes = order.notes
    row.street = address.street
    row.city = address.city
    row.state = address.state
    row.postal_code = address.postal_code
    row.country = address.country
    row.subtotal = order.subtotal
    row.tax = order.tax
    row.shipping = order.shipping
    row.total = order.total
    row.created_at = order.created_at
    row.updated_at = order.updated_at

    existing = {item.id: item for item in row.items}
    rows: list[OrderItemModel] = []
    for position, item in enumerate(order.items):
        item_row = existing.get(item.id) or OrderItemModel(id=item.id)
        item_row.position = position
        item_row.product_id = item.product_id
        item_row.product_name = item.product_name
        item_row.quantity = item.quantity
        item_row.unit_price = item.unit_price
        item_row.discount = item.discount
        rows.append(item_row)
    row.items = rows


def _payment_from_row(row: PaymentModel) -> Payment:
    return Payment(
        id=row.id,
        order_id=row.order_id,
        user_id=row.user_id,
        amount=Decimal(row.amount),
        currency=Currency(row.currency),
        method=PaymentMethod(row.method),
        status=PaymentStatus(row.status),
        transaction_id=row.transaction_id,
        card_last_four=row.card_last_four,
        error_message=row.error_message,
        refund_amount=Decimal(row.refund_amount) if row.refund_amount is not None else None,
        refund_reason=row.refund_reason,
        created_at=_as_utc(row.created_at),
        updated_at=_as_utc(row.updated_at),
    )


def _copy_payment_to_row(payment: Payment, row: PaymentModel) -> None:
    row.order_id = payment.order_id
    row.user_id = payment.user_id
    row.amount = payment.amount
    row.currency = payment.currency.value
    row.method = payment.method.value
    row.status = payment.status.value
    row.transaction_id = payment.transaction_id
    row.card_last_four = payment.card_last_four
    row.error_message = payment.error_message
    row.refund_amount = payment.refund_amount
    row.refund_reason = payment.refund_reason
    row.created_at = payment.created_at
    row.updated_at = payment.updated_at


class SqlOrderRepository:
    def __init__(self, session: Session):
        self.session = session

    def _select(self):
        return select(OrderModel).options(selectinload(OrderModel.items))

    def find_by_id(self, order_id: str) -> Order | None:
        row = self.session.scalar(self._select().where(OrderModel.id == order_id))
        return _order_from_row(row) if row is not None else None

    def save(self, order: Order) -> Order:
        row = self.session.get(OrderModel, order.id)
        if row is None:
            row = OrderModel(id=order.id)
            self.session.add(row)
        _copy_order_to_row(order, row)
        self.session.flush()
        return order

    def find_by_user(self, user_id: str) -> list[Order]:
        stmt = self._select().where(OrderModel.user_id == user_id).order_by(OrderModel.created_at.asc())
        return [_order_from_row(row) for row in self.session.scalars(stmt).all()]

    def find_by_status(self, status: OrderStatus) -> list[Order]:
        stmt = (
            self._select()
            .where(OrderModel.status == OrderStatus(status).value)
            .order_by(OrderModel.created_at.asc())
        )
        return [_order_from_row(row) for row in self.session.scalars(stmt).all()]

    def find_by_user_and_status(self, user_id: str, status: OrderStatus) -> list[Order]:
        stmt = (
            self._select()
            .where(OrderModel.user_id == user_id, OrderModel.status == OrderStatus(status).value)
            .order_by(OrderModel.created_at.asc())
        )
        return [_order_from_row(row) for row in self.session.scalars(stmt).all()]


class SqlPaymentRepository:
    def __init__(self, session: Session):
        self.session = session

    def _find_many(self, *criteria) -> list[Payment]:
        stmt = select(PaymentModel).where(*criteria).order_by(PaymentModel.created_at.asc())
        return [_payment_from_row(row) for row in self.session.scalars(stmt).all()]

    def find_by_id(self, payment_id: str) -> Payment | None:
        row = self.session.get(PaymentModel, payment_id)
        return _payment_from_row(row) if row is not None else None

    def save(self, payment: Payment) -> Payment:
        row = self.session.get(PaymentModel, payment.id)
        if row is None:
            row = PaymentModel(id=payment.id)
            self.session.add(row)
        _copy_payment_to_row(payment, row)
        self.session.flush()
        return payment

    def find_by_user(self, user_id: str) -> list[Payment]:
        return self._find_many(PaymentModel.user_id == user_id)

    def find_by_status(self, status: PaymentStatus) -> list[Payment]:
        return self._find_many(PaymentModel.status == PaymentStatus(status).value)

    def find_by_user_and_status(self, user_id: str, status: PaymentStatus) -> list[Payment]:
        return self._find_many(
            PaymentModel.user_id == user_id,
            PaymentModel.status == PaymentStatus(status).value,
        )

    def find_by_order(self, order_id: str) -> list[Payment]:
        return self._find_many(PaymentModel.order_id == order_id)
