from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Iterable

from commerce.core.errors import NotFoundError, StateError, ValidationError
from commerce.domain.money import PRICE_PLACES, apply_totals, require_places, to_decimal
from commerce.domain.orders.delivery import estimated_delivery
from commerce.domain.orders.models import (
    Address,
    Order,
    OrderItemRequest,
    OrderLineItem,
    OrderStatus,
)
from commerce.domain.transitions import can_transition_order
from commerce.persistence.repositories import OrderRepository

logger = logging.getLogger(__name__)

UNCANCELLABLE_STATUSES = frozenset({OrderStatus.SHIPPED, OrderStatus.DELIVERED})


def _validate_line(quantity: int, unit_price: Decimal, discount: int) -> None:
    if quantity <= 0:
        raise ValidationError(f"item quantity must be positive, got {quantity}")
    if unit_price < 0:
        raise ValidationError(f"item price cannot be negative, got {unit_price}")
    if discount < 0 or discount > 100:
        raise ValidationError(f"item discount must be within 0-100, got {discount}")
    require_places(unit_price, PRICE_PLACES, "unit_price")


def _require_draft(order: Order) -> None:
    if order.status != OrderStatus.DRAFT:
        raise StateError(f"can only modify orders in DRAFT status, order {order.id} is {order.status.value}")


class OrderLifecycle:
    def __init__(self, repository: OrderRepository):
        self.repository = repository

    def create_order(
        self,
        user_id: str,
        items: Iterable[OrderItemRequest],
        shipping_address: Address | None,
        notes: str | None = None,
    ) -> Order:
        requested = list(items or [])
        if not requested:
            raise ValidationError("order must contain at least one item")

        lines: list[OrderLineItem] = []
        for req in requested:
            unit_price = to_decimal(req.unit_price, "unit_price")
            _validate_line(req.quantity, unit_price, req.discount)
            lines.append(
                OrderLineItem(
                    product_id=req.product_id,
                    product_name=req.product_name,
                    quantity=req.quantity,
                    unit_price=unit_price,
                    discount=req.discount,
                )
            )

        if shipping_address is None or not shipping_address.is_valid():
            raise ValidationError("invalid shipping address")

        order = Order(
            user_id=user_id,
            shipping_address=shipping_address,
            notes=notes,
            status=OrderStatus.DRAFT,
            items=lines,
        )
        apply_totals(order)
        saved = self.repository.save(order)
        logger.info(
            "order created: order_id=%s user_id=%s items=%s total=%s",
            saved.id,
            user_id,
            len(lines),
            saved.total,
        )
        return saved

    def add_item(
        self,
        order: Order,
        product_id: str,
        quantity: int,
        unit_price: Decimal,
        discount: int = 0,
        product_name: str | None = None,
    ) -> Order:
        _require_draft(order)
        price = to_decimal(unit_price, "unit_price")
        _validate_line(quantity, price, discount)

        order.items.append(
            OrderLineItem(
                product_id=product_id,
                product_name=product_name,
                quantity=quantity,
                unit_price=price,
                discount=discount,
            )
        )
        apply_totals(order)
        order.touch()
        return self.repository.save(order)

    def remove_item(self, order: Order, item_id: str) -> Order:
        _require_draft(order)
        order.items = [item for item in order.items if item.id != item_id]
        apply_totals(order)
        order.touch()
        return self.repository.save(order)

    def transition(self, order: Order, new_status: OrderStatus) -> Order:
        target = OrderStatus(new_status)
        current = order.status
        if not can_transition_order(current, target):
            logger.warning(
                "order transition rejected: order_id=%s from=%s to=%s",
                order.id,
                current.value,
                target.value,
            )
            raise StateError(f"cannot transition from {current.value} to {target.value}")

        order.status = target
        order.touch()
        saved = self.repository.save(order)
        logger.info("order transitioned: order_id=%s from=%s to=%s", order.id, current.value, target.value)
        return saved

    def cancel(self, order: Order) -> Order:
        # Broader than the transition table: any status but SHIPPED/DELIVERED may cancel.
        if order.status in UNCANCELLABLE_STATUSES:
            raise StateError(f"cannot cancel order in {order.status.value} status")

        previous = order.status
        order.status = OrderStatus.CANCELLED
        order.touch()
        saved = self.repository.save(order)
        logger.info("order cancelled: order_id=%s from=%s", order.id, previous.value)
        return saved

    def get_order(self, order_id: str) -> Order | None:
        return self.repository.find_by_id(order_id)

    def require_order(self, order_id: str) -> Order:
        order = self.repository.find_by_id(order_id)
        if order is None:
            raise NotFoundError(order_id)
        return order

    def orders_for_user(self, user_id: str) -> list[Order]:
        return self.repository.find_by_user(user_id)

    def orders_with_status(self, status: OrderStatus) -> list[Order]:
        return self.repository.find_by_status(OrderStatus(status))

    def orders_for_user_with_status(self, user_id: str, status: OrderStatus) -> list[Order]:
        return self.repository.find_by_user_and_status(user_id, OrderStatus(status))

    def update_status(self, order_id: str, new_status: OrderStatus) -> Order:
        return self.transition(self.require_order(order_id), new_status)

    def cancel_order(self, order_id: str) -> Order:
        return self.cancel(self.require_order(order_id))

    def add_item_to(
        self,
        order_id: str,
        product_id: str,
        quantity: int,
        unit_price: Decimal,
        discount: int = 0,
        product_name: str | None = None,
    ) -> Order:
        return self.add_item(
            self.require_order(order_id),
            product_id,
            quantity,
            unit_price,
            discount=discount,
            product_name=product_name,
        )

    def remove_item_from(self, order_id: str, item_id: str) -> Order:
        return self.remove_item(self.require_order(order_id), item_id)

    @staticmethod
    def estimated_delivery(shipping_method: str | None, today: date | None = None) -> date:
        return estimated_delivery(shipping_method, today=today)
