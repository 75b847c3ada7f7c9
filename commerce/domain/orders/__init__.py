from commerce.domain.orders.models import (
    Address,
    CreateOrderRequest,
    Order,
    OrderItemRequest,
    OrderLineItem,
    OrderStatus,
    OrderTotals,
)

__all__ = [
    "Address",
    "CreateOrderRequest",
    "Order",
    "OrderItemRequest",
    "OrderLineItem",
    "OrderStatus",
    "OrderTotals",
]
