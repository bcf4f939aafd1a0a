"""
Orders — placement, status machine, listings.

    from codecup.orders import OrderWorkflow

    workflow = OrderWorkflow(orders, carts, users, rewards, settings, lock)

    match await workflow.place_order(cart, account, use_points=True, points_to_use=200):
        case Ok(placed):
            print(placed.order.id, placed.points_earned)
        case Error(e):
            print(e.code, e.message)
"""

from __future__ import annotations

from codecup.orders._types import OrderStatus, OrderLine, Order, PlaceOrderResult
from codecup.orders._workflow import (
    OrderWorkflow,
    new_order_id,
    points_discount,
    voucher_discount,
)

__all__ = (
    "OrderStatus",
    "OrderLine",
    "Order",
    "PlaceOrderResult",
    "OrderWorkflow",
    "new_order_id",
    "points_discount",
    "voucher_discount",
)
