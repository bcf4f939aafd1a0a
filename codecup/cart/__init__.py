"""
Cart — mutable shopping cart with merge-on-add.

    from codecup.cart import CartAggregator

    cart = CartAggregator()
    cart.add_item(latte, CoffeeOptions(), 2)
    cart.totals()   # CartTotals(subtotal=..., delivery_fee=15000, ...)
"""

from __future__ import annotations

from codecup.cart._types import CartItem, Cart, CartTotals
from codecup.cart._aggregator import CartAggregator, DEFAULT_DELIVERY_FEE

__all__ = (
    "CartItem",
    "Cart",
    "CartTotals",
    "CartAggregator",
    "DEFAULT_DELIVERY_FEE",
)
