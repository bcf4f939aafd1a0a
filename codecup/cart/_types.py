"""
Cart types — lines and snapshots.
"""

from __future__ import annotations

from dataclasses import dataclass

from codecup._types import CartItemId, Money
from codecup.catalog import Coffee
from codecup.pricing import CoffeeOptions, unit_price

# ═══════════════════════════════════════════════════════════════════════════════
# CartItem — One Line
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class CartItem:
    id: CartItemId
    coffee: Coffee
    options: CoffeeOptions
    quantity: int

    @property
    def unit_price(self) -> Money:
        return unit_price(self.coffee.base_price, self.options)

    @property
    def total_price(self) -> Money:
        return self.unit_price * self.quantity

    def matches(self, coffee: Coffee, options: CoffeeOptions) -> bool:
        """Same coffee id and equal options: the merge rule."""
        return self.coffee.id == coffee.id and self.options == options


# ═══════════════════════════════════════════════════════════════════════════════
# Cart — Immutable Snapshot
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Cart:
    items: tuple[CartItem, ...] = ()

    @property
    def total_price(self) -> Money:
        return sum((item.total_price for item in self.items), 0)

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def is_empty(self) -> bool:
        return not self.items


@dataclass(frozen=True, slots=True)
class CartTotals:
    subtotal: Money
    delivery_fee: Money
    total: Money
    item_count: int


__all__ = ("CartItem", "Cart", "CartTotals")
