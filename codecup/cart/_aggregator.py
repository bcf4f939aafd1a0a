"""
CartAggregator — owner of the mutable cart.

All mutation goes through these methods; listeners receive a fresh ``Cart``
snapshot after each change.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import replace

from kungfu import Result, Ok, Error

from codecup._observable import Observable
from codecup._types import CartItemId, Money
from codecup.cart._types import Cart, CartItem, CartTotals
from codecup.catalog import Coffee
from codecup.errors import Errors, NotFoundError, ValidationError
from codecup.pricing import CoffeeOptions

logger = logging.getLogger(__name__)

DEFAULT_DELIVERY_FEE: Money = 15000


class CartAggregator(Observable[Cart]):
    def __init__(
        self,
        items: Iterable[CartItem] = (),
        delivery_fee: Money = DEFAULT_DELIVERY_FEE,
    ) -> None:
        super().__init__()
        self._items: list[CartItem] = []
        self._next_id = 1
        self._delivery_fee = delivery_fee
        self._load(items)

    # ─── reads ───────────────────────────────────────────────────────────────

    def snapshot(self) -> Cart:
        return Cart(tuple(self._items))

    def total(self) -> Money:
        return self.snapshot().total_price

    def totals(self) -> CartTotals:
        cart = self.snapshot()
        subtotal = cart.total_price
        fee = 0 if cart.is_empty else self._delivery_fee
        return CartTotals(
            subtotal=subtotal,
            delivery_fee=fee,
            total=subtotal + fee,
            item_count=cart.item_count,
        )

    # ─── mutations ───────────────────────────────────────────────────────────

    def add_item(
        self,
        coffee: Coffee,
        options: CoffeeOptions,
        quantity: int = 1,
    ) -> Result[CartItem, ValidationError]:
        if quantity <= 0:
            return Error(Errors.invalid_quantity(quantity))

        for index, existing in enumerate(self._items):
            if existing.matches(coffee, options):
                merged = replace(existing, quantity=existing.quantity + quantity)
                self._items[index] = merged
                logger.debug("cart line %s merged to quantity %s", merged.id, merged.quantity)
                self._changed()
                return Ok(merged)

        item = CartItem(id=self._next_id, coffee=coffee, options=options, quantity=quantity)
        self._next_id += 1
        self._items.append(item)
        logger.debug("cart line %s added: %s x%s", item.id, coffee.name, quantity)
        self._changed()
        return Ok(item)

    def update_quantity(
        self,
        item_id: CartItemId,
        quantity: int,
    ) -> Result[CartItem | None, NotFoundError]:
        """Set a line's quantity. Zero or less removes the line (Ok(None))."""
        index = self._index_of(item_id)
        if index is None:
            return Error(Errors.cart_item_not_found(item_id))

        if quantity <= 0:
            del self._items[index]
            logger.debug("cart line %s removed by quantity %s", item_id, quantity)
            self._changed()
            return Ok(None)

        updated = replace(self._items[index], quantity=quantity)
        self._items[index] = updated
        logger.debug("cart line %s set to quantity %s", item_id, quantity)
        self._changed()
        return Ok(updated)

    def remove_item(self, item_id: CartItemId) -> Result[CartItem, NotFoundError]:
        index = self._index_of(item_id)
        if index is None:
            return Error(Errors.cart_item_not_found(item_id))
        removed = self._items.pop(index)
        logger.debug("cart line %s removed", item_id)
        self._changed()
        return Ok(removed)

    def clear(self) -> None:
        self._items.clear()
        logger.debug("cart cleared")
        self._changed()

    def restore(self, items: Iterable[CartItem]) -> None:
        """Replace contents with previously snapshotted lines."""
        self._items.clear()
        self._load(items)
        self._changed()

    # ─── internals ───────────────────────────────────────────────────────────

    def _load(self, items: Iterable[CartItem]) -> None:
        for item in items:
            self._items.append(item)
            self._next_id = max(self._next_id, item.id + 1)

    def _index_of(self, item_id: CartItemId) -> int | None:
        for index, item in enumerate(self._items):
            if item.id == item_id:
                return index
        return None

    def _changed(self) -> None:
        self._notify(self.snapshot())


__all__ = ("CartAggregator", "DEFAULT_DELIVERY_FEE")
