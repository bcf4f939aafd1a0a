"""
Order types — immutable snapshots and the status machine.

    PLACED ─┬─> ONGOING ─┬─> COMPLETED
            │            └─> CANCELLED
            ├─> COMPLETED
            └─> CANCELLED
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum

from kungfu import Result, Ok, Error

from codecup._types import CoffeeId, Money, OrderId
from codecup.cart import Cart
from codecup.errors import Errors, StateError
from codecup.pricing import CoffeeOptions

# ═══════════════════════════════════════════════════════════════════════════════
# Status
# ═══════════════════════════════════════════════════════════════════════════════


class OrderStatus(Enum):
    PLACED = "PLACED"
    ONGOING = "ONGOING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

    @property
    def is_active(self) -> bool:
        return self in (OrderStatus.PLACED, OrderStatus.ONGOING)

    @property
    def is_terminal(self) -> bool:
        return not self.is_active

    def can_become(self, target: OrderStatus) -> bool:
        return target in _TRANSITIONS[self]

    @classmethod
    def decode(cls, raw: str | None) -> OrderStatus:
        """Stored names that no longer parse count as ONGOING."""
        if raw is not None and raw in cls.__members__:
            return cls[raw]
        return cls.ONGOING


_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PLACED: frozenset({OrderStatus.ONGOING, OrderStatus.COMPLETED, OrderStatus.CANCELLED}),
    OrderStatus.ONGOING: frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED}),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

# ═══════════════════════════════════════════════════════════════════════════════
# Order
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class OrderLine:
    coffee_id: CoffeeId
    coffee_name: str
    options: CoffeeOptions
    quantity: int
    unit_price: Money
    total_price: Money


@dataclass(frozen=True, slots=True)
class Order:
    """
    Snapshot taken at placement. Money fields never change; status moves
    forward through ``transition`` which returns a new value.
    """

    id: OrderId
    lines: tuple[OrderLine, ...]
    total: Money
    address: str
    created_at: datetime
    status: OrderStatus = OrderStatus.ONGOING
    discount: Money = 0
    note: str | None = None

    @property
    def payable(self) -> Money:
        return self.total - self.discount

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.lines)

    @classmethod
    def from_cart(
        cls,
        order_id: OrderId,
        cart: Cart,
        address: str,
        created_at: datetime,
        discount: Money = 0,
        note: str | None = None,
    ) -> Order:
        lines = tuple(
            OrderLine(
                coffee_id=item.coffee.id,
                coffee_name=item.coffee.name,
                options=item.options,
                quantity=item.quantity,
                unit_price=item.unit_price,
                total_price=item.total_price,
            )
            for item in cart.items
        )
        return cls(
            id=order_id,
            lines=lines,
            total=cart.total_price,
            address=address,
            created_at=created_at,
            status=OrderStatus.ONGOING,
            discount=discount,
            note=note,
        )

    def transition(self, target: OrderStatus) -> Result[Order, StateError]:
        if not self.status.can_become(target):
            return Error(Errors.invalid_transition(self.id, self.status.name, target.name))
        return Ok(replace(self, status=target))


# ═══════════════════════════════════════════════════════════════════════════════
# Placement Result
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class PlaceOrderResult:
    order: Order
    points_earned: int
    points_used: int
    discount_amount: Money
    vouchers_used: int = 0
    stamps: int = 0


__all__ = (
    "OrderStatus",
    "OrderLine",
    "Order",
    "PlaceOrderResult",
)
