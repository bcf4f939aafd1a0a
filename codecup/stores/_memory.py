"""
In-memory stores.

Note: single-process only. State is lost on restart; each store guards its
own data with an ``asyncio.Lock``.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Sequence
from dataclasses import replace

from kungfu import Result, Ok, Error

from codecup._types import OrderId, RewardId
from codecup.cart import Cart, CartItem
from codecup.errors import Errors, StoreError
from codecup.loyalty import LoyaltyState
from codecup.orders._types import Order, OrderStatus
from codecup.rewards._types import Reward, RewardHistory

# ═══════════════════════════════════════════════════════════════════════════════
# Default Reward Catalog
# ═══════════════════════════════════════════════════════════════════════════════

DEFAULT_REWARDS: tuple[Reward, ...] = tuple(
    Reward(id=index, label=label, points_cost=100)
    for index, label in enumerate(
        (
            "Espresso Shot",
            "Americano",
            "Black Coffee",
            "Cafe Latte",
            "Cappuccino",
            "Milk Coffee",
            "Mocha",
            "Caramel Macchiato",
            "Matcha Latte",
            "Chocolate Tiramisu",
            "Mousse",
            "Cupcake",
            "Pudding",
            "Banh Mi Combo",
        ),
        start=1,
    )
)

# ═══════════════════════════════════════════════════════════════════════════════
# Cart
# ═══════════════════════════════════════════════════════════════════════════════


class MemoryCartStore:
    def __init__(self, items: Iterable[CartItem] = ()) -> None:
        self._items: tuple[CartItem, ...] = tuple(items)
        self._lock = asyncio.Lock()

    async def load(self) -> Result[Cart, StoreError]:
        async with self._lock:
            return Ok(Cart(self._items))

    async def save(self, items: Sequence[CartItem]) -> Result[None, StoreError]:
        async with self._lock:
            self._items = tuple(items)
            return Ok(None)

    async def clear(self) -> Result[None, StoreError]:
        async with self._lock:
            self._items = ()
            return Ok(None)


# ═══════════════════════════════════════════════════════════════════════════════
# Orders
# ═══════════════════════════════════════════════════════════════════════════════


class MemoryOrderStore:
    def __init__(self, orders: Iterable[Order] = ()) -> None:
        self._orders: dict[OrderId, Order] = {order.id: order for order in orders}
        self._lock = asyncio.Lock()

    async def insert(self, order: Order) -> Result[Order, StoreError]:
        async with self._lock:
            if order.id in self._orders:
                return Error(Errors.store_failure(f"Order {order.id} already exists"))
            self._orders[order.id] = order
            return Ok(order)

    async def get(self, order_id: OrderId) -> Result[Order | None, StoreError]:
        async with self._lock:
            return Ok(self._orders.get(order_id))

    async def update_status(self, order_id: OrderId, status: OrderStatus) -> Result[None, StoreError]:
        async with self._lock:
            existing = self._orders.get(order_id)
            if existing is None:
                return Error(Errors.store_failure(f"No stored order with id {order_id}"))
            self._orders[order_id] = replace(existing, status=status)
            return Ok(None)

    async def delete(self, order_id: OrderId) -> Result[bool, StoreError]:
        async with self._lock:
            return Ok(self._orders.pop(order_id, None) is not None)

    async def list_orders(self) -> Result[list[Order], StoreError]:
        async with self._lock:
            return Ok(list(self._orders.values()))


# ═══════════════════════════════════════════════════════════════════════════════
# User
# ═══════════════════════════════════════════════════════════════════════════════


class MemoryUserStore:
    def __init__(self, state: LoyaltyState | None = None) -> None:
        self._state = state or LoyaltyState()
        self._lock = asyncio.Lock()

    async def load(self) -> Result[LoyaltyState, StoreError]:
        async with self._lock:
            return Ok(self._state)

    async def save(self, state: LoyaltyState) -> Result[None, StoreError]:
        async with self._lock:
            self._state = state
            return Ok(None)


# ═══════════════════════════════════════════════════════════════════════════════
# Rewards
# ═══════════════════════════════════════════════════════════════════════════════


class MemoryRewardStore:
    def __init__(
        self,
        rewards: Iterable[Reward] | None = None,
        history: Iterable[RewardHistory] = (),
    ) -> None:
        catalog = DEFAULT_REWARDS if rewards is None else rewards
        self._rewards: dict[RewardId, Reward] = {reward.id: reward for reward in catalog}
        self._history: list[RewardHistory] = []
        self._next_id = 1
        for entry in history:
            self._store_entry(entry)
        self._lock = asyncio.Lock()

    async def list_rewards(self) -> Result[list[Reward], StoreError]:
        async with self._lock:
            return Ok(list(self._rewards.values()))

    async def mark_redeemed(self, reward_id: RewardId, redeemed: bool = True) -> Result[None, StoreError]:
        async with self._lock:
            reward = self._rewards.get(reward_id)
            if reward is None:
                return Error(Errors.store_failure(f"No stored reward with id {reward_id}"))
            self._rewards[reward_id] = replace(reward, redeemed=redeemed)
            return Ok(None)

    async def append_history(self, entry: RewardHistory) -> Result[RewardHistory, StoreError]:
        async with self._lock:
            return Ok(self._store_entry(entry))

    async def list_history(self) -> Result[list[RewardHistory], StoreError]:
        async with self._lock:
            return Ok(list(self._history))

    def _store_entry(self, entry: RewardHistory) -> RewardHistory:
        if entry.id is None:
            entry = replace(entry, id=self._next_id)
        self._next_id = max(self._next_id, entry.id + 1)
        self._history.append(entry)
        return entry


__all__ = (
    "DEFAULT_REWARDS",
    "MemoryCartStore",
    "MemoryOrderStore",
    "MemoryUserStore",
    "MemoryRewardStore",
)
