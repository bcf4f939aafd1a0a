"""
Store protocols — collaborator contracts consumed by the core.

All methods are async and return Result for explicit error handling; an
implementation converts its own exceptions into ``StoreError`` at this
boundary.

Example — custom user store:

    class RedisUserStore:
        async def load(self) -> Result[LoyaltyState, StoreError]:
            try:
                raw = await self.client.get("user")
                return Ok(LoyaltyState(**json.loads(raw)) if raw else LoyaltyState())
            except RedisError as e:
                return Error(Errors.store_failure("Failed to load user", e))

        async def save(self, state: LoyaltyState) -> Result[None, StoreError]:
            ...
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from kungfu import Result

from codecup._types import OrderId, RewardId
from codecup.cart import Cart, CartItem
from codecup.errors import StoreError
from codecup.loyalty import LoyaltyState
from codecup.orders._types import Order, OrderStatus
from codecup.rewards._types import Reward, RewardHistory


class CartStore(Protocol):
    async def load(self) -> Result[Cart, StoreError]:
        ...

    async def save(self, items: Sequence[CartItem]) -> Result[None, StoreError]:
        """Replace the persisted cart with ``items``."""
        ...

    async def clear(self) -> Result[None, StoreError]:
        ...


class OrderStore(Protocol):
    async def insert(self, order: Order) -> Result[Order, StoreError]:
        ...

    async def get(self, order_id: OrderId) -> Result[Order | None, StoreError]:
        """Ok(None) if not found."""
        ...

    async def update_status(self, order_id: OrderId, status: OrderStatus) -> Result[None, StoreError]:
        ...

    async def delete(self, order_id: OrderId) -> Result[bool, StoreError]:
        """Ok(True) if the order existed."""
        ...

    async def list_orders(self) -> Result[list[Order], StoreError]:
        ...


class UserStore(Protocol):
    async def load(self) -> Result[LoyaltyState, StoreError]:
        ...

    async def save(self, state: LoyaltyState) -> Result[None, StoreError]:
        ...


class RewardStore(Protocol):
    async def list_rewards(self) -> Result[list[Reward], StoreError]:
        ...

    async def mark_redeemed(self, reward_id: RewardId, redeemed: bool = True) -> Result[None, StoreError]:
        ...

    async def append_history(self, entry: RewardHistory) -> Result[RewardHistory, StoreError]:
        """Store ``entry`` and return it with its id assigned."""
        ...

    async def list_history(self) -> Result[list[RewardHistory], StoreError]:
        ...


__all__ = ("CartStore", "OrderStore", "UserStore", "RewardStore")
