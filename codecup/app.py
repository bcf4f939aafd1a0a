"""
Composition root.

Everything is built once and passed explicitly; there is no global registry.

    app = (await CodeCup.in_memory(catalog=Catalog(MENU))).unwrap()
    await app.add_to_cart(1, CoffeeOptions(size=Size.LARGE), quantity=2)

    match await app.place_order(use_points=True, points_to_use=200):
        case Ok(placed):
            ...
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass, replace

from kungfu import Result, Ok, Error
from sqlalchemy.ext.asyncio import AsyncEngine

from codecup._types import CartItemId, CoffeeId, OrderId, RewardId
from codecup.cart import CartAggregator, CartItem
from codecup.catalog import Catalog
from codecup.config import Settings, configure_logging
from codecup.errors import CodecupError, StoreError
from codecup.loyalty import LoyaltyAccount, TierPolicy
from codecup.orders import Order, OrderWorkflow, PlaceOrderResult
from codecup.pricing import CoffeeOptions
from codecup.rewards import Reward, RewardHistory, RewardRedemption
from codecup.stores import (
    CartStore,
    OrderStore,
    RewardStore,
    UserStore,
    MemoryCartStore,
    MemoryOrderStore,
    MemoryRewardStore,
    MemoryUserStore,
    SqlCartStore,
    SqlOrderStore,
    SqlRewardStore,
    SqlUserStore,
    create_database,
)

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class CodeCup:
    settings: Settings
    catalog: Catalog
    cart: CartAggregator
    account: LoyaltyAccount
    orders: OrderWorkflow
    rewards: RewardRedemption
    cart_store: CartStore
    user_store: UserStore
    engine: AsyncEngine | None = None

    # ═══════════════════════════════════════════════════════════════════════════
    # Construction
    # ═══════════════════════════════════════════════════════════════════════════

    @classmethod
    async def open(
        cls,
        *,
        carts: CartStore,
        orders: OrderStore,
        users: UserStore,
        rewards: RewardStore,
        settings: Settings | None = None,
        catalog: Catalog | None = None,
    ) -> Result[CodeCup, StoreError]:
        """
        Load the persisted cart and account, then wire one shared lock.

        The card size always comes from ``settings.max_stamps``; the stored
        value is only what the store last saw.
        """
        settings = settings or Settings()
        configure_logging(settings)

        match await carts.load():
            case Ok(saved_cart):
                cart = CartAggregator(saved_cart.items, delivery_fee=settings.delivery_fee)
            case Error(e):
                return Error(e)

        match await users.load():
            case Ok(stored):
                state = replace(stored, max_stamps=settings.max_stamps)
                account = LoyaltyAccount(
                    state,
                    tiers=TierPolicy(settings.gold_threshold, settings.gold_multiplier),
                    voucher_value=settings.voucher_value,
                )
            case Error(e):
                return Error(e)

        lock = asyncio.Lock()
        logger.debug("opened with %s cart lines, %s points", len(saved_cart.items), state.points)
        return Ok(cls(
            settings=settings,
            catalog=catalog or Catalog(),
            cart=cart,
            account=account,
            orders=OrderWorkflow(orders, carts, users, rewards, settings, lock),
            rewards=RewardRedemption(rewards, users, lock),
            cart_store=carts,
            user_store=users,
        ))

    @classmethod
    async def in_memory(
        cls,
        settings: Settings | None = None,
        catalog: Catalog | None = None,
        rewards: Iterable[Reward] | None = None,
    ) -> Result[CodeCup, StoreError]:
        return await cls.open(
            carts=MemoryCartStore(),
            orders=MemoryOrderStore(),
            users=MemoryUserStore(),
            rewards=MemoryRewardStore(rewards),
            settings=settings,
            catalog=catalog,
        )

    @classmethod
    async def sqlite(
        cls,
        url: str = "sqlite+aiosqlite:///:memory:",
        settings: Settings | None = None,
        catalog: Catalog | None = None,
    ) -> Result[CodeCup, StoreError]:
        """Open against a SQLAlchemy database; the app owns the engine until ``close()``."""
        session_factory, engine = await create_database(url)
        reward_store = SqlRewardStore(session_factory)
        match await reward_store.seed():
            case Error(e):
                await engine.dispose()
                return Error(e)
        opened = await cls.open(
            carts=SqlCartStore(session_factory),
            orders=SqlOrderStore(session_factory),
            users=SqlUserStore(session_factory),
            rewards=reward_store,
            settings=settings,
            catalog=catalog,
        )
        match opened:
            case Ok(app):
                app.engine = engine
                return Ok(app)
            case Error(e):
                await engine.dispose()
                return Error(e)

    async def close(self) -> None:
        if self.engine is not None:
            await self.engine.dispose()
            self.engine = None

    # ═══════════════════════════════════════════════════════════════════════════
    # Cart — mutate in memory, then persist the snapshot
    # ═══════════════════════════════════════════════════════════════════════════

    async def add_to_cart(
        self,
        coffee_id: CoffeeId,
        options: CoffeeOptions | None = None,
        quantity: int = 1,
    ) -> Result[CartItem, CodecupError]:
        match self.catalog.get(coffee_id):
            case Error(e):
                return Error(e)
            case Ok(coffee):
                pass
        before = self.cart.snapshot().items
        match self.cart.add_item(coffee, options or CoffeeOptions(), quantity):
            case Error(e):
                return Error(e)
            case Ok(item):
                return await self._persist_cart(item, before)

    async def update_cart_item(self, item_id: CartItemId, quantity: int) -> Result[CartItem | None, CodecupError]:
        before = self.cart.snapshot().items
        match self.cart.update_quantity(item_id, quantity):
            case Error(e):
                return Error(e)
            case Ok(item):
                return await self._persist_cart(item, before)

    async def remove_cart_item(self, item_id: CartItemId) -> Result[CartItem, CodecupError]:
        before = self.cart.snapshot().items
        match self.cart.remove_item(item_id):
            case Error(e):
                return Error(e)
            case Ok(item):
                return await self._persist_cart(item, before)

    async def _persist_cart[T](self, value: T, before: tuple[CartItem, ...]) -> Result[T, CodecupError]:
        """Save the edited cart; a failed save puts ``before`` back in memory."""
        match await self.cart_store.save(self.cart.snapshot().items):
            case Ok(_):
                return Ok(value)
            case Error(e):
                logger.warning("cart edit reverted, save failed: %s", e.message)
                self.cart.restore(before)
                return Error(e)

    # ═══════════════════════════════════════════════════════════════════════════
    # Account
    # ═══════════════════════════════════════════════════════════════════════════

    async def change_address(self, address: str) -> Result[None, StoreError]:
        previous = self.account.snapshot()
        self.account.change_address(address.strip())
        match await self.user_store.save(self.account.snapshot()):
            case Ok(_):
                return Ok(None)
            case Error(e):
                logger.warning("address change reverted, save failed: %s", e.message)
                self.account.restore(previous)
                return Error(e)

    # ═══════════════════════════════════════════════════════════════════════════
    # Orders and rewards bound to this cart and account
    # ═══════════════════════════════════════════════════════════════════════════

    async def place_order(
        self,
        address: str | None = None,
        *,
        use_points: bool = False,
        points_to_use: int = 0,
        vouchers_to_use: int = 0,
        note: str | None = None,
    ) -> Result[PlaceOrderResult, CodecupError]:
        return await self.orders.place_order(
            self.cart,
            self.account,
            address,
            use_points=use_points,
            points_to_use=points_to_use,
            vouchers_to_use=vouchers_to_use,
            note=note,
        )

    async def cancel_order(self, order_id: OrderId) -> Result[Order, CodecupError]:
        return await self.orders.cancel_order(order_id)

    async def redeem(self, reward_id: RewardId) -> Result[RewardHistory, CodecupError]:
        return await self.rewards.redeem(reward_id, self.account)

    async def redeem_stamps(self) -> Result[RewardHistory, CodecupError]:
        return await self.rewards.redeem_stamps(self.account)


__all__ = ("CodeCup",)
