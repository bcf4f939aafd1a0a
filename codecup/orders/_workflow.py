"""
OrderWorkflow — checkout and order lifecycle.

``place_order`` validates first, then runs every mutation as one saga:

    insert-order ─> clear-cart ─> apply-loyalty ─> save-account ─> record-earned

A failing step rolls back the completed ones in reverse and the call returns a
``StoreError`` naming the step. Validation errors are returned before anything
is touched.
"""

from __future__ import annotations

import asyncio
import logging
import math
import uuid
from collections.abc import Callable
from typing import TYPE_CHECKING

from kungfu import Result, Ok, Error

from codecup import saga as S
from codecup._types import Clock, Money, OrderId, utc_now
from codecup.cart import CartAggregator, CartItem
from codecup.config import Settings
from codecup.errors import CodecupError, Errors, NotFoundError, StoreError
from codecup.loyalty import LoyaltyAccount, LoyaltyState
from codecup.orders._types import Order, OrderStatus, PlaceOrderResult
from codecup.rewards._types import RewardHistory, RewardKind

if TYPE_CHECKING:
    from codecup.stores import CartStore, OrderStore, RewardStore, UserStore

logger = logging.getLogger(__name__)


def new_order_id() -> OrderId:
    """``ORD-`` followed by eight upper-case hex digits."""
    return f"ORD-{uuid.uuid4().hex[:8].upper()}"


# ═══════════════════════════════════════════════════════════════════════════════
# Discounts
# ═══════════════════════════════════════════════════════════════════════════════


def points_discount(points_to_use: int, rate: int, total: Money) -> tuple[Money, int]:
    """
    (discount, points actually used).

    The requested value is capped at the order total; only the points needed
    to cover the capped discount are consumed.
    """
    discount = min(points_to_use * rate, total)
    return discount, discount // rate


def voucher_discount(vouchers: int, value: Money, remaining: Money) -> tuple[Money, int]:
    """(discount, vouchers consumed). A partly used voucher is consumed whole."""
    discount = min(vouchers * value, max(remaining, 0))
    return discount, math.ceil(discount / value)


# ═══════════════════════════════════════════════════════════════════════════════
# Workflow
# ═══════════════════════════════════════════════════════════════════════════════


class OrderWorkflow:
    def __init__(
        self,
        orders: OrderStore,
        carts: CartStore,
        users: UserStore,
        rewards: RewardStore,
        settings: Settings | None = None,
        lock: asyncio.Lock | None = None,
        clock: Clock = utc_now,
        id_factory: Callable[[], OrderId] = new_order_id,
    ) -> None:
        self._orders = orders
        self._carts = carts
        self._users = users
        self._rewards = rewards
        self._settings = settings or Settings()
        self._lock = lock or asyncio.Lock()
        self._clock = clock
        self._id_factory = id_factory

    # ─── placement ───────────────────────────────────────────────────────────

    async def place_order(
        self,
        cart: CartAggregator,
        account: LoyaltyAccount,
        address: str | None = None,
        *,
        use_points: bool = False,
        points_to_use: int = 0,
        vouchers_to_use: int = 0,
        note: str | None = None,
    ) -> Result[PlaceOrderResult, CodecupError]:
        async with self._lock:
            snapshot = cart.snapshot()
            if snapshot.is_empty:
                return Error(Errors.empty_cart())

            resolved = (address if address is not None else account.address).strip()
            if not resolved:
                return Error(Errors.invalid_address())

            total = snapshot.total_price
            discount, points_used = 0, 0
            if use_points and points_to_use > 0:
                if points_to_use > account.points:
                    return Error(Errors.insufficient_points(points_to_use, account.points))
                discount, points_used = points_discount(
                    points_to_use, self._settings.points_to_currency_rate, total
                )

            if vouchers_to_use < 0:
                return Error(Errors.invalid_amount("vouchers", vouchers_to_use))
            if vouchers_to_use > account.vouchers:
                return Error(Errors.insufficient_vouchers(vouchers_to_use, account.vouchers))
            from_vouchers, vouchers_used = voucher_discount(
                vouchers_to_use, self._settings.voucher_value, total - discount
            )

            order = Order.from_cart(
                self._id_factory(),
                snapshot,
                resolved,
                self._clock(),
                discount=discount + from_vouchers,
                note=note,
            )
            return await self._commit(order, cart, account, points_used, vouchers_used)

    async def _commit(
        self,
        order: Order,
        cart: CartAggregator,
        account: LoyaltyAccount,
        points_used: int,
        vouchers_used: int,
    ) -> Result[PlaceOrderResult, CodecupError]:
        previous = account.snapshot()
        earned = 0

        async def clear_cart() -> Result[tuple[CartItem, ...], StoreError]:
            items = cart.snapshot().items
            match await self._carts.clear():
                case Ok(_):
                    cart.clear()
                    return Ok(items)
                case Error(e):
                    return Error(e)

        async def restore_cart(items: tuple[CartItem, ...]) -> Result[None, StoreError]:
            cart.restore(items)
            return await self._carts.save(items)

        async def apply_loyalty() -> Result[LoyaltyState, CodecupError]:
            nonlocal earned
            if points_used > 0:
                match account.use_reward_points(points_used):
                    case Error(e):
                        return Error(e)
            if vouchers_used > 0:
                match account.use_vouchers(vouchers_used):
                    case Error(e):
                        account.restore(previous)
                        return Error(e)
            earned = account.earn_points(order.item_count)
            for _ in range(order.item_count):
                account.add_stamp()
            return Ok(previous)

        async def restore_account(state: LoyaltyState) -> None:
            account.restore(state)

        async def record_earned() -> Result[RewardHistory | None, StoreError]:
            if earned <= 0:
                return Ok(None)
            entry = RewardHistory(
                label=f"Order {order.id}",
                points=earned,
                created_at=order.created_at,
                kind=RewardKind.EARNED,
            )
            return await self._rewards.append_history(entry)

        work = (
            S.from_result(
                "insert-order",
                lambda: self._orders.insert(order),
                on_error=Errors.raised_in("insert-order"),
                compensate=lambda stored: self._orders.delete(stored.id),
            )
            .then(S.from_result(
                "clear-cart",
                clear_cart,
                on_error=Errors.raised_in("clear-cart"),
                compensate=restore_cart,
            ))
            .then(S.from_result(
                "apply-loyalty",
                apply_loyalty,
                on_error=Errors.raised_in("apply-loyalty"),
                compensate=restore_account,
            ))
            .then(S.from_result(
                "save-account",
                lambda: self._users.save(account.snapshot()),
                on_error=Errors.raised_in("save-account"),
                compensate=lambda _: self._users.save(previous),
            ))
            .then(S.from_result(
                "record-earned",
                record_earned,
                on_error=Errors.raised_in("record-earned"),
            ))
        )

        match await S.run(work):
            case Ok(_):
                logger.info(
                    "order %s placed: total=%s discount=%s earned=%s used=%s",
                    order.id, order.total, order.discount, earned, points_used,
                )
                return Ok(PlaceOrderResult(
                    order=order,
                    points_earned=earned,
                    points_used=points_used,
                    discount_amount=order.discount,
                    vouchers_used=vouchers_used,
                    stamps=account.stamps,
                ))
            case Error(failure):
                logger.warning(
                    "order %s rolled back after %r failed (complete=%s)",
                    order.id, failure.step_failed, failure.rollback_complete,
                )
                return Error(Errors.rolled_back(failure.error, failure.step_failed, failure.rollback_complete))

    # ─── lifecycle ───────────────────────────────────────────────────────────

    async def get_order(self, order_id: OrderId) -> Result[Order, NotFoundError | StoreError]:
        match await self._orders.get(order_id):
            case Ok(None):
                return Error(Errors.order_not_found(order_id))
            case Ok(order):
                return Ok(order)
            case Error(e):
                return Error(e)

    async def cancel_order(self, order_id: OrderId) -> Result[Order, CodecupError]:
        return await self._move(order_id, OrderStatus.CANCELLED)

    async def complete_order(self, order_id: OrderId) -> Result[Order, CodecupError]:
        return await self._move(order_id, OrderStatus.COMPLETED)

    async def _move(self, order_id: OrderId, target: OrderStatus) -> Result[Order, CodecupError]:
        """Read, check and write under the checkout lock so terminal states stay final."""
        async with self._lock:
            match await self.get_order(order_id):
                case Error(e):
                    return Error(e)
                case Ok(order):
                    pass

            match order.transition(target):
                case Error(e):
                    return Error(e)
                case Ok(moved):
                    pass

            match await self._orders.update_status(order_id, target):
                case Error(e):
                    return Error(e)
                case Ok(_):
                    logger.info("order %s %s", order_id, target.name.lower())
                    return Ok(moved)

    # ─── listings ────────────────────────────────────────────────────────────

    async def ongoing_orders(self) -> Result[list[Order], StoreError]:
        return await self._listed(lambda order: order.status.is_active)

    async def order_history(self) -> Result[list[Order], StoreError]:
        """Completed and cancelled orders, newest first."""
        return await self._listed(lambda order: order.status.is_terminal)

    async def _listed(self, keep: Callable[[Order], bool]) -> Result[list[Order], StoreError]:
        match await self._orders.list_orders():
            case Ok(orders):
                selected = [order for order in orders if keep(order)]
                selected.sort(key=lambda order: order.created_at, reverse=True)
                return Ok(selected)
            case Error(e):
                return Error(e)


__all__ = (
    "OrderWorkflow",
    "new_order_id",
    "points_discount",
    "voucher_discount",
)
