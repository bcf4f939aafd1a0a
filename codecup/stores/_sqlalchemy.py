"""
SQLAlchemy stores — async ORM implementation of the store protocols.

Options are stored as the option codec's JSON and order status as the enum
name; both decode with fallbacks, so rows written by older builds still load.

    session_factory, engine = await create_database("sqlite+aiosqlite:///codecup.db")

    orders = SqlOrderStore(session_factory)
    rewards = SqlRewardStore(session_factory)
    await rewards.seed()
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime, timezone

from kungfu import Result, Ok, Error
from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text, delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from codecup._types import OrderId, RewardId
from codecup.cart import Cart, CartItem
from codecup.catalog import Coffee
from codecup.errors import Errors, StoreError
from codecup.loyalty import LoyaltyState
from codecup.orders._types import Order, OrderLine, OrderStatus
from codecup.pricing import decode_options, encode_options, to_money
from codecup.rewards._types import Reward, RewardHistory, RewardKind
from codecup.stores._memory import DEFAULT_REWARDS

# ═══════════════════════════════════════════════════════════════════════════════
# Base
# ═══════════════════════════════════════════════════════════════════════════════


class Base(DeclarativeBase):
    pass


# ═══════════════════════════════════════════════════════════════════════════════
# Tables
# ═══════════════════════════════════════════════════════════════════════════════


class CartItemTable(Base):
    __tablename__ = "cart_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    coffee_id: Mapped[int] = mapped_column(Integer, nullable=False)
    coffee_name: Mapped[str] = mapped_column(String(100), nullable=False)
    base_price: Mapped[int] = mapped_column(Integer, nullable=False)
    options: Mapped[str] = mapped_column(Text, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)


class OrderTable(Base):
    __tablename__ = "orders"

    id: Mapped[str] = mapped_column(String(20), primary_key=True)
    total: Mapped[int] = mapped_column(Integer, nullable=False)
    discount: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    address: Mapped[str] = mapped_column(Text, nullable=False)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class OrderItemTable(Base):
    __tablename__ = "order_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id: Mapped[str] = mapped_column(
        String(20), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    coffee_id: Mapped[int] = mapped_column(Integer, nullable=False)
    coffee_name: Mapped[str] = mapped_column(String(100), nullable=False)
    options: Mapped[str] = mapped_column(Text, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[int] = mapped_column(Integer, nullable=False)
    total_price: Mapped[int] = mapped_column(Integer, nullable=False)


class UserTable(Base):
    """Single-row table: the app has one local user."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    stamps: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    vouchers: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    max_stamps: Mapped[int] = mapped_column(Integer, nullable=False, default=8)
    address: Mapped[str] = mapped_column(Text, nullable=False, default="")


class RewardTable(Base):
    __tablename__ = "rewards"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    label: Mapped[str] = mapped_column(String(100), nullable=False)
    points_cost: Mapped[int] = mapped_column(Integer, nullable=False)
    valid_until: Mapped[str] = mapped_column(String(50), nullable=False)
    redeemed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class RewardHistoryTable(Base):
    __tablename__ = "reward_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    label: Mapped[str] = mapped_column(String(100), nullable=False)
    points: Mapped[int] = mapped_column(Integer, nullable=False)
    kind: Mapped[str] = mapped_column(String(20), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


# ═══════════════════════════════════════════════════════════════════════════════
# Row Mapping
# ═══════════════════════════════════════════════════════════════════════════════


def _aware(value: datetime) -> datetime:
    """SQLite drops tzinfo; stored timestamps are always UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _cart_item(row: CartItemTable) -> CartItem:
    coffee = Coffee(id=row.coffee_id, name=row.coffee_name, base_price=row.base_price)
    return CartItem(
        id=row.id,
        coffee=coffee,
        options=decode_options(row.options),
        quantity=row.quantity,
    )


def _order(row: OrderTable, items: Iterable[OrderItemTable]) -> Order:
    lines = tuple(
        OrderLine(
            coffee_id=item.coffee_id,
            coffee_name=item.coffee_name,
            options=decode_options(item.options),
            quantity=item.quantity,
            unit_price=item.unit_price,
            total_price=item.total_price,
        )
        for item in sorted(items, key=lambda i: i.position)
    )
    return Order(
        id=row.id,
        lines=lines,
        total=row.total,
        address=row.address,
        created_at=_aware(row.created_at),
        status=OrderStatus.decode(row.status),
        discount=row.discount,
        note=row.note,
    )


def _reward_kind(raw: str) -> RewardKind:
    if raw in RewardKind.__members__:
        return RewardKind[raw]
    return RewardKind.EARNED


def _history(row: RewardHistoryTable) -> RewardHistory:
    return RewardHistory(
        id=row.id,
        label=row.label,
        points=row.points,
        created_at=_aware(row.created_at),
        kind=_reward_kind(row.kind),
    )


# ═══════════════════════════════════════════════════════════════════════════════
# Cart Store
# ═══════════════════════════════════════════════════════════════════════════════


class SqlCartStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def load(self) -> Result[Cart, StoreError]:
        try:
            async with self._session_factory() as session:
                rows = await session.scalars(select(CartItemTable).order_by(CartItemTable.position))
                return Ok(Cart(tuple(_cart_item(row) for row in rows)))
        except SQLAlchemyError as e:
            return Error(Errors.store_failure(f"Failed to load cart: {e}", e))

    async def save(self, items: Sequence[CartItem]) -> Result[None, StoreError]:
        try:
            async with self._session_factory() as session:
                await session.execute(delete(CartItemTable))
                session.add_all(
                    CartItemTable(
                        id=item.id,
                        position=position,
                        coffee_id=item.coffee.id,
                        coffee_name=item.coffee.name,
                        base_price=to_money(item.coffee.base_price),
                        options=encode_options(item.options),
                        quantity=item.quantity,
                    )
                    for position, item in enumerate(items)
                )
                await session.commit()
                return Ok(None)
        except SQLAlchemyError as e:
            return Error(Errors.store_failure(f"Failed to save cart: {e}", e))

    async def clear(self) -> Result[None, StoreError]:
        try:
            async with self._session_factory() as session:
                await session.execute(delete(CartItemTable))
                await session.commit()
                return Ok(None)
        except SQLAlchemyError as e:
            return Error(Errors.store_failure(f"Failed to clear cart: {e}", e))


# ═══════════════════════════════════════════════════════════════════════════════
# Order Store
# ═══════════════════════════════════════════════════════════════════════════════


class SqlOrderStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def insert(self, order: Order) -> Result[Order, StoreError]:
        try:
            async with self._session_factory() as session:
                session.add(
                    OrderTable(
                        id=order.id,
                        total=order.total,
                        discount=order.discount,
                        address=order.address,
                        note=order.note,
                        status=order.status.name,
                        created_at=order.created_at,
                    )
                )
                session.add_all(
                    OrderItemTable(
                        order_id=order.id,
                        position=position,
                        coffee_id=line.coffee_id,
                        coffee_name=line.coffee_name,
                        options=encode_options(line.options),
                        quantity=line.quantity,
                        unit_price=line.unit_price,
                        total_price=line.total_price,
                    )
                    for position, line in enumerate(order.lines)
                )
                await session.commit()
                return Ok(order)
        except SQLAlchemyError as e:
            return Error(Errors.store_failure(f"Failed to insert order {order.id}: {e}", e))

    async def get(self, order_id: OrderId) -> Result[Order | None, StoreError]:
        try:
            async with self._session_factory() as session:
                row = await session.get(OrderTable, order_id)
                if row is None:
                    return Ok(None)
                items = await session.scalars(
                    select(OrderItemTable).where(OrderItemTable.order_id == order_id)
                )
                return Ok(_order(row, items))
        except SQLAlchemyError as e:
            return Error(Errors.store_failure(f"Failed to get order {order_id}: {e}", e))

    async def update_status(self, order_id: OrderId, status: OrderStatus) -> Result[None, StoreError]:
        try:
            async with self._session_factory() as session:
                row = await session.get(OrderTable, order_id)
                if row is None:
                    return Error(Errors.store_failure(f"No stored order with id {order_id}"))
                row.status = status.name
                await session.commit()
                return Ok(None)
        except SQLAlchemyError as e:
            return Error(Errors.store_failure(f"Failed to update order {order_id}: {e}", e))

    async def delete(self, order_id: OrderId) -> Result[bool, StoreError]:
        try:
            async with self._session_factory() as session:
                row = await session.get(OrderTable, order_id)
                if row is None:
                    return Ok(False)
                await session.execute(delete(OrderItemTable).where(OrderItemTable.order_id == order_id))
                await session.delete(row)
                await session.commit()
                return Ok(True)
        except SQLAlchemyError as e:
            return Error(Errors.store_failure(f"Failed to delete order {order_id}: {e}", e))

    async def list_orders(self) -> Result[list[Order], StoreError]:
        try:
            async with self._session_factory() as session:
                orders = list(await session.scalars(select(OrderTable)))
                items = await session.scalars(select(OrderItemTable))
                by_order: dict[str, list[OrderItemTable]] = {}
                for item in items:
                    by_order.setdefault(item.order_id, []).append(item)
                return Ok([_order(row, by_order.get(row.id, [])) for row in orders])
        except SQLAlchemyError as e:
            return Error(Errors.store_failure(f"Failed to list orders: {e}", e))


# ═══════════════════════════════════════════════════════════════════════════════
# User Store
# ═══════════════════════════════════════════════════════════════════════════════

LOCAL_USER_ID = 1


class SqlUserStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def load(self) -> Result[LoyaltyState, StoreError]:
        """A missing row loads as a fresh account."""
        try:
            async with self._session_factory() as session:
                row = await session.get(UserTable, LOCAL_USER_ID)
                if row is None:
                    return Ok(LoyaltyState())
                return Ok(LoyaltyState(
                    points=row.points,
                    stamps=row.stamps,
                    vouchers=row.vouchers,
                    max_stamps=row.max_stamps,
                    address=row.address,
                ))
        except SQLAlchemyError as e:
            return Error(Errors.store_failure(f"Failed to load user: {e}", e))

    async def save(self, state: LoyaltyState) -> Result[None, StoreError]:
        try:
            async with self._session_factory() as session:
                row = await session.get(UserTable, LOCAL_USER_ID)
                if row is None:
                    row = UserTable(id=LOCAL_USER_ID)
                    session.add(row)
                row.points = state.points
                row.stamps = state.stamps
                row.vouchers = state.vouchers
                row.max_stamps = state.max_stamps
                row.address = state.address
                await session.commit()
                return Ok(None)
        except SQLAlchemyError as e:
            return Error(Errors.store_failure(f"Failed to save user: {e}", e))


# ═══════════════════════════════════════════════════════════════════════════════
# Reward Store
# ═══════════════════════════════════════════════════════════════════════════════


class SqlRewardStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def seed(self, rewards: Iterable[Reward] = DEFAULT_REWARDS) -> Result[int, StoreError]:
        """Insert ``rewards`` when the catalog table is empty. Ok(rows inserted)."""
        try:
            async with self._session_factory() as session:
                existing = await session.scalar(select(func.count()).select_from(RewardTable))
                if existing:
                    return Ok(0)
                rows = [
                    RewardTable(
                        id=reward.id,
                        label=reward.label,
                        points_cost=reward.points_cost,
                        valid_until=reward.valid_until,
                        redeemed=reward.redeemed,
                    )
                    for reward in rewards
                ]
                session.add_all(rows)
                await session.commit()
                return Ok(len(rows))
        except SQLAlchemyError as e:
            return Error(Errors.store_failure(f"Failed to seed rewards: {e}", e))

    async def list_rewards(self) -> Result[list[Reward], StoreError]:
        try:
            async with self._session_factory() as session:
                rows = await session.scalars(select(RewardTable).order_by(RewardTable.id))
                return Ok([
                    Reward(
                        id=row.id,
                        label=row.label,
                        points_cost=row.points_cost,
                        valid_until=row.valid_until,
                        redeemed=row.redeemed,
                    )
                    for row in rows
                ])
        except SQLAlchemyError as e:
            return Error(Errors.store_failure(f"Failed to list rewards: {e}", e))

    async def mark_redeemed(self, reward_id: RewardId, redeemed: bool = True) -> Result[None, StoreError]:
        try:
            async with self._session_factory() as session:
                row = await session.get(RewardTable, reward_id)
                if row is None:
                    return Error(Errors.store_failure(f"No stored reward with id {reward_id}"))
                row.redeemed = redeemed
                await session.commit()
                return Ok(None)
        except SQLAlchemyError as e:
            return Error(Errors.store_failure(f"Failed to mark reward {reward_id}: {e}", e))

    async def append_history(self, entry: RewardHistory) -> Result[RewardHistory, StoreError]:
        try:
            async with self._session_factory() as session:
                row = RewardHistoryTable(
                    id=entry.id,
                    label=entry.label,
                    points=entry.points,
                    kind=entry.kind.name,
                    created_at=entry.created_at,
                )
                session.add(row)
                await session.commit()
                return Ok(_history(row))
        except SQLAlchemyError as e:
            return Error(Errors.store_failure(f"Failed to append reward history: {e}", e))

    async def list_history(self) -> Result[list[RewardHistory], StoreError]:
        try:
            async with self._session_factory() as session:
                rows = await session.scalars(select(RewardHistoryTable).order_by(RewardHistoryTable.id))
                return Ok([_history(row) for row in rows])
        except SQLAlchemyError as e:
            return Error(Errors.store_failure(f"Failed to list reward history: {e}", e))


# ═══════════════════════════════════════════════════════════════════════════════
# Database Setup
# ═══════════════════════════════════════════════════════════════════════════════


async def create_database(
    url: str = "sqlite+aiosqlite:///:memory:",
) -> tuple[async_sessionmaker[AsyncSession], AsyncEngine]:
    """Create tables and return (session_factory, engine)."""
    engine = create_async_engine(url, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    return async_sessionmaker(engine, expire_on_commit=False), engine


__all__ = (
    "Base",
    "CartItemTable",
    "OrderTable",
    "OrderItemTable",
    "UserTable",
    "RewardTable",
    "RewardHistoryTable",
    "SqlCartStore",
    "SqlOrderStore",
    "SqlUserStore",
    "SqlRewardStore",
    "create_database",
)
