from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from datetime import timezone

import pytest
from kungfu import Ok, Error
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from codecup import CodeCup, Settings
from codecup.cart import CartAggregator
from codecup.errors import ErrorCode
from codecup.loyalty import LoyaltyAccount, LoyaltyState
from codecup.orders import Order, OrderStatus, OrderWorkflow
from codecup.pricing import CoffeeOptions, Ice, Shot, Size, Temperature
from codecup.rewards import RewardHistory, RewardKind
from codecup.stores import (
    SqlCartStore,
    SqlOrderStore,
    SqlRewardStore,
    SqlUserStore,
    create_database,
)
from codecup.stores._sqlalchemy import CartItemTable, OrderTable

FANCY = CoffeeOptions(Shot.DOUBLE, Temperature.HOT, Size.LARGE, Ice.LESS)

type Scenario[T] = Callable[[async_sessionmaker[AsyncSession]], Awaitable[T]]


@asynccontextmanager
async def database() -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    session_factory, engine = await create_database()
    try:
        yield session_factory
    finally:
        await engine.dispose()


@pytest.fixture
def with_db(run):
    def go[T](scenario: Scenario[T]) -> T:
        async def wrapped() -> T:
            async with database() as session_factory:
                return await scenario(session_factory)

        return run(wrapped())

    return go


@pytest.mark.integration
def test_cart_round_trip_keeps_ids_order_and_options(with_db, latte, americano):
    cart = CartAggregator()
    cart.add_item(americano, CoffeeOptions())
    cart.add_item(latte, FANCY, 3)

    async def scenario(sf):
        store = SqlCartStore(sf)
        await store.save(cart.snapshot().items)
        loaded = (await store.load()).unwrap()
        await store.clear()
        cleared = (await store.load()).unwrap()
        return loaded, cleared

    loaded, cleared = with_db(scenario)

    assert [(i.id, i.coffee.name, i.options, i.quantity) for i in loaded.items] == [
        (1, "Americano", CoffeeOptions(), 1),
        (2, "Latte", FANCY, 3),
    ]
    assert loaded.total_price == cart.total()
    assert cleared.is_empty


@pytest.mark.integration
def test_order_round_trip(with_db, latte, clock):
    cart = CartAggregator()
    cart.add_item(latte, FANCY, 2)
    order = Order.from_cart("ORD-ABCDEF01", cart.snapshot(), "9 Dong Khoi", clock(), discount=5000, note="no lid")

    async def scenario(sf):
        store = SqlOrderStore(sf)
        await store.insert(order)
        fetched = (await store.get(order.id)).unwrap()
        await store.update_status(order.id, OrderStatus.COMPLETED)
        updated = (await store.get(order.id)).unwrap()
        deleted = (await store.delete(order.id)).unwrap()
        missing = (await store.get(order.id)).unwrap()
        return fetched, updated, deleted, missing

    fetched, updated, deleted, missing = with_db(scenario)

    assert fetched == order
    assert fetched.created_at.tzinfo is not None
    assert updated.status is OrderStatus.COMPLETED
    assert deleted is True
    assert missing is None


@pytest.mark.integration
def test_duplicate_order_insert_is_a_store_error(with_db, latte, clock):
    cart = CartAggregator()
    cart.add_item(latte, CoffeeOptions())
    order = Order.from_cart("ORD-00000001", cart.snapshot(), "x", clock())

    async def scenario(sf):
        store = SqlOrderStore(sf)
        await store.insert(order)
        return await store.insert(order)

    match with_db(scenario):
        case Error(e):
            assert e.code is ErrorCode.STORE_FAILURE
            assert e.cause is not None
        case Ok(_):
            pytest.fail("duplicate accepted")


@pytest.mark.integration
def test_corrupt_rows_decode_with_fallbacks(with_db, latte, clock):
    cart = CartAggregator()
    cart.add_item(latte, CoffeeOptions(size=Size.SMALL))
    order = Order.from_cart("ORD-00000002", cart.snapshot(), "x", clock())

    async def scenario(sf):
        orders = SqlOrderStore(sf)
        carts = SqlCartStore(sf)
        await orders.insert(order)
        await carts.save(cart.snapshot().items)
        async with sf() as session:
            await session.execute(update(OrderTable).values(status="ON_GOING"))
            await session.execute(update(CartItemTable).values(options='{"size": "HUGE", "shot": "DOUBLE"}'))
            await session.commit()
        return (await orders.get(order.id)).unwrap(), (await carts.load()).unwrap()

    stored, loaded = with_db(scenario)

    assert stored.status is OrderStatus.ONGOING
    assert loaded.items[0].options == CoffeeOptions(shot=Shot.DOUBLE, size=Size.MEDIUM)


@pytest.mark.integration
def test_user_store_defaults_then_saves(with_db):
    state = LoyaltyState(points=1200, stamps=3, vouchers=2, address="4 Ton Duc Thang")

    async def scenario(sf):
        store = SqlUserStore(sf)
        fresh = (await store.load()).unwrap()
        await store.save(state)
        await store.save(state)
        return fresh, (await store.load()).unwrap()

    fresh, loaded = with_db(scenario)

    assert fresh == LoyaltyState()
    assert loaded == state


@pytest.mark.integration
def test_reward_store(with_db, clock):
    async def scenario(sf):
        store = SqlRewardStore(sf)
        seeded = (await store.seed()).unwrap()
        reseeded = (await store.seed()).unwrap()
        await store.mark_redeemed(2)
        rewards = (await store.list_rewards()).unwrap()
        first = (await store.append_history(RewardHistory("Americano", -100, clock(), RewardKind.REDEEMED))).unwrap()
        second = (await store.append_history(RewardHistory("Order ORD-1", 3, clock()))).unwrap()
        missing = await store.mark_redeemed(99)
        return seeded, reseeded, rewards, first, second, (await store.list_history()).unwrap(), missing

    seeded, reseeded, rewards, first, second, history, missing = with_db(scenario)

    assert seeded == 14
    assert reseeded == 0
    assert [r.id for r in rewards if r.redeemed] == [2]
    assert (first.id, second.id) == (1, 2)
    assert history == [first, second]
    assert isinstance(missing, Error)


@pytest.mark.integration
def test_place_order_against_sqlite(run, catalog):
    async def scenario():
        app = (await CodeCup.sqlite(catalog=catalog)).unwrap()
        try:
            await app.change_address("3 Cong Quynh")
            await app.add_to_cart(1, FANCY, 2)
            placed = (await app.place_order()).unwrap()
            stored = (await app.orders.get_order(placed.order.id)).unwrap()
            ongoing = (await app.orders.ongoing_orders()).unwrap()
            cart = (await app.cart_store.load()).unwrap()
            account = (await app.user_store.load()).unwrap()
            history = (await app.rewards.history()).unwrap()
            return placed, stored, ongoing, cart, account, history
        finally:
            await app.close()

    placed, stored, ongoing, cart, account, history = run(scenario())

    assert stored == placed.order
    assert [o.id for o in ongoing] == [placed.order.id]
    assert cart.is_empty
    assert account.points == 2
    assert account.stamps == 2
    assert account.address == "3 Cong Quynh"
    assert [h.points for h in history] == [2]


@pytest.mark.integration
def test_workflow_listing_from_sql(with_db, latte, clock):
    async def scenario(sf):
        workflow = OrderWorkflow(SqlOrderStore(sf), SqlCartStore(sf), SqlUserStore(sf), SqlRewardStore(sf), clock=clock)
        cart = CartAggregator()
        account = LoyaltyAccount(LoyaltyState(address="1 Hang Bai"))
        ids = []
        for _ in range(2):
            cart.add_item(latte, CoffeeOptions())
            ids.append((await workflow.place_order(cart, account)).unwrap().order.id)
        await workflow.cancel_order(ids[0])
        return ids, (await workflow.order_history()).unwrap(), (await workflow.ongoing_orders()).unwrap()

    ids, history, ongoing = with_db(scenario)

    assert [o.id for o in history] == [ids[0]]
    assert [o.id for o in ongoing] == [ids[1]]
    assert history[0].status is OrderStatus.CANCELLED
    assert history[0].created_at < ongoing[0].created_at
    assert all(o.created_at.tzinfo is timezone.utc for o in history + ongoing)


@pytest.mark.integration
def test_fresh_sqlite_account_uses_configured_card_size(run, latte):
    async def scenario():
        app = (await CodeCup.sqlite(settings=Settings(max_stamps=10))).unwrap()
        try:
            app.cart.add_item(latte, CoffeeOptions(), 9)
            await app.change_address("3 Cong Quynh")
            placed = (await app.place_order()).unwrap()
            stored = (await app.user_store.load()).unwrap()
            return app.account.max_stamps, placed.stamps, stored
        finally:
            await app.close()

    max_stamps, stamps, stored = run(scenario())

    assert max_stamps == 10
    assert stamps == 9
    assert stored.max_stamps == 10
