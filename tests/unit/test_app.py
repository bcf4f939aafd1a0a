import asyncio

import pytest
from kungfu import Ok, Error

from codecup import CodeCup, Settings
from codecup.cart import CartItem
from codecup.errors import ErrorCode
from codecup.loyalty import LoyaltyState
from codecup.pricing import CoffeeOptions, Size
from codecup.stores import MemoryCartStore, MemoryOrderStore, MemoryRewardStore, MemoryUserStore


@pytest.mark.unit
def test_checkout_through_the_composition_root(run, catalog):
    async def scenario():
        app = (await CodeCup.in_memory(catalog=catalog)).unwrap()
        await app.change_address("21 Pasteur")
        await app.add_to_cart(1, CoffeeOptions(size=Size.LARGE), 2)
        await app.add_to_cart(2)
        stored_cart = (await app.cart_store.load()).unwrap()
        placed = (await app.place_order()).unwrap()
        return app, stored_cart, placed

    app, stored_cart, placed = run(scenario())

    assert stored_cart.item_count == 3
    assert placed.order.address == "21 Pasteur"
    assert placed.order.total == 2 * 50000 + 35000
    assert app.cart.snapshot().is_empty
    assert app.account.stamps == 3


@pytest.mark.unit
def test_unknown_coffee_is_not_added(run, catalog):
    async def scenario():
        app = (await CodeCup.in_memory(catalog=catalog)).unwrap()
        return app, await app.add_to_cart(404)

    app, result = run(scenario())

    match result:
        case Error(e):
            assert e.code is ErrorCode.COFFEE_NOT_FOUND
        case Ok(_):
            pytest.fail("unknown coffee added")
    assert app.cart.snapshot().is_empty


@pytest.mark.unit
def test_cart_edits_are_persisted(run, catalog):
    async def scenario():
        app = (await CodeCup.in_memory(catalog=catalog)).unwrap()
        item = (await app.add_to_cart(1, quantity=2)).unwrap()
        await app.update_cart_item(item.id, 5)
        after_update = (await app.cart_store.load()).unwrap()
        await app.remove_cart_item(item.id)
        after_remove = (await app.cart_store.load()).unwrap()
        return after_update, after_remove

    after_update, after_remove = run(scenario())

    assert after_update.item_count == 5
    assert after_remove.is_empty


@pytest.mark.unit
def test_open_loads_persisted_state(run, latte):
    saved = (CartItem(id=7, coffee=latte, options=CoffeeOptions(), quantity=1),)

    async def scenario():
        return await CodeCup.open(
            carts=MemoryCartStore(saved),
            orders=MemoryOrderStore(),
            users=MemoryUserStore(LoyaltyState(points=1500, stamps=8, address="1 Ly Tu Trong")),
            rewards=MemoryRewardStore(),
            settings=Settings(delivery_fee=20000),
        )

    app = run(scenario()).unwrap()

    assert app.cart.snapshot().items == saved
    assert app.cart.totals().delivery_fee == 20000
    assert app.account.points == 1500
    assert app.account.is_card_full


@pytest.mark.unit
def test_workflow_and_redemption_share_one_lock(run):
    app = run(CodeCup.in_memory()).unwrap()

    assert app.orders._lock is app.rewards._lock


@pytest.mark.unit
def test_redeem_through_the_composition_root(run):
    async def scenario():
        app = (await CodeCup.in_memory(settings=Settings(max_stamps=2))).unwrap()
        app.account.add_stamp()
        app.account.add_stamp()
        return app, await app.redeem_stamps(), await app.redeem(1)

    app, stamps, reward = run(scenario())

    assert isinstance(stamps, Ok)
    assert app.account.vouchers == 1
    match reward:
        case Error(e):
            assert e.code is ErrorCode.INSUFFICIENT_POINTS
        case Ok(_):
            pytest.fail("redeemed without points")


@pytest.mark.unit
def test_card_size_comes_from_settings_not_the_stored_state(run):
    async def scenario():
        return await CodeCup.open(
            carts=MemoryCartStore(),
            orders=MemoryOrderStore(),
            users=MemoryUserStore(LoyaltyState(stamps=8, max_stamps=8)),
            rewards=MemoryRewardStore(),
            settings=Settings(max_stamps=10),
        )

    app = run(scenario()).unwrap()

    assert app.account.max_stamps == 10
    assert app.account.stamps == 8
    assert not app.account.is_card_full


@pytest.mark.unit
def test_failed_cart_save_reverts_the_edit(run, catalog, failing):
    carts = failing(MemoryCartStore(), "save")

    async def scenario():
        app = (
            await CodeCup.open(
                carts=carts,
                orders=MemoryOrderStore(),
                users=MemoryUserStore(LoyaltyState(address="5 Le Loi")),
                rewards=MemoryRewardStore(),
                catalog=catalog,
            )
        ).unwrap()
        added = await app.add_to_cart(1, quantity=2)
        placed = await app.place_order()
        return app, added, placed

    app, added, placed = run(scenario())

    match added:
        case Error(e):
            assert e.code is ErrorCode.STORE_FAILURE
        case Ok(_):
            pytest.fail("add reported success")
    assert app.cart.snapshot().is_empty
    assert carts.calls == ["save"]
    match placed:
        case Error(e):
            assert e.code is ErrorCode.EMPTY_CART
        case Ok(_):
            pytest.fail("charged for an item that was never saved")


@pytest.mark.unit
def test_failed_cart_save_restores_updated_and_removed_lines(run, latte, failing):
    saved = (CartItem(id=3, coffee=latte, options=CoffeeOptions(), quantity=2),)

    async def scenario():
        app = (
            await CodeCup.open(
                carts=failing(MemoryCartStore(saved), "save"),
                orders=MemoryOrderStore(),
                users=MemoryUserStore(),
                rewards=MemoryRewardStore(),
            )
        ).unwrap()
        updated = await app.update_cart_item(3, 5)
        removed = await app.remove_cart_item(3)
        return app, updated, removed

    app, updated, removed = run(scenario())

    assert isinstance(updated, Error)
    assert isinstance(removed, Error)
    assert app.cart.snapshot().items == saved


@pytest.mark.unit
def test_failed_address_save_keeps_the_old_address(run, failing):
    users = failing(MemoryUserStore(LoyaltyState(address="5 Le Loi")), "save")

    async def scenario():
        app = (
            await CodeCup.open(
                carts=MemoryCartStore(),
                orders=MemoryOrderStore(),
                users=users,
                rewards=MemoryRewardStore(),
            )
        ).unwrap()
        return app, await app.change_address("9 Tran Hung Dao")

    app, changed = run(scenario())

    assert isinstance(changed, Error)
    assert app.account.address == "5 Le Loi"


@pytest.mark.unit
def test_checkout_and_redemption_cannot_spend_the_same_points(run, catalog, yielding):
    users = yielding(MemoryUserStore(LoyaltyState(points=100, address="5 Le Loi")))

    async def scenario():
        app = (
            await CodeCup.open(
                carts=yielding(MemoryCartStore()),
                orders=yielding(MemoryOrderStore()),
                users=users,
                rewards=yielding(MemoryRewardStore()),
                catalog=catalog,
            )
        ).unwrap()
        await app.add_to_cart(1)
        placed, redeemed = await asyncio.gather(
            app.place_order(use_points=True, points_to_use=100),
            app.redeem(4),
        )
        stored = (await users.load()).unwrap()
        available = (await app.rewards.available_rewards()).unwrap()
        return app, placed, redeemed, stored, available

    app, placed, redeemed, stored, available = run(scenario())

    assert placed.unwrap().points_used == 100
    match redeemed:
        case Error(e):
            assert e.code is ErrorCode.INSUFFICIENT_POINTS
        case Ok(_):
            pytest.fail("the same points were spent twice")
    assert app.account.points == 1
    assert stored.points == 1
    assert 4 in [reward.id for reward in available]
