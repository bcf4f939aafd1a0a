import asyncio
import logging
from collections.abc import Callable, Coroutine
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest
from kungfu import Error

from codecup.cart import CartAggregator
from codecup.catalog import Catalog, Coffee
from codecup.config import Settings
from codecup.errors import Errors
from codecup.loyalty import LoyaltyAccount, LoyaltyState, TierPolicy
from codecup.orders import OrderWorkflow
from codecup.rewards import RewardRedemption
from codecup.stores import MemoryCartStore, MemoryOrderStore, MemoryRewardStore, MemoryUserStore


@pytest.fixture
def run() -> Callable[[Coroutine[Any, Any, Any]], Any]:
    """Drive one coroutine to completion on a fresh event loop."""
    return asyncio.run


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def latte() -> Coffee:
    return Coffee(id=1, name="Latte", base_price=35000)


@pytest.fixture
def americano() -> Coffee:
    return Coffee(id=2, name="Americano", base_price=30000)


@pytest.fixture
def catalog(latte, americano) -> Catalog:
    return Catalog([latte, americano, Coffee(id=3, name="Matcha Latte", base_price=45000)])


@pytest.fixture
def cart(settings) -> CartAggregator:
    return CartAggregator(delivery_fee=settings.delivery_fee)


def _account(settings: Settings, **state: Any) -> LoyaltyAccount:
    state.setdefault("address", "12 Nguyen Hue, District 1")
    return LoyaltyAccount(
        LoyaltyState(**state),
        tiers=TierPolicy(settings.gold_threshold, settings.gold_multiplier),
        voucher_value=settings.voucher_value,
    )


@pytest.fixture
def account(settings) -> LoyaltyAccount:
    return _account(settings)


@pytest.fixture
def make_account(settings) -> Callable[..., LoyaltyAccount]:
    """``make_account(points=1200, stamps=7)``"""
    return lambda **state: _account(settings, **state)


class FixedClock:
    """Starts at a fixed instant and moves one minute per call."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        current = self.now
        self.now += timedelta(minutes=1)
        return current


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def stores() -> dict[str, Any]:
    return {
        "orders": MemoryOrderStore(),
        "carts": MemoryCartStore(),
        "users": MemoryUserStore(),
        "rewards": MemoryRewardStore(),
    }


@pytest.fixture
def lock() -> asyncio.Lock:
    return asyncio.Lock()


@pytest.fixture
def workflow(stores, settings, clock) -> OrderWorkflow:
    ids = iter(f"ORD-{n:08X}" for n in range(1, 1000))
    return OrderWorkflow(
        stores["orders"],
        stores["carts"],
        stores["users"],
        stores["rewards"],
        settings,
        clock=clock,
        id_factory=lambda: next(ids),
    )


@pytest.fixture
def redemption(stores, clock) -> RewardRedemption:
    return RewardRedemption(stores["rewards"], stores["users"], clock=clock)


class Failing:
    """
    Wraps a store and makes the named methods fail.

    ``mode="error"`` returns a StoreError, ``mode="raise"`` raises.
    """

    def __init__(self, inner: Any, *methods: str, mode: str = "error") -> None:
        self._inner = inner
        self._methods = set(methods)
        self._mode = mode
        self.calls: list[str] = []

    def __getattr__(self, name: str) -> Any:
        attr = getattr(self._inner, name)
        if name not in self._methods:
            return attr

        async def failing(*args: Any, **kwargs: Any) -> Any:
            self.calls.append(name)
            if self._mode == "raise":
                raise ConnectionError(f"{name} unavailable")
            return Error(Errors.store_failure(f"{name} unavailable"))

        return failing


@pytest.fixture
def failing() -> type[Failing]:
    return Failing


class Yielding:
    """
    Wraps a store and hands control back to the event loop before every call,
    the way a networked store would.
    """

    def __init__(self, inner: Any) -> None:
        self._inner = inner

    def __getattr__(self, name: str) -> Any:
        attr = getattr(self._inner, name)
        if not callable(attr):
            return attr

        async def yielding(*args: Any, **kwargs: Any) -> Any:
            await asyncio.sleep(0)
            return await attr(*args, **kwargs)

        return yielding


@pytest.fixture
def yielding() -> type[Yielding]:
    return Yielding


@pytest.fixture
def yielding_stores() -> dict[str, Any]:
    return {
        "orders": Yielding(MemoryOrderStore()),
        "carts": Yielding(MemoryCartStore()),
        "users": Yielding(MemoryUserStore()),
        "rewards": Yielding(MemoryRewardStore()),
    }


@pytest.fixture
def codecup_logs(caplog):
    caplog.set_level(logging.DEBUG, logger="codecup")
    return caplog
