"""
codecup — order placement and loyalty accounting for a coffee shop.

    from codecup import pricing as P   # Option surcharges, integer money
    from codecup import saga as S      # Multi-step work with rollback
    from codecup import CodeCup        # Composition root
"""

from codecup import saga
from codecup import pricing
from codecup.catalog import Catalog, Coffee, CoffeeCategory
from codecup.cart import CartAggregator, Cart, CartItem, CartTotals
from codecup.loyalty import LoyaltyAccount, LoyaltyState, Tier
from codecup.orders import Order, OrderStatus, OrderWorkflow, PlaceOrderResult
from codecup.rewards import Reward, RewardHistory, RewardKind, RewardRedemption
from codecup.errors import (
    ErrorCode,
    CodecupError,
    ValidationError,
    NotFoundError,
    StateError,
    StoreError,
)
from codecup.config import Settings, configure_logging
from codecup.app import CodeCup

__version__ = "0.1.0"

__all__ = (
    "saga",
    "pricing",
    "Catalog",
    "Coffee",
    "CoffeeCategory",
    "CartAggregator",
    "Cart",
    "CartItem",
    "CartTotals",
    "LoyaltyAccount",
    "LoyaltyState",
    "Tier",
    "Order",
    "OrderStatus",
    "OrderWorkflow",
    "PlaceOrderResult",
    "Reward",
    "RewardHistory",
    "RewardKind",
    "RewardRedemption",
    "ErrorCode",
    "CodecupError",
    "ValidationError",
    "NotFoundError",
    "StateError",
    "StoreError",
    "Settings",
    "configure_logging",
    "CodeCup",
)
