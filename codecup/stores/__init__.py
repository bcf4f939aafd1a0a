"""
Stores — persistence contracts and their implementations.

    from codecup.stores import MemoryOrderStore, SqlOrderStore, create_database
"""

from __future__ import annotations

from codecup.stores._protocols import CartStore, OrderStore, UserStore, RewardStore
from codecup.stores._memory import (
    DEFAULT_REWARDS,
    MemoryCartStore,
    MemoryOrderStore,
    MemoryUserStore,
    MemoryRewardStore,
)
from codecup.stores._sqlalchemy import (
    Base,
    SqlCartStore,
    SqlOrderStore,
    SqlUserStore,
    SqlRewardStore,
    create_database,
)

__all__ = (
    # Protocols
    "CartStore",
    "OrderStore",
    "UserStore",
    "RewardStore",
    # Memory
    "DEFAULT_REWARDS",
    "MemoryCartStore",
    "MemoryOrderStore",
    "MemoryUserStore",
    "MemoryRewardStore",
    # SQLAlchemy
    "Base",
    "SqlCartStore",
    "SqlOrderStore",
    "SqlUserStore",
    "SqlRewardStore",
    "create_database",
)
