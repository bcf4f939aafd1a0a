"""
Core types for codecup.

Re-exports from kungfu + domain-wide aliases.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone

# Re-export from kungfu
from kungfu import Result, Ok, Error, LazyCoroResult

# ═══════════════════════════════════════════════════════════════════════════════
# Money
# ═══════════════════════════════════════════════════════════════════════════════

type Money = int
"""Amount in the smallest currency unit (VND has no fractional unit)."""

# ═══════════════════════════════════════════════════════════════════════════════
# Identity
# ═══════════════════════════════════════════════════════════════════════════════

type CoffeeId = int
type CartItemId = int
type OrderId = str
type RewardId = int

# ═══════════════════════════════════════════════════════════════════════════════
# Clock
# ═══════════════════════════════════════════════════════════════════════════════

type Clock = Callable[[], datetime]
"""Source of timestamps. Injected so tests can pin time."""


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    # Re-exports from kungfu
    "Result",
    "Ok",
    "Error",
    "LazyCoroResult",
    # Aliases
    "Money",
    "CoffeeId",
    "CartItemId",
    "OrderId",
    "RewardId",
    "Clock",
    "utc_now",
)
