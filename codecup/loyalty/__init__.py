"""
Loyalty — points balance, stamp card, tier, vouchers.

    from codecup.loyalty import LoyaltyAccount, LoyaltyState

    account = LoyaltyAccount(LoyaltyState(points=1200))
    account.tier            # Tier.GOLD
    account.earn_points(2)  # 3
"""

from __future__ import annotations

from codecup.loyalty._types import Tier, TierPolicy, LoyaltyState
from codecup.loyalty._account import LoyaltyAccount, DEFAULT_VOUCHER_VALUE

__all__ = (
    "Tier",
    "TierPolicy",
    "LoyaltyState",
    "LoyaltyAccount",
    "DEFAULT_VOUCHER_VALUE",
)
