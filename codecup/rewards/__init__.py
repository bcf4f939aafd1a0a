"""
Rewards — catalog redemption and the points ledger.

    redemption = RewardRedemption(reward_store, user_store, lock)

    await redemption.redeem(4, account)       # Cafe Latte for 100 points
    await redemption.redeem_stamps(account)   # full card -> one voucher
"""

from __future__ import annotations

from codecup.rewards._types import RewardKind, Reward, RewardHistory
from codecup.rewards._redemption import RewardRedemption, voucher_label

__all__ = (
    "RewardKind",
    "Reward",
    "RewardHistory",
    "RewardRedemption",
    "voucher_label",
)
