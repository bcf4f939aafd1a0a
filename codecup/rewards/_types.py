"""
Reward catalog and ledger types.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from codecup._types import RewardId


class RewardKind(Enum):
    EARNED = "EARNED"
    REDEEMED = "REDEEMED"


@dataclass(frozen=True, slots=True)
class Reward:
    id: RewardId
    label: str
    points_cost: int
    valid_until: str = "No expiry"
    redeemed: bool = False


@dataclass(frozen=True, slots=True)
class RewardHistory:
    """Append-only ledger entry. ``points`` is signed: negative for redemptions."""

    label: str
    points: int
    created_at: datetime
    kind: RewardKind = RewardKind.EARNED
    id: int | None = None  # assigned by the store on append


__all__ = ("RewardKind", "Reward", "RewardHistory")
