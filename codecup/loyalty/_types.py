"""
Loyalty types.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum


class Tier(Enum):
    """Membership tier. Derived from the points balance, never stored."""

    MEMBER = "Member"
    GOLD = "Gold"

    @property
    def display_name(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class TierPolicy:
    threshold: int = 1000
    multiplier: Decimal = Decimal("1.5")

    def tier_for(self, points: int) -> Tier:
        return Tier.GOLD if points >= self.threshold else Tier.MEMBER

    def multiplier_for(self, tier: Tier) -> Decimal:
        return self.multiplier if tier is Tier.GOLD else Decimal(1)


@dataclass(frozen=True, slots=True)
class LoyaltyState:
    """Persisted form of an account, as exchanged with UserStore."""

    points: int = 0
    stamps: int = 0
    vouchers: int = 0
    max_stamps: int = 8
    address: str = ""


__all__ = ("Tier", "TierPolicy", "LoyaltyState")
