"""
LoyaltyAccount — points, stamps, vouchers.

Balance reads and writes happen inside one synchronous method call, so
``use_reward_points`` cannot interleave with another deduction on the same
event loop. Callers that await between a check and a deduction must hold the
shared checkout lock.
"""

from __future__ import annotations

import logging
from decimal import Decimal, ROUND_HALF_UP

from kungfu import Result, Ok, Error

from codecup._observable import Observable
from codecup._types import Money
from codecup.errors import Errors, ValidationError
from codecup.loyalty._types import LoyaltyState, Tier, TierPolicy

logger = logging.getLogger(__name__)

DEFAULT_VOUCHER_VALUE: Money = 2000


class LoyaltyAccount(Observable[LoyaltyState]):
    def __init__(
        self,
        state: LoyaltyState | None = None,
        tiers: TierPolicy | None = None,
        voucher_value: Money = DEFAULT_VOUCHER_VALUE,
    ) -> None:
        super().__init__()
        state = state or LoyaltyState()
        self._points = state.points
        self._stamps = min(state.stamps, state.max_stamps)
        self._vouchers = state.vouchers
        self._max_stamps = state.max_stamps
        self._address = state.address
        self._tiers = tiers or TierPolicy()
        self.voucher_value = voucher_value

    # ─── reads ───────────────────────────────────────────────────────────────

    @property
    def points(self) -> int:
        return self._points

    @property
    def stamps(self) -> int:
        return self._stamps

    @property
    def max_stamps(self) -> int:
        return self._max_stamps

    @property
    def vouchers(self) -> int:
        return self._vouchers

    @property
    def address(self) -> str:
        return self._address

    @property
    def tier(self) -> Tier:
        return self._tiers.tier_for(self._points)

    @property
    def multiplier(self) -> Decimal:
        return self._tiers.multiplier_for(self.tier)

    @property
    def is_card_full(self) -> bool:
        return self._stamps >= self._max_stamps

    def points_for(self, base_cups: int) -> int:
        """round(base_cups × tier multiplier), halves up."""
        earned = (Decimal(base_cups) * self.multiplier).quantize(Decimal(1), rounding=ROUND_HALF_UP)
        return int(earned)

    def snapshot(self) -> LoyaltyState:
        return LoyaltyState(
            points=self._points,
            stamps=self._stamps,
            vouchers=self._vouchers,
            max_stamps=self._max_stamps,
            address=self._address,
        )

    # ─── points ──────────────────────────────────────────────────────────────

    def earn_points(self, base_cups: int) -> int:
        earned = self.points_for(base_cups)
        self.credit_points(earned)
        return earned

    def credit_points(self, points: int) -> None:
        if points <= 0:
            return
        self._points += points
        logger.debug("credited %s points, balance %s", points, self._points)
        self._changed()

    def use_reward_points(self, amount: int) -> Result[int, ValidationError]:
        """Deduct ``amount``. Ok(remaining balance), or an error with the balance untouched."""
        if amount < 0:
            return Error(Errors.invalid_amount("points", amount))
        if self._points < amount:
            return Error(Errors.insufficient_points(amount, self._points))
        self._points -= amount
        logger.debug("deducted %s points, balance %s", amount, self._points)
        self._changed()
        return Ok(self._points)

    # ─── stamps ──────────────────────────────────────────────────────────────

    def add_stamp(self) -> int:
        """
        Add one stamp and return the new count.

        A full card rolls over: the stamp that would exceed the cap becomes
        the first stamp of the next card (count 1).
        """
        if self._stamps >= self._max_stamps:
            self._stamps = 1
        else:
            self._stamps += 1
        self._changed()
        return self._stamps

    def reset_stamps(self) -> None:
        self._stamps = 0
        self._changed()

    # ─── vouchers ────────────────────────────────────────────────────────────

    def add_voucher(self) -> int:
        self._vouchers += 1
        self._changed()
        return self._vouchers

    def use_vouchers(self, count: int) -> Result[int, ValidationError]:
        if count < 0:
            return Error(Errors.invalid_amount("vouchers", count))
        if self._vouchers < count:
            return Error(Errors.insufficient_vouchers(count, self._vouchers))
        self._vouchers -= count
        self._changed()
        return Ok(self._vouchers)

    # ─── profile / rollback ──────────────────────────────────────────────────

    def change_address(self, address: str) -> None:
        self._address = address
        self._changed()

    def restore(self, state: LoyaltyState) -> None:
        self._points = state.points
        self._stamps = min(state.stamps, state.max_stamps)
        self._vouchers = state.vouchers
        self._max_stamps = state.max_stamps
        self._address = state.address
        logger.debug("account restored to %s", state)
        self._changed()

    def _changed(self) -> None:
        self._notify(self.snapshot())


__all__ = ("LoyaltyAccount", "DEFAULT_VOUCHER_VALUE")
