"""
RewardRedemption — spend points on catalog rewards, trade a full stamp card
for a voucher.

Both operations share the checkout lock with ``OrderWorkflow.place_order``
and run their mutations as a saga, so a store failure leaves the account,
the catalog and the ledger as they were.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from kungfu import Result, Ok, Error

from codecup import saga as S
from codecup._types import Clock, RewardId, utc_now
from codecup.errors import CodecupError, Errors, StoreError
from codecup.loyalty import LoyaltyAccount, LoyaltyState
from codecup.rewards._types import Reward, RewardHistory, RewardKind

if TYPE_CHECKING:
    from codecup.stores import RewardStore, UserStore

logger = logging.getLogger(__name__)


def voucher_label(voucher_value: int, stamps: int) -> str:
    return f"Voucher {voucher_value // 1000}K ({stamps} stamps)"


class RewardRedemption:
    def __init__(
        self,
        rewards: RewardStore,
        users: UserStore,
        lock: asyncio.Lock | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._rewards = rewards
        self._users = users
        self._lock = lock or asyncio.Lock()
        self._clock = clock

    # ─── catalog ─────────────────────────────────────────────────────────────

    async def available_rewards(self) -> Result[list[Reward], StoreError]:
        match await self._rewards.list_rewards():
            case Ok(rewards):
                return Ok([reward for reward in rewards if not reward.redeemed])
            case Error(e):
                return Error(e)

    async def history(self) -> Result[list[RewardHistory], StoreError]:
        """Ledger entries, newest first."""
        match await self._rewards.list_history():
            case Ok(entries):
                return Ok(sorted(entries, key=lambda entry: (entry.created_at, entry.id or 0), reverse=True))
            case Error(e):
                return Error(e)

    # ─── redeem ──────────────────────────────────────────────────────────────

    async def redeem(self, reward_id: RewardId, account: LoyaltyAccount) -> Result[RewardHistory, CodecupError]:
        """
        Spend ``reward.points_cost`` on a catalog reward.

        Fails with REWARD_NOT_FOUND, ALREADY_REDEEMED or INSUFFICIENT_POINTS
        before anything changes. On success the reward is marked redeemed and
        a REDEEMED entry with a negative delta is returned.
        """
        async with self._lock:
            match await self._rewards.list_rewards():
                case Error(e):
                    return Error(e)
                case Ok(rewards):
                    reward = next((r for r in rewards if r.id == reward_id), None)

            if reward is None:
                return Error(Errors.reward_not_found(reward_id))
            if reward.redeemed:
                return Error(Errors.already_redeemed(reward_id))
            if account.points < reward.points_cost:
                return Error(Errors.insufficient_points(reward.points_cost, account.points))

            previous = account.snapshot()

            async def deduct() -> Result[LoyaltyState, CodecupError]:
                match account.use_reward_points(reward.points_cost):
                    case Ok(_):
                        return Ok(previous)
                    case Error(e):
                        return Error(e)

            entry = RewardHistory(
                label=reward.label,
                points=-reward.points_cost,
                created_at=self._clock(),
                kind=RewardKind.REDEEMED,
            )
            work = (
                S.from_result(
                    "deduct-points",
                    deduct,
                    on_error=Errors.raised_in("deduct-points"),
                    compensate=self._restore(account),
                )
                .then(S.from_result(
                    "save-account",
                    lambda: self._users.save(account.snapshot()),
                    on_error=Errors.raised_in("save-account"),
                    compensate=lambda _: self._users.save(previous),
                ))
                .then(S.from_result(
                    "mark-redeemed",
                    lambda: self._rewards.mark_redeemed(reward.id),
                    on_error=Errors.raised_in("mark-redeemed"),
                    compensate=lambda _: self._rewards.mark_redeemed(reward.id, redeemed=False),
                ))
                .then(S.from_result(
                    "record-redeemed",
                    lambda: self._rewards.append_history(entry),
                    on_error=Errors.raised_in("record-redeemed"),
                ))
            )
            result = await self._finish(work)
            if isinstance(result, Ok):
                logger.info(
                    "reward %s (%s) redeemed for %s points, balance %s",
                    reward.id, reward.label, reward.points_cost, account.points,
                )
            return result

    async def redeem_stamps(self, account: LoyaltyAccount) -> Result[RewardHistory, CodecupError]:
        """Trade a full stamp card for one voucher."""
        async with self._lock:
            if not account.is_card_full:
                return Error(Errors.insufficient_stamps(account.max_stamps, account.stamps))

            previous = account.snapshot()

            async def convert() -> LoyaltyState:
                account.reset_stamps()
                account.add_voucher()
                return previous

            entry = RewardHistory(
                label=voucher_label(account.voucher_value, account.max_stamps),
                points=0,
                created_at=self._clock(),
                kind=RewardKind.EARNED,
            )
            work = (
                S.from_async(
                    "convert-stamps",
                    convert,
                    on_error=Errors.raised_in("convert-stamps"),
                    compensate=self._restore(account),
                )
                .then(S.from_result(
                    "save-account",
                    lambda: self._users.save(account.snapshot()),
                    on_error=Errors.raised_in("save-account"),
                    compensate=lambda _: self._users.save(previous),
                ))
                .then(S.from_result(
                    "record-voucher",
                    lambda: self._rewards.append_history(entry),
                    on_error=Errors.raised_in("record-voucher"),
                ))
            )
            result = await self._finish(work)
            if isinstance(result, Ok):
                logger.info("stamp card redeemed, vouchers %s", account.vouchers)
            return result

    # ─── internals ───────────────────────────────────────────────────────────

    @staticmethod
    def _restore(account: LoyaltyAccount) -> Callable[[LoyaltyState], object]:
        async def compensate(state: LoyaltyState) -> None:
            account.restore(state)

        return compensate

    @staticmethod
    async def _finish(work: S.Saga[CodecupError]) -> Result[RewardHistory, CodecupError]:
        match await S.run(work):
            case Ok(done):
                return Ok(done.values[-1])
            case Error(failure):
                logger.warning("redemption rolled back after %r failed", failure.step_failed)
                return Error(Errors.rolled_back(failure.error, failure.step_failed, failure.rollback_complete))


__all__ = ("RewardRedemption", "voucher_label")
