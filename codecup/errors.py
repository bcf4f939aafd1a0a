"""
Error taxonomy.

Errors are values: every fallible operation returns ``Result[T, CodecupError]``
and nothing here is raised across a component boundary.

    ValidationError — rejected input, detected before any mutation
    NotFoundError   — unknown coffee / cart item / order / reward id
    StateError      — illegal status transition, double redemption
    StoreError      — opaque collaborator failure
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, replace
from enum import Enum

# ═══════════════════════════════════════════════════════════════════════════════
# Codes
# ═══════════════════════════════════════════════════════════════════════════════


class ErrorCode(Enum):
    EMPTY_CART = "empty_cart"
    INVALID_ADDRESS = "invalid_address"
    INVALID_QUANTITY = "invalid_quantity"
    INVALID_AMOUNT = "invalid_amount"
    INSUFFICIENT_POINTS = "insufficient_points"
    INSUFFICIENT_STAMPS = "insufficient_stamps"
    INSUFFICIENT_VOUCHERS = "insufficient_vouchers"
    COFFEE_NOT_FOUND = "coffee_not_found"
    CART_ITEM_NOT_FOUND = "cart_item_not_found"
    ORDER_NOT_FOUND = "order_not_found"
    REWARD_NOT_FOUND = "reward_not_found"
    INVALID_TRANSITION = "invalid_transition"
    ALREADY_REDEEMED = "already_redeemed"
    STORE_FAILURE = "store_failure"


# ═══════════════════════════════════════════════════════════════════════════════
# Error Types
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class CodecupError:
    code: ErrorCode
    message: str

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


@dataclass(frozen=True, slots=True)
class ValidationError(CodecupError):
    field: str | None = None


@dataclass(frozen=True, slots=True)
class NotFoundError(CodecupError):
    pass


@dataclass(frozen=True, slots=True)
class StateError(CodecupError):
    pass


@dataclass(frozen=True, slots=True)
class StoreError(CodecupError):
    """
    Collaborator failure.

    step / rollback_complete are filled in when the failure happened inside a
    multi-step operation and compensation was attempted.
    """

    cause: Exception | None = None
    step: str | None = None
    rollback_complete: bool | None = None


# ═══════════════════════════════════════════════════════════════════════════════
# Factories
# ═══════════════════════════════════════════════════════════════════════════════


class Errors:
    @staticmethod
    def empty_cart() -> ValidationError:
        return ValidationError(ErrorCode.EMPTY_CART, "Cannot place order. Cart is empty.")

    @staticmethod
    def invalid_address() -> ValidationError:
        return ValidationError(
            ErrorCode.INVALID_ADDRESS,
            "Delivery address cannot be empty",
            field="address",
        )

    @staticmethod
    def invalid_quantity(quantity: int) -> ValidationError:
        return ValidationError(
            ErrorCode.INVALID_QUANTITY,
            f"Invalid quantity: {quantity}. Must be greater than 0",
            field="quantity",
        )

    @staticmethod
    def invalid_amount(field: str, amount: int) -> ValidationError:
        return ValidationError(
            ErrorCode.INVALID_AMOUNT,
            f"Invalid {field}: {amount}. Must not be negative",
            field=field,
        )

    @staticmethod
    def insufficient_points(required: int, available: int) -> ValidationError:
        return ValidationError(
            ErrorCode.INSUFFICIENT_POINTS,
            f"Insufficient points. Required: {required}, Available: {available}",
            field="points",
        )

    @staticmethod
    def insufficient_stamps(required: int, available: int) -> ValidationError:
        return ValidationError(
            ErrorCode.INSUFFICIENT_STAMPS,
            f"Insufficient stamps. Required: {required}, Available: {available}",
            field="stamps",
        )

    @staticmethod
    def insufficient_vouchers(required: int, available: int) -> ValidationError:
        return ValidationError(
            ErrorCode.INSUFFICIENT_VOUCHERS,
            f"Insufficient vouchers. Required: {required}, Available: {available}",
            field="vouchers",
        )

    @staticmethod
    def coffee_not_found(coffee_id: int) -> NotFoundError:
        return NotFoundError(ErrorCode.COFFEE_NOT_FOUND, f"Coffee with id {coffee_id} not found")

    @staticmethod
    def cart_item_not_found(item_id: int) -> NotFoundError:
        return NotFoundError(ErrorCode.CART_ITEM_NOT_FOUND, f"Cart item with id {item_id} not found")

    @staticmethod
    def order_not_found(order_id: str) -> NotFoundError:
        return NotFoundError(ErrorCode.ORDER_NOT_FOUND, f"Order with id {order_id} not found")

    @staticmethod
    def reward_not_found(reward_id: int) -> NotFoundError:
        return NotFoundError(ErrorCode.REWARD_NOT_FOUND, f"Reward with id {reward_id} not found")

    @staticmethod
    def invalid_transition(order_id: str, current: str, target: str) -> StateError:
        return StateError(
            ErrorCode.INVALID_TRANSITION,
            f"Order {order_id} cannot move from {current} to {target}",
        )

    @staticmethod
    def already_redeemed(reward_id: int) -> StateError:
        return StateError(ErrorCode.ALREADY_REDEEMED, f"Reward {reward_id} was already redeemed")

    @staticmethod
    def store_failure(message: str, cause: Exception | None = None) -> StoreError:
        return StoreError(ErrorCode.STORE_FAILURE, message, cause=cause)

    @staticmethod
    def raised_in(step: str) -> Callable[[Exception], StoreError]:
        """``on_error`` handler for a step whose collaborator raised."""

        def on_error(exc: Exception) -> StoreError:
            return StoreError(ErrorCode.STORE_FAILURE, f"{step} raised: {exc}", cause=exc)

        return on_error

    @staticmethod
    def rolled_back(error: CodecupError, step: str, rollback_complete: bool) -> StoreError:
        """Failure inside a multi-step operation, after compensation ran."""
        if not isinstance(error, StoreError):
            error = StoreError(ErrorCode.STORE_FAILURE, error.message)
        return replace(error, step=step, rollback_complete=rollback_complete)


__all__ = (
    "ErrorCode",
    "CodecupError",
    "ValidationError",
    "NotFoundError",
    "StateError",
    "StoreError",
    "Errors",
)
