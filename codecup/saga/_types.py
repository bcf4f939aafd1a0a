"""
Saga types — core data structures.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from kungfu import LazyCoroResult

# ═══════════════════════════════════════════════════════════════════════════════
# Compensator — Undo Action
# ═══════════════════════════════════════════════════════════════════════════════

type Compensator[T] = Callable[[T], Awaitable[object]]
"""
Receives the step's result and undoes it.

May return a kungfu Result; an ``Error`` counts as a failed compensation.
"""

# ═══════════════════════════════════════════════════════════════════════════════
# SagaStep — Single Named Step with Compensation
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class SagaStep[T, E]:
    """
    A single saga step: action + compensator.

    When the action succeeds, the compensator is recorded.
    If a later step fails, recorded compensators run in reverse.
    """

    name: str
    action: LazyCoroResult[T, E]
    compensate: Compensator[T] | None = None

    def then[U](self, other: SagaStep[U, E]) -> Saga[E]:
        return Saga((self, other))


# ═══════════════════════════════════════════════════════════════════════════════
# Saga — Ordered Steps
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Saga[E]:
    steps: tuple[SagaStep[object, E], ...]

    def then[U](self, other: SagaStep[U, E]) -> Saga[E]:
        return Saga((*self.steps, other))


# ═══════════════════════════════════════════════════════════════════════════════
# Result Types
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class SagaResult:
    """Successful saga result: one value per step, in order."""

    values: tuple[object, ...]
    steps_executed: int
    compensators_recorded: int


@dataclass(frozen=True, slots=True)
class SagaError[E]:
    """Saga error with rollback status."""

    error: E
    step_failed: str
    steps_executed: int
    compensators_run: int
    compensators_failed: int
    rollback_complete: bool


__all__ = (
    "Compensator",
    "SagaStep",
    "Saga",
    "SagaResult",
    "SagaError",
)
