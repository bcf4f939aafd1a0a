"""
Saga execution with automatic rollback.
"""

from __future__ import annotations

import logging

from kungfu import Result, Ok, Error

from codecup.saga._types import Compensator, Saga, SagaError, SagaResult, SagaStep

logger = logging.getLogger(__name__)

# ═══════════════════════════════════════════════════════════════════════════════
# Recorded Compensator
# ═══════════════════════════════════════════════════════════════════════════════

type RecordedCompensator = tuple[str, object, Compensator[object]]

# ═══════════════════════════════════════════════════════════════════════════════
# run_step() — Execute single step
# ═══════════════════════════════════════════════════════════════════════════════


async def run_step[T, E](
    step: SagaStep[T, E],
    compensators: list[RecordedCompensator],
) -> Result[T, E]:
    """Execute single step, recording compensator on success."""
    result = await step.action
    match result:
        case Ok(value):
            if step.compensate is not None:
                compensators.append((step.name, value, step.compensate))
            return Ok(value)
        case Error(e):
            return Error(e)


# ═══════════════════════════════════════════════════════════════════════════════
# run_compensators() — Rollback
# ═══════════════════════════════════════════════════════════════════════════════


async def run_compensators(compensators: list[RecordedCompensator]) -> tuple[int, int]:
    """Run compensators in reverse. Returns (run, failed)."""
    comp_run = 0
    comp_failed = 0

    for name, value, comp in reversed(compensators):
        try:
            outcome = await comp(value)
        except Exception:
            logger.exception("compensation for step %r raised", name)
            comp_failed += 1
            continue

        if isinstance(outcome, Error):
            logger.error("compensation for step %r failed: %s", name, outcome)
            comp_failed += 1
        else:
            logger.debug("compensated step %r", name)
            comp_run += 1

    return comp_run, comp_failed


# ═══════════════════════════════════════════════════════════════════════════════
# run() — Execute Saga
# ═══════════════════════════════════════════════════════════════════════════════


async def run[E](saga: Saga[E]) -> Result[SagaResult, SagaError[E]]:
    """
    Execute steps in order with automatic rollback on failure.

    On success: returns SagaResult with every step's value.
    On failure: runs recorded compensators in reverse, returns SagaError.

    Example:
        result = await S.run(insert_order.then(clear_cart).then(save_account))

        match result:
            case Ok(r):
                order = r.values[0]
            case Error(e):
                print(f"{e.step_failed} failed, rolled back: {e.rollback_complete}")
    """
    compensators: list[RecordedCompensator] = []
    values: list[object] = []

    for index, current in enumerate(saga.steps, start=1):
        match await run_step(current, compensators):
            case Ok(value):
                values.append(value)
            case Error(error):
                logger.warning("saga step %r failed: %s", current.name, error)
                comp_run, comp_failed = await run_compensators(compensators)
                return Error(SagaError(
                    error=error,
                    step_failed=current.name,
                    steps_executed=index,
                    compensators_run=comp_run,
                    compensators_failed=comp_failed,
                    rollback_complete=comp_failed == 0,
                ))

    return Ok(SagaResult(
        values=tuple(values),
        steps_executed=len(saga.steps),
        compensators_recorded=len(compensators),
    ))


__all__ = ("run", "run_step", "run_compensators")
