"""
Saga — multi-step units of work with compensation.

    from codecup import saga as S

    work = (
        S.from_result("insert-order", lambda: orders.insert(order), on_error, compensate=undo_insert)
        .then(S.from_result("save-account", lambda: users.save(state), on_error, compensate=undo_save))
    )
    result = await S.run(work)
"""

from __future__ import annotations

from codecup.saga._types import (
    Compensator,
    SagaStep,
    Saga,
    SagaResult,
    SagaError,
)
from codecup.saga._step import from_async, from_result
from codecup.saga._run import run, run_step, run_compensators

__all__ = (
    "Compensator",
    "SagaStep",
    "Saga",
    "SagaResult",
    "SagaError",
    "from_async",
    "from_result",
    "run",
    "run_step",
    "run_compensators",
)
