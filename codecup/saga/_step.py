"""
Saga step creation.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable

from combinators import lift as L
from kungfu import Error, LazyCoroResult, Ok, Result

from codecup.saga._types import Compensator, SagaStep

# ═══════════════════════════════════════════════════════════════════════════════
# from_async() — Step from a plain async callable
# ═══════════════════════════════════════════════════════════════════════════════


def from_async[T, E](
    name: str,
    action: Callable[[], Awaitable[T]],
    on_error: Callable[[Exception], E],
    compensate: Compensator[T] | None = None,
) -> SagaStep[T, E]:
    """
    Exceptions raised by ``action`` become ``Error(on_error(exc))``.

    Example:
        from codecup import saga as S

        convert = S.from_async(
            "convert-stamps",
            convert_card,
            on_error=Errors.raised_in("convert-stamps"),
            compensate=restore_account,
        )
    """
    return SagaStep(
        name=name,
        action=L.catching_async(action, on_error=on_error),
        compensate=compensate,
    )


# ═══════════════════════════════════════════════════════════════════════════════
# from_result() — Step from an async callable that already returns Result
# ═══════════════════════════════════════════════════════════════════════════════


def from_result[T, E](
    name: str,
    action: Callable[[], Awaitable[Result[T, E]]],
    on_error: Callable[[Exception], E],
    compensate: Compensator[T] | None = None,
) -> SagaStep[T, E]:
    """
    Store calls return Result themselves; a raise is lifted the same way as in
    ``from_async`` and the nested Result is flattened.
    """

    async def flattened() -> Result[T, E]:
        match await L.catching_async(action, on_error=on_error):
            case Ok(inner):
                return inner
            case Error(e):
                return Error(e)

    return SagaStep(name=name, action=LazyCoroResult(flattened), compensate=compensate)


__all__ = ("from_async", "from_result")
