"""
Observable — explicit subscribe/notify for owned state.

Owners (cart, loyalty account) publish immutable snapshots after every
mutation. Listeners never get a handle to the mutable owner.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)

type Listener[T] = Callable[[T], None]
type Unsubscribe = Callable[[], None]


class Observable[T]:
    def __init__(self) -> None:
        self._listeners: list[Listener[T]] = []

    def subscribe(self, listener: Listener[T]) -> Unsubscribe:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, value: T) -> None:
        for listener in tuple(self._listeners):
            try:
                listener(value)
            except Exception:
                logger.exception("listener %r failed", listener)


__all__ = ("Observable", "Listener", "Unsubscribe")
