"""
Catalog — coffee reference data.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from kungfu import Result, Ok, Error

from codecup._types import CoffeeId
from codecup.errors import Errors, NotFoundError


class CoffeeCategory(Enum):
    COFFEE = "coffee"
    TEA = "tea"
    FREEZE = "freeze"


@dataclass(frozen=True, slots=True)
class Coffee:
    id: CoffeeId
    name: str
    base_price: int | float | Decimal = 35000  # VND, rounded by pricing
    description: str = ""
    category: CoffeeCategory = CoffeeCategory.COFFEE
    rating: float = 4.5


class Catalog:
    """In-memory menu. Insertion order is menu order."""

    def __init__(self, coffees: Iterable[Coffee] = ()) -> None:
        self._coffees: dict[CoffeeId, Coffee] = {c.id: c for c in coffees}

    def menu(self) -> list[Coffee]:
        return list(self._coffees.values())

    def get(self, coffee_id: CoffeeId) -> Result[Coffee, NotFoundError]:
        coffee = self._coffees.get(coffee_id)
        if coffee is None:
            return Error(Errors.coffee_not_found(coffee_id))
        return Ok(coffee)

    def search(self, query: str) -> list[Coffee]:
        needle = query.strip().casefold()
        if not needle:
            return self.menu()
        return [c for c in self._coffees.values() if needle in c.name.casefold()]


__all__ = ("CoffeeCategory", "Coffee", "Catalog")
