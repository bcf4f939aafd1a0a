"""
Coffee customization options.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Shot(Enum):
    SINGLE = "Single"
    DOUBLE = "Double"

    @property
    def display_name(self) -> str:
        return self.value


class Temperature(Enum):
    HOT = "Hot"
    ICED = "Iced"

    @property
    def display_name(self) -> str:
        return self.value


class Size(Enum):
    SMALL = "S"
    MEDIUM = "M"
    LARGE = "L"

    @property
    def display_name(self) -> str:
        return self.value


class Ice(Enum):
    LESS = "Less"
    NORMAL = "Normal"
    FULL = "Full"

    @property
    def display_name(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class CoffeeOptions:
    """
    Four independent choices. Compared by value, so two lines with equal
    options for the same coffee merge in the cart.
    """

    shot: Shot = Shot.SINGLE
    temperature: Temperature = Temperature.ICED
    size: Size = Size.MEDIUM
    ice: Ice = Ice.FULL

    def display(self) -> str:
        return (
            f"{self.shot.display_name} | {self.temperature.display_name} | "
            f"{self.size.display_name} | {self.ice.display_name} ice"
        )


__all__ = ("Shot", "Temperature", "Size", "Ice", "CoffeeOptions")
