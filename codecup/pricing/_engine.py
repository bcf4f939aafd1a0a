"""
Pricing engine — integer currency arithmetic.

Every component is rounded to the currency unit before it is combined with
anything else. Summing fractional values and rounding once at the end is not
allowed: it can disagree with the per-line amounts shown elsewhere.
"""

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP

from codecup._types import Money
from codecup.pricing._options import CoffeeOptions, Shot, Size, Temperature

# ═══════════════════════════════════════════════════════════════════════════════
# Surcharges (VND)
# ═══════════════════════════════════════════════════════════════════════════════

DOUBLE_SHOT_EXTRA: Money = 10000
LARGE_SIZE_EXTRA: Money = 10000
SMALL_SIZE_DISCOUNT: Money = 5000
ICED_EXTRA: Money = 5000

# ═══════════════════════════════════════════════════════════════════════════════
# Rounding
# ═══════════════════════════════════════════════════════════════════════════════

_UNIT = Decimal(1)


def to_money(amount: int | float | Decimal) -> Money:
    """Round to the nearest currency unit, halves away from zero."""
    if isinstance(amount, int):
        return amount
    return int(Decimal(amount).quantize(_UNIT, rounding=ROUND_HALF_UP))


# ═══════════════════════════════════════════════════════════════════════════════
# Prices
# ═══════════════════════════════════════════════════════════════════════════════


def extra_price(options: CoffeeOptions) -> Money:
    """Signed surcharge for the options. Ice level is never priced."""
    extra = 0
    if options.shot is Shot.DOUBLE:
        extra += DOUBLE_SHOT_EXTRA
    match options.size:
        case Size.SMALL:
            extra -= SMALL_SIZE_DISCOUNT
        case Size.LARGE:
            extra += LARGE_SIZE_EXTRA
        case Size.MEDIUM:
            pass
    if options.temperature is Temperature.ICED:
        extra += ICED_EXTRA
    return extra


def unit_price(base_price: int | float | Decimal, options: CoffeeOptions) -> Money:
    return to_money(base_price) + extra_price(options)


def line_total(
    base_price: int | float | Decimal,
    options: CoffeeOptions,
    quantity: int,
) -> Money:
    """unit_price × quantity. Quantity is the caller's to validate."""
    return unit_price(base_price, options) * quantity


__all__ = (
    "DOUBLE_SHOT_EXTRA",
    "LARGE_SIZE_EXTRA",
    "SMALL_SIZE_DISCOUNT",
    "ICED_EXTRA",
    "to_money",
    "extra_price",
    "unit_price",
    "line_total",
)
