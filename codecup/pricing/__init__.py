"""
Pricing — options, surcharges, integer money.

    from codecup import pricing as P

    P.unit_price(35000, P.CoffeeOptions(size=P.Size.LARGE))   # 50000
"""

from __future__ import annotations

from codecup.pricing._options import (
    Shot,
    Temperature,
    Size,
    Ice,
    CoffeeOptions,
)
from codecup.pricing._engine import (
    DOUBLE_SHOT_EXTRA,
    LARGE_SIZE_EXTRA,
    SMALL_SIZE_DISCOUNT,
    ICED_EXTRA,
    to_money,
    extra_price,
    unit_price,
    line_total,
)
from codecup.pricing._codec import encode_options, decode_options

__all__ = (
    "Shot",
    "Temperature",
    "Size",
    "Ice",
    "CoffeeOptions",
    "DOUBLE_SHOT_EXTRA",
    "LARGE_SIZE_EXTRA",
    "SMALL_SIZE_DISCOUNT",
    "ICED_EXTRA",
    "to_money",
    "extra_price",
    "unit_price",
    "line_total",
    "encode_options",
    "decode_options",
)
