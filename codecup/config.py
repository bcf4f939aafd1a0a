"""
Settings and logging setup.

    settings = Settings.from_env()      # CODECUP_DELIVERY_FEE=20000 ...
    configure_logging(settings)
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

ENV_PREFIX = "CODECUP_"


class Settings(BaseModel):
    """Loyalty and checkout constants. Money values are in VND."""

    model_config = ConfigDict(frozen=True)

    delivery_fee: int = Field(default=15000, ge=0)
    points_to_currency_rate: int = Field(default=100, gt=0)
    gold_threshold: int = Field(default=1000, ge=0)
    gold_multiplier: Decimal = Field(default=Decimal("1.5"), ge=1)
    max_stamps: int = Field(default=8, gt=0)
    voucher_value: int = Field(default=2000, gt=0)
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """Build settings from ``CODECUP_<FIELD>`` variables; unset fields keep defaults."""
        env = os.environ if environ is None else environ
        values: dict[str, str] = {}
        for name in cls.model_fields:
            raw = env.get(f"{ENV_PREFIX}{name.upper()}")
            if raw is not None:
                values[name] = raw
        return cls.model_validate(values)


def configure_logging(settings: Settings) -> logging.Logger:
    logger = logging.getLogger("codecup")
    logger.setLevel(settings.log_level.upper())
    return logger


__all__ = ("Settings", "configure_logging", "ENV_PREFIX")
