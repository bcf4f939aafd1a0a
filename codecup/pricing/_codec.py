"""
Option codec — JSON text for storage columns.

Decoding never raises. Corrupt payloads decode to ``CoffeeOptions()``; an
unknown or missing value for one field falls back to that field's default
and leaves the other fields as decoded.
"""

from __future__ import annotations

import json
import logging
from enum import Enum

from codecup.pricing._options import CoffeeOptions, Ice, Shot, Size, Temperature

logger = logging.getLogger(__name__)

_DEFAULTS = CoffeeOptions()


def encode_options(options: CoffeeOptions) -> str:
    return json.dumps(
        {
            "shot": options.shot.name,
            "temperature": options.temperature.name,
            "size": options.size.name,
            "ice": options.ice.name,
        },
        sort_keys=True,
    )


def _member[E: Enum](enum: type[E], raw: object, default: E) -> E:
    if isinstance(raw, str) and raw in enum.__members__:
        return enum[raw]
    if raw is not None:
        logger.warning("unknown %s value %r, using %s", enum.__name__, raw, default.name)
    return default


def decode_options(text: str | None) -> CoffeeOptions:
    if not text:
        return _DEFAULTS
    try:
        payload = json.loads(text)
    except ValueError:
        logger.warning("corrupt options payload %r, using defaults", text)
        return _DEFAULTS
    if not isinstance(payload, dict):
        logger.warning("options payload is not an object: %r", text)
        return _DEFAULTS

    return CoffeeOptions(
        shot=_member(Shot, payload.get("shot"), _DEFAULTS.shot),
        temperature=_member(Temperature, payload.get("temperature"), _DEFAULTS.temperature),
        size=_member(Size, payload.get("size"), _DEFAULTS.size),
        ice=_member(Ice, payload.get("ice"), _DEFAULTS.ice),
    )


__all__ = ("encode_options", "decode_options")
