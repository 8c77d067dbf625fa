"""Numeric helpers shared by both conversion directions."""

from __future__ import annotations

import math

# 20 / ln(10)
_DB_FACTOR = 8.6858896380650365530225783783321
MIN_VALUE = 2.98023223876953125e-8
MIN_DB = -150.0


def value_to_db(value: float, max_db: float) -> float:
    """Convert a REAPER gain factor into the linear value used in DAWproject."""
    if value < MIN_VALUE:
        db = MIN_DB
    else:
        db = math.log(value) * _DB_FACTOR
    return math.pow(10, (db - max_db) / 20.0)


def db_to_value(value: float, max_db: float) -> float:
    """Inverse of :func:`value_to_db`."""
    if value <= 0:
        return MIN_VALUE
    db = 20.0 * math.log10(value) + max_db
    if db <= MIN_DB:
        return MIN_VALUE
    return math.exp(db / _DB_FACTOR)


def pan_to_normalized(pan: float) -> float:
    """REAPER panorama -1..1 to 0..1."""
    return (pan + 1.0) / 2.0


def normalized_to_pan(value: float) -> float:
    return value * 2.0 - 1.0


def to_hex_color(color: int) -> str:
    """REAPER colors store blue in the high byte."""
    color &= 0xFFFFFF
    return "#%02x%02x%02x" % (color & 0xFF, color >> 8 & 0xFF, color >> 16 & 0xFF)


def from_hex_color(hex_color: str) -> int:
    """Convert ``#rrggbb`` into a REAPER color with the custom-color flag set."""
    color = int(hex_color.lstrip("#")[:6], 16)
    red = color >> 16 & 0xFF
    green = color >> 8 & 0xFF
    blue = color & 0xFF
    return (blue << 16) + (green << 8) + red + 0x01000000
