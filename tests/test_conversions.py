"""Tests for the numeric helpers."""

import pytest

from reaperconverter.core.conversions import (
    MIN_VALUE,
    db_to_value,
    from_hex_color,
    normalized_to_pan,
    pan_to_normalized,
    to_hex_color,
    value_to_db,
)


def test_value_to_db_unity():
    """Unity gain stays 1 without headroom and drops by the headroom otherwise."""
    assert value_to_db(1.0, 0) == pytest.approx(1.0)
    assert value_to_db(1.0, 12) == pytest.approx(10 ** (-12 / 20))


def test_db_to_value_inverse():
    """db_to_value undoes value_to_db."""
    for value in (0.01, 0.5, 1.0, 3.98):
        assert db_to_value(value_to_db(value, 12), 12) == pytest.approx(value)


def test_silence_floor():
    """Values below the floor map to -150 dB."""
    assert value_to_db(0.0, 0) == pytest.approx(10 ** (-150 / 20))
    assert db_to_value(0.0, 0) == MIN_VALUE


def test_pan():
    """REAPER pan -1..1 maps to 0..1."""
    assert pan_to_normalized(-1.0) == 0.0
    assert pan_to_normalized(0.0) == 0.5
    assert normalized_to_pan(pan_to_normalized(0.3)) == pytest.approx(0.3)


def test_colors():
    """REAPER colors are BGR with a custom-color flag."""
    assert to_hex_color(0x0000FF) == "#ff0000"
    assert to_hex_color(0x01FF8000) == "#0080ff"
    assert from_hex_color("#ff0000") == 0x010000FF
    assert to_hex_color(from_hex_color("#12ab34")) == "#12ab34"
