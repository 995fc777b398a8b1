"""Tests for unit conversion helpers."""

from decimal import Decimal

import pytest

from evmkit.exceptions import ValidationError
from evmkit.utils import (
    format_ether,
    from_decimals,
    hex_to_int,
    int_to_hex,
    parse_ether,
    parse_gwei,
    to_decimals,
    to_decimals_str,
)


class TestDecimalStrings:
    """Test decimal string to base unit conversion."""

    def test_pads_fraction(self):
        """Shorter fractions are padded with zeros."""
        assert to_decimals_str("1.23", 6) == 1_230_000

    def test_truncates_excess_precision(self):
        """Digits past the precision are dropped, never rounded."""
        assert to_decimals_str("1.234567", 4) == 12_345
        assert to_decimals_str("1.239", 2) == 123

    def test_integer_string(self):
        assert to_decimals_str("42", 3) == 42_000

    def test_leading_dot(self):
        assert to_decimals_str(".5", 1) == 5

    def test_empty_is_zero(self):
        assert to_decimals_str("", 18) == 0

    def test_negative(self):
        assert to_decimals_str("-1.5", 2) == -150

    @pytest.mark.parametrize("value", ["abc", "1.2.3", "1e5", "0x10"])
    def test_invalid_raises(self, value):
        with pytest.raises(ValidationError):
            to_decimals_str(value, 6)


class TestIntegerScaling:
    def test_to_decimals(self):
        assert to_decimals(3, 6) == 3_000_000

    def test_to_decimals_negative_raises(self):
        with pytest.raises(ValidationError):
            to_decimals(-1, 6)

    def test_from_decimals(self):
        assert from_decimals(1_500_000, 6) == Decimal("1.5")

    def test_from_decimals_none(self):
        assert from_decimals(None, 6) == Decimal(0)


def test_ether_round_trip_formatting():
    assert parse_ether("1.5") == 1_500_000_000_000_000_000
    assert format_ether(10**18) == "1.000000000000000000"


def test_parse_gwei():
    assert parse_gwei("2.5") == 2_500_000_000


def test_hex_int_helpers():
    assert int_to_hex(255) == "0xff"
    assert int_to_hex(None) == "0x0"
    assert hex_to_int("0xff") == 255
    with pytest.raises(ValidationError):
        hex_to_int("zz")
