"""Tests for numeric coercion helpers."""

from decimal import Decimal

from creatorcap.core.numeric import (
    finite_or_zero,
    format_units,
    parse_decimal_or_zero,
    parse_decimals,
    parse_non_negative,
    parse_raw_amount,
)


class TestParseDecimalOrZero:
    """Tests for the zero-default parser."""

    def test_numbers_and_strings(self):
        assert parse_decimal_or_zero(1.5) == 1.5
        assert parse_decimal_or_zero(3) == 3.0
        assert parse_decimal_or_zero("0.000123") == 0.000123
        assert parse_decimal_or_zero(" 1,234.5 ") == 1234.5
        assert parse_decimal_or_zero(Decimal("2.25")) == 2.25

    def test_unknown_is_zero(self):
        """Missing or unparseable input is the 0 sentinel."""
        for value in (None, "", "abc", [], {}, True, float("nan"), float("inf"), "NaN"):
            assert parse_decimal_or_zero(value) == 0.0

    def test_non_negative_clamps(self):
        assert parse_non_negative("-5") == 0.0
        assert parse_non_negative("5") == 5.0


class TestRawAmounts:
    """Tests for smallest-unit conversions."""

    def test_parse_raw_amount(self):
        assert parse_raw_amount("1000000000000000000") == 10**18
        assert parse_raw_amount(42) == 42
        assert parse_raw_amount("junk") == 0
        assert parse_raw_amount(None) == 0

    def test_format_units(self):
        assert format_units(1_500_000, 6) == "1.5"
        assert format_units(10**20, 18) == "100"
        assert format_units(1, 6) == "0.000001"
        assert format_units(123, 0) == "123"

    def test_parse_decimals(self):
        """Zero decimals are kept; missing values use the default."""
        assert parse_decimals("6") == 6
        assert parse_decimals(0) == 0
        assert parse_decimals(None) == 18
        assert parse_decimals("x") == 18
        assert parse_decimals(-1) == 18

    def test_finite_or_zero(self):
        assert finite_or_zero(float("inf")) == 0.0
        assert finite_or_zero(float("nan")) == 0.0
        assert finite_or_zero(2.0) == 2.0
