import sys
import os
from decimal import Decimal

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from amounts import MAX_AMOUNT, checked_add, checked_sub, format_amount, parse_amount


class TestCheckedArithmetic:
    def test_add(self):
        assert checked_add(Decimal("15.005"), Decimal("24.996")) == Decimal("40.001")

    def test_add_at_max(self):
        assert checked_add(Decimal("79228162514264337593543950334"), Decimal("1")) == MAX_AMOUNT

    def test_add_overflow(self):
        assert checked_add(MAX_AMOUNT, Decimal("1")) is None

    def test_add_overflow_by_fraction(self):
        assert checked_add(MAX_AMOUNT, Decimal("0.0001")) is None

    def test_sub(self):
        assert checked_sub(Decimal("40.001"), Decimal("10.002")) == Decimal("29.999")

    def test_sub_underflow(self):
        assert checked_sub(MAX_AMOUNT.copy_negate(), Decimal("1")) is None

    def test_exact_with_many_digits(self):
        # Default decimal context would round this to 28 significant digits.
        result = checked_add(Decimal("79228162514264337593543950334"), Decimal("0.0000000001"))
        assert result == Decimal("79228162514264337593543950334.0000000001")


class TestParseAmount:
    def test_parse(self):
        assert parse_amount("1.2345") == Decimal("1.2345")

    def test_parse_max(self):
        assert parse_amount("79228162514264337593543950335") == MAX_AMOUNT

    @pytest.mark.parametrize("text", ["abc", "", "1.2.3", "NaN", "Infinity", "-inf"])
    def test_rejects_non_numbers(self, text):
        with pytest.raises(ValueError):
            parse_amount(text)

    def test_rejects_out_of_range(self):
        with pytest.raises(ValueError, match="out of range"):
            parse_amount("79228162514264337593543950336")

    def test_rejects_excess_scale(self):
        with pytest.raises(ValueError, match="decimal places"):
            parse_amount("0." + "0" * 28 + "1")


class TestFormatAmount:
    @pytest.mark.parametrize("value, expected", [
        (Decimal("1.5000"), "1.5"),
        (Decimal("100"), "100"),
        (Decimal("100.00"), "100"),
        (Decimal("0.0"), "0"),
        (Decimal("-0"), "0"),
        (Decimal("-30"), "-30"),
        (Decimal("0.0001"), "0.0001"),
        (MAX_AMOUNT, "79228162514264337593543950335"),
    ])
    def test_format(self, value, expected):
        assert format_amount(value) == expected
