"""Test minor-unit amount conversion."""
import pytest
from decimal import Decimal
from billing_conversion.international.currency import (
    ZERO_DECIMAL_CURRENCIES, currency_scale, divide_amount, from_currency,
    rescale, scale_of, to_decimal, to_minor_units,
)


class TestFromCurrency:
    def test_upper_cases(self):
        assert from_currency("eur") == "EUR"

    def test_none_is_empty(self):
        assert from_currency(None) == ""


class TestCurrencyScale:
    def test_two_decimal(self):
        assert currency_scale("eur") == 2

    def test_zero_decimal(self):
        assert currency_scale("jpy") == 0

    def test_unknown_defaults_to_two(self):
        assert currency_scale("XYZ") == 2


class TestToDecimal:
    def test_two_decimal_currency(self):
        amount = to_decimal(-11000, "eur")
        assert amount == Decimal("-110.00")
        assert scale_of(amount) == 2

    def test_zero_decimal_currency_keeps_units(self):
        amount = to_decimal(11000, "jpy")
        assert amount == Decimal("11000")
        assert scale_of(amount) == 0
        assert str(amount) == "11000"

    def test_small_amount(self):
        assert str(to_decimal(5, "usd")) == "0.05"


class TestToMinorUnits:
    @pytest.mark.parametrize("currency", sorted(ZERO_DECIMAL_CURRENCIES))
    def test_zero_decimal_round_trip(self, currency):
        for minor in (0, 1, 11000, -987654):
            assert to_minor_units(to_decimal(minor, currency), currency) == minor

    def test_canonical_scale_passes_through(self):
        assert to_minor_units(Decimal("123.45"), "EUR") == 12345

    def test_extra_digits_round_not_truncate(self):
        assert to_minor_units(Decimal("123.4567"), "EUR") == 12346

    def test_scale4_vector(self):
        assert to_minor_units(Decimal(1234567).scaleb(-4), "EUR") == 12346

    def test_zero_decimal_vector(self):
        assert to_minor_units(Decimal(11000).scaleb(-2), "JPY") == 110

    def test_half_away_from_zero(self):
        assert to_minor_units(Decimal("0.125"), "EUR") == 13
        assert to_minor_units(Decimal("-0.125"), "EUR") == -13


class TestRescale:
    def test_rounds_half_up(self):
        assert rescale(Decimal("2.345"), 2) == Decimal("2.35")

    def test_extends_scale(self):
        assert str(rescale(Decimal("2"), 2)) == "2.00"


class TestDivideAmount:
    def test_keeps_dividend_scale(self):
        result = divide_amount(Decimal("100.00"), 3)
        assert result == Decimal("33.33")
        assert scale_of(result) == 2

    def test_exact_division(self):
        assert str(divide_amount(Decimal("90.00"), 3)) == "30.00"

    def test_zero_decimal_dividend(self):
        assert str(divide_amount(Decimal("1000"), 4)) == "250"
