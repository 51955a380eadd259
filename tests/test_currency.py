"""Tests for currency formatting and conversion."""

import pytest

from household.currency import (
    convert_currency,
    format_currency,
    format_currency_amount,
    get_currency_name,
    get_currency_symbol,
    get_exchange_rate,
    is_valid_currency_code,
)


RATES = {"USD": 1.0, "EUR": 0.5, "GBP": 0.25}


class TestFormatting:
    """Tests for the display helpers."""

    def test_format_currency_amount(self):
        assert format_currency_amount(12.5, "USD") == "$12.50"
        assert format_currency_amount(3, "EUR") == "€3.00"

    def test_format_currency_amount_unknown_code(self):
        assert format_currency_amount(7, "XYZ") == "7 XYZ"

    def test_format_currency_groups_thousands(self):
        assert format_currency(1234.5, "USD") == "$1,234.50"

    def test_format_currency_negative(self):
        assert format_currency(-3, "EUR") == "-€3.00"

    def test_format_currency_negative_rounding_to_zero(self):
        assert format_currency(-0.001, "USD") == "$0.00"

    def test_format_currency_zero_decimal(self):
        assert format_currency(1500, "JPY") == "¥1,500"

    def test_format_currency_unknown_code(self):
        assert format_currency(1234, "XYZ") == "XYZ 1,234.00"

    def test_symbols_and_names(self):
        assert get_currency_symbol("INR") == "₹"
        assert get_currency_symbol("XYZ") == "XYZ"
        assert get_currency_name("GBP") == "British Pound"
        assert get_currency_name("XYZ") == "XYZ"

    def test_valid_codes(self):
        assert is_valid_currency_code("USD") is True
        assert is_valid_currency_code("usd") is False


class TestConversion:
    """Tests for convert_currency and get_exchange_rate."""

    def test_same_currency(self):
        assert convert_currency(10, "EUR", "EUR", {}) == 10

    def test_into_primary(self):
        assert convert_currency(10, "EUR", "USD", RATES) == pytest.approx(20)

    def test_between_two_foreign_currencies(self):
        assert convert_currency(10, "EUR", "GBP", RATES) == pytest.approx(5)

    def test_missing_rate_returns_amount(self):
        assert convert_currency(10, "EUR", "JPY", RATES) == 10

    def test_exchange_rate(self):
        assert get_exchange_rate("EUR", "GBP", RATES) == pytest.approx(2)
        assert get_exchange_rate("USD", "USD", {}) == 1.0

    def test_exchange_rate_missing_counts_as_one(self):
        assert get_exchange_rate("JPY", "EUR", RATES) == pytest.approx(2)
