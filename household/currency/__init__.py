"""Currency package."""

from household.currency.currencies import (
    CURRENCIES,
    Currency,
    convert_currency,
    format_currency,
    format_currency_amount,
    get_currency_name,
    get_currency_symbol,
    get_exchange_rate,
    is_valid_currency_code,
)

__all__ = [
    "CURRENCIES",
    "Currency",
    "convert_currency",
    "format_currency",
    "format_currency_amount",
    "get_currency_name",
    "get_currency_symbol",
    "get_exchange_rate",
    "is_valid_currency_code",
]
