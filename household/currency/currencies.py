"""
Currency Table and Conversion

Expenses can be recorded in any currency the team supports. Balances and
settlements are always expressed in the team's primary currency.

Exchange rates come from outside (a rates service, cached per day). Every
function here takes the rates as an argument: a mapping of currency code
to units per one unit of the primary currency, so the primary currency
itself has rate 1.
"""

from typing import Optional

import structlog
from pydantic import BaseModel


logger = structlog.get_logger(__name__)


class Currency(BaseModel):
    code: str
    symbol: str
    name: str
    exchange_rate: Optional[float] = None


CURRENCIES: dict[str, Currency] = {
    "USD": Currency(code="USD", symbol="$", name="US Dollar"),
    "EUR": Currency(code="EUR", symbol="€", name="Euro"),
    "GBP": Currency(code="GBP", symbol="£", name="British Pound"),
    "JPY": Currency(code="JPY", symbol="¥", name="Japanese Yen"),
    "CAD": Currency(code="CAD", symbol="C$", name="Canadian Dollar"),
    "AUD": Currency(code="AUD", symbol="A$", name="Australian Dollar"),
    "CHF": Currency(code="CHF", symbol="Fr", name="Swiss Franc"),
    "CNY": Currency(code="CNY", symbol="¥", name="Chinese Yuan"),
    "INR": Currency(code="INR", symbol="₹", name="Indian Rupee"),
    "NZD": Currency(code="NZD", symbol="NZ$", name="New Zealand Dollar"),
    "SGD": Currency(code="SGD", symbol="S$", name="Singapore Dollar"),
    "HKD": Currency(code="HKD", symbol="HK$", name="Hong Kong Dollar"),
    "KRW": Currency(code="KRW", symbol="₩", name="South Korean Won"),
    "BRL": Currency(code="BRL", symbol="R$", name="Brazilian Real"),
    "RUB": Currency(code="RUB", symbol="₽", name="Russian Ruble"),
    "ZAR": Currency(code="ZAR", symbol="R", name="South African Rand"),
    "HUF": Currency(code="HUF", symbol="Ft", name="Hungarian Forint"),
}

# Currencies displayed without minor units
ZERO_DECIMAL_CURRENCIES = {"JPY", "KRW"}


def format_currency_amount(amount: float, currency_code: str) -> str:
    """
    Symbol followed by the amount with two decimals, e.g. "$12.50".

    Unknown codes fall back to "<amount> <CODE>".
    """
    currency = CURRENCIES.get(currency_code)
    if currency is None:
        return f"{amount} {currency_code}"
    return f"{currency.symbol}{amount:.2f}"


def format_currency(amount: float, currency_code: str) -> str:
    """
    Display format with thousands separators, e.g. "$1,234.50" or "-€3.00".

    Used for debt and settlement lines.
    """
    symbol = get_currency_symbol(currency_code)
    digits = 0 if currency_code in ZERO_DECIMAL_CURRENCIES else 2
    formatted = f"{abs(amount):,.{digits}f}"
    sign = "-" if amount < 0 and float(formatted.replace(",", "")) != 0 else ""
    if symbol == currency_code:
        return f"{sign}{currency_code} {formatted}"
    return f"{sign}{symbol}{formatted}"


def convert_currency(
    amount: float,
    from_currency: str,
    to_currency: str,
    exchange_rates: dict[str, float],
) -> float:
    """
    Convert an amount between two currencies.

    The amount is first brought to the primary currency (divide by its
    rate), then into the target (multiply by the target rate). If either
    rate is missing the amount is returned unchanged.
    """
    if from_currency == to_currency:
        return amount

    from_rate = exchange_rates.get(from_currency)
    to_rate = exchange_rates.get(to_currency)

    if not from_rate or not to_rate:
        logger.error(
            "exchange_rate_missing",
            from_currency=from_currency,
            to_currency=to_currency,
        )
        return amount

    amount_in_primary = amount / from_rate
    return amount_in_primary * to_rate


def get_exchange_rate(
    from_currency: str,
    to_currency: str,
    exchange_rates: dict[str, float],
) -> float:
    """Ratio of the two rates; a missing rate counts as 1."""
    if from_currency == to_currency:
        return 1.0

    from_rate = exchange_rates.get(from_currency) or 1.0
    to_rate = exchange_rates.get(to_currency) or 1.0

    return from_rate / to_rate


def is_valid_currency_code(code: str) -> bool:
    return code in CURRENCIES


def get_currency_symbol(code: str) -> str:
    currency = CURRENCIES.get(code)
    return currency.symbol if currency else code


def get_currency_name(code: str) -> str:
    currency = CURRENCIES.get(code)
    return currency.name if currency else code
