# currency.py
import math

from constants import USD_COUNTRY_NAMES
from financial_structs import InvalidInputError


def validate_exchange_rate(exchange_rate):
    if exchange_rate is None or not exchange_rate > 0 or not math.isfinite(exchange_rate):
        raise InvalidInputError(f"Exchange rate must be a finite number > 0, got {exchange_rate}")
    return exchange_rate


def is_usd_denominated(currency, country=None):
    """Explicit currency wins; country is only a fallback when currency is missing."""
    if currency:
        return currency.upper() == "USD"
    return country in USD_COUNTRY_NAMES


def to_reporting_currency(value, currency, exchange_rate, country=None):
    """Converts a value quoted in `currency` to KRW (KRW per 1 USD)."""
    validate_exchange_rate(exchange_rate)
    if is_usd_denominated(currency, country):
        return value * exchange_rate
    return value


def holding_to_krw(holding, value, exchange_rate):
    return to_reporting_currency(value, holding.currency, exchange_rate, holding.country)
