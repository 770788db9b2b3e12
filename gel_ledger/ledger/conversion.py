"""
Currency conversion and display formatting.

Conversion keeps full float precision; rounding to two decimals is a
display concern only and happens in format_currency.
"""

import math
from typing import Protocol

from gel_ledger.config import get_settings


CURRENCY_SYMBOLS = {
    "GEL": "₾", "USD": "$", "EUR": "€", "GBP": "£", "RUB": "₽",
    "TRY": "₺", "JPY": "¥", "CNY": "¥", "CHF": "CHF", "AUD": "A$",
    "CAD": "C$", "INR": "₹", "KRW": "₩", "BRL": "R$", "ZAR": "R",
    "SEK": "kr", "NOK": "kr", "DKK": "kr", "PLN": "zł", "ILS": "₪",
    "AED": "د.إ", "SAR": "﷼", "THB": "฿",
}


class RateQuote(Protocol):
    code: str
    rate: float
    quantity: float


def convert_to_gel(amount: float, currency: RateQuote) -> float:
    """
    Convert an amount of `currency` into the local currency.

    Published rates are quoted per `quantity` foreign units, so the
    result is amount * rate / quantity. The local currency converts to
    itself unchanged.
    """
    if currency.code == get_settings().ledger.local_currency_code:
        return amount
    return amount * currency.rate / currency.quantity


def unit_rate(rate: float, quantity: float) -> float:
    """Rate for a single foreign unit."""
    return rate / quantity


def format_currency(value: float) -> str:
    """
    Two decimals with a space as thousands separator.

    Non-finite values render as "0.00".
    """
    if not math.isfinite(value):
        return "0.00"
    return f"{value:,.2f}".replace(",", " ")


def get_currency_symbol(currency_code: str) -> str:
    """Symbol for a currency code, or the code itself when unknown."""
    return CURRENCY_SYMBOLS.get(currency_code, currency_code)
