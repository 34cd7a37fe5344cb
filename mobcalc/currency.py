"""Single-rate currency conversion and display formatting."""

from __future__ import annotations

from typing import Any

from mobcalc.numeric import num


CURRENCY_SYMBOLS = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "BRL": "R$",
    "INR": "₹",
    "JPY": "¥",
    "CNY": "CN¥",
    "KRW": "₩",
}


def convert_total(grand_total_base: float, currency: dict) -> float | None:
    """Converted grand total, or None when conversion is switched off.

    A blank or unparseable rate converts to 0, never 1:1.
    """
    if not currency.get("showTarget"):
        return None
    return float(grand_total_base) * num(currency.get("rateBaseToTarget"))


def format_money(amount: Any, code: str) -> str:
    value = num(amount)
    symbol = CURRENCY_SYMBOLS.get(str(code).upper())
    sign = "-" if value < 0 else ""
    if symbol:
        return f"{sign}{symbol}{abs(value):,.2f}"
    return f"{sign}{str(code).upper()} {abs(value):,.2f}"
