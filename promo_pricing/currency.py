from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Union

CURRENCY_SYMBOLS = {
    "GBP": "£",
    "USD": "$",
    "EUR": "€",
}


def format_currency(amount: Union[Decimal, int, str], currency: str = "GBP") -> str:
    """
    "£1,234.50": symbol first, two decimals, thousands separators.
    Negative amounts put the sign before the symbol.
    """
    code = (currency or "GBP").upper()
    if code not in CURRENCY_SYMBOLS:
        raise ValueError(f"Unsupported currency {currency!r}; expected one of {sorted(CURRENCY_SYMBOLS)}")
    value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    value = value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    return f"{sign}{CURRENCY_SYMBOLS[code]}{abs(value):,.2f}"


def format_percentage(percentage: Union[Decimal, int, str]) -> str:
    value = percentage if isinstance(percentage, Decimal) else Decimal(str(percentage))
    return f"{value.quantize(Decimal('0.1'), rounding=ROUND_HALF_UP)}%"
