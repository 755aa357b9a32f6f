"""
Price handling for the catalog (pt-BR conventions).

Display uses "." for thousands and "," for decimals with exactly two
fractional digits. The masked input field accepts digit keystrokes only and
reads the last two digits as cents, so typing "1234" stores 12.34 and shows
"12,34".
"""

import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional, Tuple

from app.core.config import settings
from app.schemas.product import CENTS, MAX_PRICE

# Digits the masked field keeps, the cents included
MASK_DIGITS = len(str(MAX_PRICE).replace(".", ""))
NBSP = "\xa0"

_NON_DIGITS = re.compile(r"\D")


def to_decimal(value) -> Optional[Decimal]:
    """Coerce a raw price to ``Decimal``; None when it is not a finite number."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        number = value
    elif isinstance(value, (int, float)):
        number = Decimal(str(value))
    elif isinstance(value, str):
        text = value.strip()
        if "," in text and "." not in text:
            text = text.replace(",", ".")
        try:
            number = Decimal(text)
        except InvalidOperation:
            return None
    else:
        return None
    if not number.is_finite():
        return None
    return number


def format_amount(value) -> str:
    number = to_decimal(value)
    if number is None:
        return ""
    try:
        quantized = number.quantize(CENTS, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        return ""
    text = f"{quantized:,.2f}"
    return text.replace(",", "_").replace(".", ",").replace("_", ".")


def format_currency(value, symbol: str = None) -> str:
    number = to_decimal(value)
    if number is None:
        return ""
    symbol = symbol or settings.CURRENCY_SYMBOL
    if number < 0:
        return f"-{symbol}{NBSP}{format_amount(-number)}"
    return f"{symbol}{NBSP}{format_amount(number)}"


def parse_masked_price(text: str) -> Optional[Decimal]:
    digits = _NON_DIGITS.sub("", text or "")
    if not digits:
        return None
    # Keystrokes past the column size are dropped
    digits = digits.lstrip("0")[:MASK_DIGITS] or "0"
    return (Decimal(digits) / 100).quantize(CENTS)


def mask_price(text: str) -> Tuple[Optional[Decimal], str]:
    """Value and re-rendered text for one keystroke in the currency field."""
    value = parse_masked_price(text)
    if value is None:
        return None, ""
    return value, format_amount(value)
