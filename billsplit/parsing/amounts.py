"""
Amount extraction.

Two strategies, tried in order:

1. Numeric: an optional currency marker ($, US$, usd) followed by digits
   with an optional one or two digit fraction. "12.50", "$20", "usd 7".
2. Spelled out: "twenty five", "two hundred", "one thousand fifty".

The numeric path returns whatever it finds, including zero. The spelled-out
path only returns strictly positive values. Callers that need a positive
amount must check it themselves.
"""

import re
from decimal import Decimal, InvalidOperation
from typing import Optional

from billsplit.models.command import CENTS

# Currency marker + number; group 1 is the number
AMOUNT_PATTERN = r"(?:(?:us)?\$|usd\s*)?([0-9]+(?:\.[0-9]{1,2})?)"

_NUMERIC = re.compile(AMOUNT_PATTERN, re.IGNORECASE)

UNITS: dict[str, int] = {
    "zero": 0, "one": 1, "two": 2, "three": 3, "four": 4, "five": 5,
    "six": 6, "seven": 7, "eight": 8, "nine": 9, "ten": 10, "eleven": 11,
    "twelve": 12, "thirteen": 13, "fourteen": 14, "fifteen": 15, "sixteen": 16,
    "seventeen": 17, "eighteen": 18, "nineteen": 19,
}

TENS: dict[str, int] = {
    "twenty": 20, "thirty": 30, "forty": 40, "fifty": 50,
    "sixty": 60, "seventy": 70, "eighty": 80, "ninety": 90,
}


def to_decimal(raw: Optional[str]) -> Optional[Decimal]:
    """Convert a captured number to Decimal, or None if it cannot be held in cents."""
    if not raw:
        return None
    try:
        value = Decimal(raw)
        value.quantize(CENTS)
    except InvalidOperation:
        return None
    return value


def parse_numeric_amount(text: str) -> Optional[Decimal]:
    """First numeric amount in the text, or None."""
    match = _NUMERIC.search(text)
    if match is None:
        return None
    return to_decimal(match.group(1))


def parse_word_amount(text: str) -> Optional[Decimal]:
    """
    Parse a spelled-out whole number.

    Number words accumulate into a running value: units and tens add,
    "hundred" multiplies a non-zero accumulator, "thousand" moves
    accumulator x 1000 into the total. Parsing stops at the first
    non-number word once a number word has been seen.
    """
    words = re.findall(r"[^\W\d_]+", text.lower().replace("-", " "))
    if not words:
        return None

    found = False
    total = 0
    current = 0

    for word in words:
        if word in UNITS:
            current += UNITS[word]
            found = True
            continue
        if word in TENS:
            current += TENS[word]
            found = True
            continue
        if word == "hundred" and current > 0:
            current *= 100
            found = True
            continue
        if word == "thousand" and current > 0:
            total += current * 1000
            current = 0
            found = True
            continue
        if found:
            break

    value = total + current
    if found and value > 0:
        return Decimal(value)
    return None


def parse_flexible_amount(text: str) -> Optional[Decimal]:
    """Numeric amount if present, else a spelled-out one."""
    numeric = parse_numeric_amount(text)
    if numeric is not None:
        return numeric
    return parse_word_amount(text)


def format_currency(amount: Decimal) -> str:
    """Format as US dollars, e.g. $1,234.50."""
    return f"${amount:,.2f}"
