"""Amount parsing utilities."""

import re
from decimal import Decimal, InvalidOperation

from propledger.domain.money import to_money

_AMOUNT = re.compile(r"^(-)?\$?(\d{1,3}(?:,\d{3})+|\d*)(\.\d+)?$")


def parse_amount(amount_str: str) -> Decimal:
    """Parse a money string such as "1234.5", "$1,234.56" or "(12.00)".

    Parenthesised amounts are negative. The result is rounded to cents.

    Raises:
        ValueError: If the string is not an amount
    """
    if amount_str is None or not amount_str.strip():
        raise ValueError("Empty amount string")

    text = amount_str.strip().replace(" ", "")
    negative = text.startswith("(") and text.endswith(")")
    if negative:
        text = text[1:-1]

    match = _AMOUNT.match(text)
    if match is None or not (match.group(2) or match.group(3)):
        raise ValueError(f"Could not parse amount '{amount_str}'")

    digits = match.group(2).replace(",", "") + (match.group(3) or "")
    try:
        value = Decimal(digits)
    except InvalidOperation as e:
        raise ValueError(f"Could not parse amount '{amount_str}'") from e

    if negative or match.group(1):
        value = -value
    return to_money(value)
