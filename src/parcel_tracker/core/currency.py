#!/usr/bin/env python3
"""
Currency Parsing and Formatting Utilities

Prices scraped from order pages arrive as loosely formatted strings
("$1,234.56", "9.99", "US $12.00"). Everything stored uses integer cents so
that totals and item prices can be compared and re-serialized without
floating-point drift.

Currency Systems:
- Internal storage uses cents: 100 cents = $1.00
- Display uses dollar strings: "$12.34"
"""

import re
from decimal import Decimal, InvalidOperation

_AMOUNT_PATTERN = re.compile(r"-?\d[\d,]*(?:\.\d+)?|-?\.\d+")


def cents_to_dollars_str(cents: int) -> str:
    """
    Convert cents to dollar string using pure integer arithmetic.

    Args:
        cents: Amount in cents

    Returns:
        Formatted dollar string

    Example:
        cents_to_dollars_str(4599) -> "45.99"
    """
    is_negative = cents < 0
    abs_cents = abs(int(cents))

    dollars = abs_cents // 100
    remainder = abs_cents % 100

    if is_negative:
        return f"-{dollars}.{remainder:02d}"
    return f"{dollars}.{remainder:02d}"


def parse_dollars_to_cents(dollars_str: str) -> int:
    """
    Parse dollar string to cents using integer arithmetic only.

    Args:
        dollars_str: String representation of dollar amount

    Returns:
        Amount in cents

    Raises:
        ValueError: If the string contains no parseable amount

    Examples:
        parse_dollars_to_cents("12.34") -> 1234
        parse_dollars_to_cents("$12.34") -> 1234
        parse_dollars_to_cents("1,234.56") -> 123456
        parse_dollars_to_cents("US $12") -> 1200
    """
    match = _AMOUNT_PATTERN.search(dollars_str.replace(" ", ""))
    if not match:
        raise ValueError(f"No amount found in {dollars_str!r}")

    clean = match.group(0).replace(",", "")

    is_negative = clean.startswith("-")
    if is_negative:
        clean = clean[1:]

    if "." in clean:
        whole, fraction = clean.split(".", 1)
        dollars = int(whole) if whole else 0
        # Pad to 2 digits, truncate beyond 2
        cents = int(fraction.ljust(2, "0")[:2])
        total = dollars * 100 + cents
    else:
        total = int(clean) * 100

    return -total if is_negative else total


def safe_currency_to_cents(value: str | int | float | Decimal | None) -> int | None:
    """
    Convert a scraped price to cents, returning None when nothing usable is present.

    Args:
        value: Price as scraped ("$45.99", "45.99", 45.99, Decimal("45.99"))

    Returns:
        Integer cents, or None for blank/unparseable input

    Examples:
        safe_currency_to_cents('$45.99') -> 4599
        safe_currency_to_cents('FREE') -> None
        safe_currency_to_cents('') -> None
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value * 100
    try:
        if isinstance(value, (float, Decimal)):
            return int((Decimal(str(value)) * 100).quantize(Decimal("1")))
        text = str(value).strip()
        if not text:
            return None
        return parse_dollars_to_cents(text)
    except (ValueError, InvalidOperation):
        return None


def format_cents(cents: int) -> str:
    """Format cents as dollar string with $ prefix."""
    return f"${cents_to_dollars_str(cents)}"
