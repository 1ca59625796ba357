"""
formatting.py
-------------

Display strings for amounts, percentages and dates. Amounts are shown
in Indian Rupees with Indian digit grouping (lakh / crore), e.g.
``₹1,23,456.70``.
"""

from typing import Any

from .models import parse_date, to_float

CURRENCY_SYMBOL = "₹"


def _group_indian(digits: str) -> str:
    """'1234567' -> '12,34,567': last three digits, then pairs."""
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    pairs = []
    while len(head) > 2:
        pairs.insert(0, head[-2:])
        head = head[:-2]
    if head:
        pairs.insert(0, head)
    return ",".join(pairs) + "," + tail


def format_currency(amount: Any) -> str:
    """Format a rupee amount; anything that is not a number shows as ₹0.00."""
    value = to_float(amount)
    if value is None:
        value = 0.0
    whole, frac = f"{abs(value):.2f}".split(".")
    sign = "-" if value < 0 and f"{abs(value):.2f}" != "0.00" else ""
    return f"{sign}{CURRENCY_SYMBOL}{_group_indian(whole)}.{frac}"


def format_percentage(value: Any) -> str:
    pct = to_float(value)
    return f"{pct if pct is not None else 0.0:.2f}%"


def format_date(value: Any) -> str:
    """'2024-01-15' -> '15 Jan 2024'."""
    d = parse_date(value)
    if d is None:
        return "Invalid Date"
    return f"{d.day} {d.strftime('%b %Y')}"
