"""Display formatting for quantities, values, market caps and prices."""
from __future__ import annotations

from datetime import date
from typing import Optional

NOT_FOUND = "Not found"


def _group_indian(digits: str) -> str:
    """Insert separators the Indian way: last three digits, then pairs."""

    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    pairs = []
    while len(head) > 2:
        pairs.insert(0, head[-2:])
        head = head[:-2]
    if head:
        pairs.insert(0, head)
    return ",".join(pairs + [tail])


def format_number(value: Optional[float]) -> str:
    """Format a number with lakh/crore grouping, e.g. ``12,34,567.5``."""

    if value is None:
        return "0"
    rendered = f"{abs(value):.3f}".rstrip("0").rstrip(".")
    integer, _, fraction = rendered.partition(".")
    sign = "-" if value < 0 and rendered != "0" else ""
    grouped = _group_indian(integer)
    return f"{sign}{grouped}.{fraction}" if fraction else f"{sign}{grouped}"


def format_market_cap(value: Optional[float]) -> str:
    """Format a market cap given in crores."""

    if not value:
        return NOT_FOUND
    if value >= 1000:
        return f"₹{value / 1000:.1f}K Cr"
    return f"₹{value:.0f} Cr"


def format_price(value: Optional[float]) -> str:
    if not value:
        return NOT_FOUND
    return f"₹{value:.2f}"


def format_date(value: Optional[date]) -> str:
    return value.strftime("%d-%m-%Y") if value else ""


__all__ = ["NOT_FOUND", "format_number", "format_market_cap", "format_price", "format_date"]
