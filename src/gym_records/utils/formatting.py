"""Presentation helpers for the human-oriented export formats."""

from datetime import datetime
from typing import Any

from gym_records.utils.dates import parse_datetime


def format_date(value: Any) -> str:
    """Format a date-like value as dd/mm/yyyy, or "" when it cannot be parsed."""
    parsed = parse_datetime(value)
    if parsed is None:
        return ""
    return parsed.strftime("%d/%m/%Y")


def format_datetime(value: datetime) -> str:
    """Format a datetime with minutes, e.g. for backup listings."""
    return value.strftime("%d/%m/%Y %H:%M")


def format_number(value: Any) -> str:
    """Format a number with thousands separators.

    Whole numbers drop their decimals; non-numeric values are returned as text.
    """
    if isinstance(value, bool) or value is None:
        return "" if value is None else str(value)

    try:
        number = float(value)
    except (TypeError, ValueError):
        return str(value)

    if number.is_integer():
        return f"{number:,.0f}"
    return f"{number:,.2f}"
