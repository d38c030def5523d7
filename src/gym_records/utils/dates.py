"""Date parsing helpers shared by filtering, sorting and the change tracker."""

from datetime import date, datetime, timezone
from typing import Any


def parse_datetime(value: Any) -> datetime | None:
    """Parse a record date field into an aware datetime.

    Accepts ISO-8601 strings (a trailing ``Z`` is allowed), ``datetime`` and
    ``date`` objects. Naive values are taken as UTC so that naive and aware
    inputs compare consistently.

    Args:
        value: Raw field value

    Returns:
        Aware datetime, or None when the value is missing or unparseable
    """
    if value is None or value == "":
        return None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def sort_key_newest_first(value: Any) -> datetime:
    """Sort key placing unparseable dates last when sorting in reverse."""
    return parse_datetime(value) or datetime.min.replace(tzinfo=timezone.utc)
