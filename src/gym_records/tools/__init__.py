"""MCP tool definitions."""

from datetime import datetime, timezone
from typing import Any

from gym_records.exceptions import GymRecordsError, ValidationError

__all__ = ["create_error_response"]


def create_error_response(
    error: GymRecordsError,
    details: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Turn a domain error into the error dictionary returned by tools.

    ``error_type`` is the exception class name, so a missing backup reports
    ``BackupNotFoundError`` and callers never spell type names by hand.
    A ``ValidationError`` also lists every defect under ``details["errors"]``.

    Args:
        error: The error being reported
        details: Optional additional details

    Returns:
        Structured error response dictionary
    """
    if isinstance(error, ValidationError):
        details = {"errors": list(error.errors), **(details or {})}

    response: dict[str, Any] = {
        "error": True,
        "message": str(error),
        "error_type": type(error).__name__,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    if details:
        response["details"] = details
    return response
