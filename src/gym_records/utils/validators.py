"""Validation utilities for import payloads and user-supplied options.

Structural validation reports every defect it finds as a string instead of
stopping at the first one, so the whole list can be shown to the user.
"""

from typing import Any

from gym_records.exceptions import UnsupportedFormatError, ValidationError
from gym_records.models.export_import import ExportFormat


def _is_blank(value: Any) -> bool:
    return value is None or value == ""


def validate_import_payload(payload: Any) -> list[str]:
    """Check the structure of a decoded import payload.

    Args:
        payload: Decoded JSON document

    Returns:
        List of error strings (empty when the payload is structurally valid)
    """
    errors: list[str] = []

    if not isinstance(payload, dict):
        errors.append("Invalid file structure: expected a JSON object")
        return errors

    data = payload.get("data")
    if data is None:
        errors.append("No data found in file")
        return errors

    if not isinstance(data, dict):
        errors.append("Invalid data section: expected an object")
        return errors

    for category in ("members", "payments", "activities"):
        records = data.get(category)
        if records is not None and not isinstance(records, list):
            errors.append(f"Invalid {category} section: expected a list")

    members = data.get("members")
    if isinstance(members, list):
        for index, member in enumerate(members, start=1):
            if (
                not isinstance(member, dict)
                or _is_blank(member.get("id"))
                or _is_blank(member.get("name"))
            ):
                errors.append(f"Member #{index}: missing id or name")

    payments = data.get("payments")
    if isinstance(payments, list):
        for index, payment in enumerate(payments, start=1):
            if (
                not isinstance(payment, dict)
                or _is_blank(payment.get("id"))
                or _is_blank(payment.get("amount"))
            ):
                errors.append(f"Payment #{index}: missing id or amount")

    return errors


def ensure_valid_import_payload(payload: Any) -> None:
    """Raise ValidationError listing every structural defect of a payload."""
    errors = validate_import_payload(payload)
    if errors:
        raise ValidationError(errors)


def validate_export_format(format: str) -> ExportFormat:
    """Validate and convert an export format string.

    Args:
        format: Format name ("json", "csv" or "excel")

    Returns:
        The corresponding ExportFormat

    Raises:
        UnsupportedFormatError: If the format is not known
    """
    try:
        return ExportFormat(str(format).lower())
    except ValueError as e:
        valid = ", ".join(f.value for f in ExportFormat)
        raise UnsupportedFormatError(
            f"Unsupported export format: '{format}'. Valid formats are: {valid}"
        ) from e


def validate_backup_key(key: str, prefix: str) -> int:
    """Validate a backup key and return the epoch milliseconds it embeds.

    Raises:
        ValueError: If the key is not ``<prefix><epoch-millis>``
    """
    if not isinstance(key, str) or not key.startswith(prefix):
        raise ValueError(f"Invalid backup key: {key}")

    suffix = key[len(prefix):]
    if not suffix.isdigit():
        raise ValueError(f"Invalid backup key: {key}")

    return int(suffix)
