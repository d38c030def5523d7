"""Data export/import MCP tools."""

import logging
from pathlib import Path
from typing import Any

import aiofiles

from gym_records.exceptions import ExportFailedError, StorageError, ValidationError
from gym_records.models.export_import import DateRange, ExportOptions, ImportOptions
from gym_records.services.export_service import ExportService
from gym_records.services.import_service import ImportService
from gym_records.tools import create_error_response

logger = logging.getLogger(__name__)


async def data_export(
    service: ExportService,
    output_path: str | None = None,
    include_members: bool = True,
    include_payments: bool = True,
    include_activities: bool = True,
    include_settings: bool = True,
    include_password: bool = False,
    date_from: str | None = None,
    date_to: str | None = None,
    format: str = "json",
) -> dict[str, Any]:
    """Export data, optionally writing the artifact to disk.

    Args:
        service: Export service instance
        output_path: File or directory to write to (None: return content inline)
        include_members: Include member records
        include_payments: Include payment records
        include_activities: Include activity records
        include_settings: Include pricing and user settings
        include_password: Include the stored password (needs include_settings)
        date_from: Start of the date window (ISO format)
        date_to: End of the date window (ISO format)
        format: Output format (json/csv/excel)

    Returns:
        Export metadata, plus the content when no output_path is given
    """
    if (date_from is None) != (date_to is None):
        return create_error_response(
            ValidationError(["date_from and date_to must be given together"])
        )

    options = ExportOptions(
        include_members=include_members,
        include_payments=include_payments,
        include_activities=include_activities,
        include_settings=include_settings,
        include_password=include_password,
        date_range=DateRange(from_date=date_from, to_date=date_to) if date_from else None,
        format=format,
    )

    try:
        artifact = await service.export_data(options)
    except ExportFailedError as e:
        return create_error_response(e)

    response: dict[str, Any] = {
        "filename": artifact.filename,
        "media_type": artifact.media_type,
        "counts": artifact.counts,
        "size_bytes": artifact.size_bytes,
        "exported_at": artifact.exported_at.isoformat(),
    }

    if output_path is None:
        response["content"] = artifact.content.decode("utf-8")
        return response

    target = Path(output_path)
    if target.is_dir():
        target = target / artifact.filename

    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        async with aiofiles.open(target, "wb") as f:
            await f.write(artifact.content)
    except OSError as e:
        logger.error("Failed to write export file %s: %s", target, e)
        return create_error_response(
            StorageError(f"Failed to write export file: {e}"), {"path": str(target)}
        )

    response["file_path"] = str(target)
    return response


async def data_import(
    service: ImportService,
    input_path: str,
    overwrite_existing: bool = False,
    skip_duplicates: bool = True,
    validate_data: bool = True,
    create_backup: bool = True,
) -> dict[str, Any]:
    """Import a snapshot file from disk.

    Args:
        service: Import service instance
        input_path: Path of the file to import (.json)
        overwrite_existing: Informational only; records that are not skipped
            are always overwritten
        skip_duplicates: Skip records whose id already exists
        validate_data: Validate structure before writing anything
        create_backup: Back up current data first

    Returns:
        Import outcome (success, imported counts, errors, warnings)
    """
    if not input_path:
        return create_error_response(ValidationError(["input_path is required"]))

    path = Path(input_path)
    try:
        async with aiofiles.open(path, encoding="utf-8") as f:
            content = await f.read()
    except (OSError, UnicodeDecodeError) as e:
        return create_error_response(
            StorageError(f"Failed to read import file: {e}"), {"path": str(path)}
        )

    outcome = await service.import_data(
        content,
        path.name,
        ImportOptions(
            overwrite_existing=overwrite_existing,
            skip_duplicates=skip_duplicates,
            validate_data=validate_data,
            create_backup=create_backup,
        ),
    )
    return outcome.model_dump()
