"""Backup MCP tools."""

from typing import Any

from gym_records.exceptions import BackupFailedError, BackupNotFoundError
from gym_records.services.backup_service import BackupService
from gym_records.tools import create_error_response


async def backup_create(service: BackupService) -> dict[str, Any]:
    """Create a full backup.

    Args:
        service: Backup service instance

    Returns:
        The new backup key
    """
    try:
        key = await service.create_backup()
    except BackupFailedError as e:
        return create_error_response(e)

    return {"key": key, "created": True}


async def backup_list(service: BackupService) -> dict[str, Any]:
    """List backups, newest first."""
    backups = await service.list_backups()
    return {
        "backups": [
            {"key": b.key, "date": b.date, "size": b.size} for b in backups
        ],
        "total": len(backups),
    }


async def backup_restore(service: BackupService, key: str) -> dict[str, Any]:
    """Restore a backup.

    Args:
        service: Backup service instance
        key: Backup key to restore

    Returns:
        Import outcome of the restore, or an error if the key does not exist
    """
    try:
        outcome = await service.restore_from_backup(key)
    except BackupNotFoundError as e:
        return create_error_response(e, {"key": key})

    return outcome.model_dump()


async def backup_delete(service: BackupService, key: str) -> dict[str, Any]:
    """Delete a backup (missing keys are ignored)."""
    await service.delete_backup(key)
    return {"key": key, "deleted": True}
