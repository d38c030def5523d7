"""Offline change tracker MCP tools."""

from typing import Any

from gym_records.exceptions import StorageError, ValidationError
from gym_records.services.offline_sync_service import OfflineSyncService
from gym_records.tools import create_error_response


def _status_dict(service: OfflineSyncService) -> dict[str, Any]:
    status = service.status
    return {
        "is_online": status.is_online,
        "last_sync": status.last_sync.isoformat() if status.last_sync else None,
        "pending_changes": status.pending_changes,
        "is_syncing": status.is_syncing,
    }


async def offline_record_change(
    service: OfflineSyncService, key: str, data: Any
) -> dict[str, Any]:
    """Record a local change as pending."""
    if not key:
        return create_error_response(ValidationError(["key is required"]))

    if not await service.record_change(key, data):
        return create_error_response(StorageError(f"Failed to record change {key}"))

    return {"key": key, "recorded": True, **_status_dict(service)}


async def offline_sync(service: OfflineSyncService) -> dict[str, Any]:
    """Mark pending changes as synced."""
    synced = await service.sync()
    return {"synced": synced, **_status_dict(service)}


async def offline_status(service: OfflineSyncService) -> dict[str, Any]:
    """Report sync status."""
    await service.get_status()
    return _status_dict(service)


async def offline_cleanup(service: OfflineSyncService) -> dict[str, Any]:
    """Purge old synced and corrupt tracker entries."""
    removed = await service.cleanup_old_entries()
    return {"removed": removed, **_status_dict(service)}
