"""MCP server implementation for Gym Records."""

import asyncio
import logging
from typing import Any

from mcp.server.fastmcp import FastMCP

from gym_records.config.settings import Settings
from gym_records.db.database import Database
from gym_records.db.repositories.kv_repository import KeyValueStore
from gym_records.db.repositories.record_repository import (
    ActivityRepository,
    MemberRepository,
    PaymentRepository,
)
from gym_records.services.backup_service import BackupService
from gym_records.services.export_service import ExportService
from gym_records.services.import_service import ImportService
from gym_records.services.offline_sync_service import OfflineSyncService
from gym_records.tools import backup_tools, sync_tools, transfer_tools

logger = logging.getLogger(__name__)

# Initialize FastMCP server
mcp = FastMCP("gym-records")

# Global service instances (initialized in main)
export_service: ExportService | None = None
import_service: ImportService | None = None
backup_service: BackupService | None = None
offline_sync_service: OfflineSyncService | None = None
db: Database | None = None

# Background tasks
_background_tasks: set[asyncio.Task[None]] = set()


async def initialize_services(settings: Settings) -> None:
    """Initialize all services and database.

    Args:
        settings: Application settings
    """
    global export_service, import_service, backup_service, offline_sync_service, db

    db = Database(settings.database_path)
    await db.connect()
    await db.migrate()

    member_repo = MemberRepository(db)
    payment_repo = PaymentRepository(db)
    activity_repo = ActivityRepository(db)
    kv_store = KeyValueStore(db)

    export_service = ExportService(member_repo, payment_repo, activity_repo, kv_store, settings)
    backup_service = BackupService(export_service, kv_store, settings)
    import_service = ImportService(
        member_repo,
        payment_repo,
        activity_repo,
        kv_store,
        settings,
        backup_service=backup_service,
    )
    # Restore goes through the import pipeline
    backup_service.import_service = import_service

    offline_sync_service = OfflineSyncService(kv_store, settings)

    await start_background_tasks(settings)


async def start_background_tasks(settings: Settings) -> None:
    """Sweep the offline tracker once, then start the periodic cleanup."""
    if not offline_sync_service:
        logger.warning("Services not initialized, skipping background tasks")
        return

    await _sweep_offline_entries()

    task = asyncio.create_task(_offline_cleanup_task(settings.offline_cleanup_interval_seconds))
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)


async def stop_background_tasks() -> None:
    """Stop all background tasks gracefully."""
    if not _background_tasks:
        return

    for task in _background_tasks:
        task.cancel()

    try:
        await asyncio.wait_for(
            asyncio.gather(*_background_tasks, return_exceptions=True),
            timeout=5.0,
        )
    except asyncio.TimeoutError:
        logger.warning("Background tasks did not stop within timeout")


async def _sweep_offline_entries() -> None:
    """Purge old synced and corrupt tracker entries; failures are logged."""
    if not offline_sync_service:
        return

    try:
        count = await offline_sync_service.cleanup_old_entries()
        if count > 0:
            logger.info("Cleaned up %d offline tracker entries", count)
    except Exception as e:
        logger.error("Error in offline cleanup: %s", e)


async def _offline_cleanup_task(interval: int) -> None:
    """Background task repeating the tracker sweep every ``interval`` seconds."""
    while True:
        try:
            await asyncio.sleep(interval)
            await _sweep_offline_entries()
        except asyncio.CancelledError:
            logger.info("Offline cleanup task cancelled")
            raise


async def shutdown_services() -> None:
    """Shutdown all services and close database."""
    await stop_background_tasks()

    if db:
        await db.close()


# Export/Import Tools
@mcp.tool()
async def data_export(
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
    """Export gym data as JSON, CSV or an Excel-compatible HTML table.

    Args:
        output_path: File or directory to write to (omit to return content)
        include_members: Include member records
        include_payments: Include payment records
        include_activities: Include activity records
        include_settings: Include pricing and user settings
        include_password: Include the stored password
        date_from: Start of date window (ISO format, requires date_to)
        date_to: End of date window (ISO format, requires date_from)
        format: json, csv or excel

    Returns:
        Filename, media type, counts and size of the export
    """
    if not export_service:
        raise RuntimeError("Services not initialized")
    return await transfer_tools.data_export(
        export_service,
        output_path,
        include_members,
        include_payments,
        include_activities,
        include_settings,
        include_password,
        date_from,
        date_to,
        format,
    )


@mcp.tool()
async def data_import(
    input_path: str,
    overwrite_existing: bool = False,
    skip_duplicates: bool = True,
    validate_data: bool = True,
    create_backup: bool = True,
) -> dict[str, Any]:
    """Import a JSON export file.

    Args:
        input_path: Path of the file to import
        overwrite_existing: Informational only; records that are not skipped are always overwritten
        skip_duplicates: Skip records whose id already exists
        validate_data: Validate the file before writing
        create_backup: Back up current data before importing

    Returns:
        Success flag, imported counts, errors and warnings
    """
    if not import_service:
        raise RuntimeError("Services not initialized")
    return await transfer_tools.data_import(
        import_service, input_path, overwrite_existing, skip_duplicates, validate_data, create_backup
    )


# Backup Tools
@mcp.tool()
async def backup_create() -> dict[str, Any]:
    """Create a full backup of all data, settings and password.

    Returns:
        The new backup key
    """
    if not backup_service:
        raise RuntimeError("Services not initialized")
    return await backup_tools.backup_create(backup_service)


@mcp.tool()
async def backup_list() -> dict[str, Any]:
    """List stored backups, newest first.

    Returns:
        Backups with key, display date and size
    """
    if not backup_service:
        raise RuntimeError("Services not initialized")
    return await backup_tools.backup_list(backup_service)


@mcp.tool()
async def backup_restore(key: str) -> dict[str, Any]:
    """Restore a backup, overwriting current records.

    Args:
        key: Backup key (e.g. backup_1700000000000)

    Returns:
        Import outcome of the restore
    """
    if not backup_service:
        raise RuntimeError("Services not initialized")
    return await backup_tools.backup_restore(backup_service, key)


@mcp.tool()
async def backup_delete(key: str) -> dict[str, Any]:
    """Delete a backup.

    Args:
        key: Backup key

    Returns:
        Deletion confirmation
    """
    if not backup_service:
        raise RuntimeError("Services not initialized")
    return await backup_tools.backup_delete(backup_service, key)


# Offline Tracker Tools
@mcp.tool()
async def offline_record_change(key: str, data: Any) -> dict[str, Any]:
    """Record a local change as pending sync.

    Args:
        key: Change key (e.g. member_42)
        data: Change payload

    Returns:
        Confirmation and current sync status
    """
    if not offline_sync_service:
        raise RuntimeError("Services not initialized")
    return await sync_tools.offline_record_change(offline_sync_service, key, data)


@mcp.tool()
async def offline_sync() -> dict[str, Any]:
    """Mark all pending changes as synced.

    Returns:
        Whether the sync ran, and current sync status
    """
    if not offline_sync_service:
        raise RuntimeError("Services not initialized")
    return await sync_tools.offline_sync(offline_sync_service)


@mcp.tool()
async def offline_status() -> dict[str, Any]:
    """Get online state, last sync time and pending change count."""
    if not offline_sync_service:
        raise RuntimeError("Services not initialized")
    return await sync_tools.offline_status(offline_sync_service)


@mcp.tool()
async def offline_cleanup() -> dict[str, Any]:
    """Remove synced changes past retention and corrupt entries."""
    if not offline_sync_service:
        raise RuntimeError("Services not initialized")
    return await sync_tools.offline_cleanup(offline_sync_service)


def create_server() -> FastMCP:
    """Create and return MCP server instance.

    Returns:
        FastMCP server instance
    """
    return mcp
