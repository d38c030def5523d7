"""Service for local, timestamp-keyed dataset backups."""

import logging
import time
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from gym_records.config.settings import Settings
from gym_records.db.repositories.base import KeyValueBackend
from gym_records.exceptions import BackupFailedError, BackupNotFoundError
from gym_records.models.export_import import (
    BackupInfo,
    ExportFormat,
    ExportOptions,
    ImportOptions,
    ImportOutcome,
)
from gym_records.services.export_service import ExportService
from gym_records.utils.formatting import format_datetime
from gym_records.utils.validators import validate_backup_key

if TYPE_CHECKING:
    from gym_records.services.import_service import ImportService

logger = logging.getLogger(__name__)

# Restores overwrite everything and never trigger a nested backup.
RESTORE_OPTIONS = ImportOptions(
    overwrite_existing=True,
    skip_duplicates=False,
    validate_data=True,
    create_backup=False,
)


class BackupService:
    """Manages full-dataset snapshots stored in the key-value store.

    Backups are kept until deleted explicitly; there is no retention cap.
    """

    def __init__(
        self,
        export_service: ExportService,
        kv_store: KeyValueBackend,
        settings: Settings,
        import_service: "ImportService | None" = None,
    ) -> None:
        """Initialize backup service.

        Args:
            export_service: Produces the JSON snapshots
            kv_store: Where backups are persisted
            settings: Application settings
            import_service: Used by restore (may be attached after construction)
        """
        self.export_service = export_service
        self.kv_store = kv_store
        self.settings = settings
        self.import_service = import_service

    @property
    def prefix(self) -> str:
        return self.settings.backup_prefix

    async def create_backup(self) -> str:
        """Snapshot every category, settings and password as JSON.

        Returns:
            The new backup key (``<prefix><epoch-millis>``)

        Raises:
            BackupFailedError: If the export or the write fails
        """
        options = ExportOptions(
            include_members=True,
            include_payments=True,
            include_activities=True,
            include_settings=True,
            include_password=True,
            format=ExportFormat.JSON.value,
        )

        try:
            artifact = await self.export_service.export_data(options)

            millis = int(time.time() * 1000)
            key = f"{self.prefix}{millis}"
            # Two backups in the same millisecond must not overwrite each other
            while await self.kv_store.get(key) is not None:
                millis += 1
                key = f"{self.prefix}{millis}"

            await self.kv_store.set(key, artifact.content.decode("utf-8"))
        except Exception as e:
            logger.error("Backup failed: %s", e)
            raise BackupFailedError(f"Failed to create backup: {e}") from e

        logger.info("Backup created: %s (%d bytes)", key, artifact.size_bytes)
        return key

    async def list_backups(self) -> list[BackupInfo]:
        """List stored backups, newest first.

        Returns:
            BackupInfo entries with human-readable date and size in KB
        """
        backups: list[tuple[int, BackupInfo]] = []

        for key in await self.kv_store.keys(self.prefix):
            value = await self.kv_store.get(key)
            size_bytes = len(value.encode("utf-8")) if value else 0
            size_kb = int(size_bytes / 1024 + 0.5)

            try:
                millis = validate_backup_key(key, self.prefix)
                created_at = datetime.fromtimestamp(millis / 1000, tz=timezone.utc)
                date = format_datetime(created_at)
            except (ValueError, OverflowError, OSError):
                millis, created_at, date = -1, None, ""

            backups.append(
                (
                    millis,
                    BackupInfo(
                        key=key,
                        date=date,
                        size=f"{size_kb} KB",
                        size_kb=size_kb,
                        created_at=created_at,
                    ),
                )
            )

        backups.sort(key=lambda item: (item[0], item[1].key), reverse=True)
        return [info for _, info in backups]

    async def get_backup(self, key: str) -> str:
        """Return the stored JSON of a backup.

        Raises:
            BackupNotFoundError: If the key is not a stored backup
        """
        value = await self.kv_store.get(key) if key.startswith(self.prefix) else None
        if value is None:
            raise BackupNotFoundError(f"Backup not found: {key}")
        return value

    async def restore_from_backup(self, key: str) -> ImportOutcome:
        """Re-import a backup over the current data.

        Args:
            key: Backup key

        Returns:
            Outcome of the underlying import

        Raises:
            BackupNotFoundError: If the key does not exist
        """
        content = await self.get_backup(key)

        if self.import_service is None:
            raise RuntimeError("Import service not configured")

        logger.info("Restoring backup %s", key)
        return await self.import_service.import_data(content, "json", RESTORE_OPTIONS)

    async def delete_backup(self, key: str) -> None:
        """Delete a backup. Missing keys are ignored."""
        if not key.startswith(self.prefix):
            logger.warning("Refusing to delete non-backup key: %s", key)
            return

        await self.kv_store.delete(key)
        logger.info("Backup deleted: %s", key)
