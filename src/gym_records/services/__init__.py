"""Service layer for business logic."""

from gym_records.services.backup_service import BackupService
from gym_records.services.codec import InterchangeCodec
from gym_records.services.export_service import ExportService
from gym_records.services.import_service import ImportService
from gym_records.services.offline_sync_service import OfflineSyncService

__all__ = [
    "InterchangeCodec",
    "ExportService",
    "ImportService",
    "BackupService",
    "OfflineSyncService",
]
