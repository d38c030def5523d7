"""Data models for gym-records."""

from gym_records.models.export_import import (
    BackupInfo,
    DateRange,
    ExportArtifact,
    ExportFormat,
    ExportOptions,
    ImportedCounts,
    ImportOptions,
    ImportOutcome,
)
from gym_records.models.offline import OfflineEntry, SyncStatus
from gym_records.models.snapshot import (
    RECORD_CATEGORIES,
    DatasetSnapshot,
    PricingSettings,
    SettingsBag,
    SnapshotData,
    SnapshotMetadata,
    UserSettings,
)

__all__ = [
    # Snapshot models
    "RECORD_CATEGORIES",
    "DatasetSnapshot",
    "SnapshotMetadata",
    "SnapshotData",
    "SettingsBag",
    "PricingSettings",
    "UserSettings",
    # Export/import models
    "ExportFormat",
    "ExportOptions",
    "DateRange",
    "ExportArtifact",
    "ImportOptions",
    "ImportedCounts",
    "ImportOutcome",
    "BackupInfo",
    # Offline models
    "OfflineEntry",
    "SyncStatus",
]
