"""Offline change tracker models."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class OfflineEntry(BaseModel):
    """A locally applied change awaiting (advisory) sync."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    data: Any = None
    timestamp: str
    synced: bool = False
    synced_at: str | None = None


class SyncStatus(BaseModel):
    """Sync state surfaced to the presentation layer."""

    is_online: bool = True
    last_sync: datetime | None = None
    pending_changes: int = Field(default=0, ge=0)
    is_syncing: bool = False
