"""Offline change tracker.

Records locally applied changes with a synced flag so the UI can show a
pending-changes count. "Sync" is local bookkeeping only: entries are
marked synced, nothing is transmitted.
"""

import json
import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from gym_records.config.settings import Settings
from gym_records.db.repositories.base import KeyValueBackend
from gym_records.exceptions import StorageError
from gym_records.models.offline import OfflineEntry, SyncStatus
from gym_records.utils.dates import parse_datetime

logger = logging.getLogger(__name__)


class OfflineSyncService:
    """Service tracking unsynced local changes."""

    def __init__(
        self,
        kv_store: KeyValueBackend,
        settings: Settings,
        connectivity: Callable[[], bool] | None = None,
    ) -> None:
        """Initialize tracker.

        Args:
            kv_store: Key-value store holding tracker entries
            settings: Application settings
            connectivity: Returns True while online (default: always online)
        """
        self.kv_store = kv_store
        self.settings = settings
        self.connectivity = connectivity or (lambda: True)
        self.status = SyncStatus(is_online=self.is_online())

    def is_online(self) -> bool:
        """Probe connectivity."""
        return bool(self.connectivity())

    def _key(self, key: str) -> str:
        return f"{self.settings.offline_prefix}{key}"

    async def _load(self, full_key: str) -> OfflineEntry | None:
        """Load an entry; raises ValueError when the stored value is corrupt."""
        raw = await self.kv_store.get(full_key)
        if raw is None:
            return None
        try:
            return OfflineEntry.model_validate(json.loads(raw))
        except (json.JSONDecodeError, PydanticValidationError) as e:
            raise ValueError(f"Corrupt tracker entry {full_key}: {e}") from e

    async def _store(self, full_key: str, entry: OfflineEntry) -> None:
        await self.kv_store.set(
            full_key,
            json.dumps(entry.model_dump(mode="json", by_alias=True), ensure_ascii=False),
        )

    async def record_change(self, key: str, data: Any) -> bool:
        """Store a change as unsynced.

        Args:
            key: Change key (stored under the tracker prefix)
            data: JSON-serializable change payload

        Returns:
            True if stored, False if the store rejected it
        """
        entry = OfflineEntry(
            data=data,
            timestamp=datetime.now(timezone.utc).isoformat(),
            synced=False,
        )
        try:
            await self._store(self._key(key), entry)
        except (StorageError, TypeError, ValueError) as e:
            logger.error("Failed to record offline change %s: %s", key, e)
            return False

        self.status.pending_changes = await self.pending_count()
        return True

    async def get_change(self, key: str) -> Any | None:
        """Return the data of a tracked change, or None if absent or corrupt."""
        try:
            entry = await self._load(self._key(key))
        except ValueError as e:
            logger.warning("%s", e)
            return None
        return entry.data if entry else None

    async def save_member_offline(self, member: dict[str, Any]) -> bool:
        """Track a member change."""
        return await self.record_change(f"member_{member['id']}", member)

    async def save_payment_offline(self, payment: dict[str, Any]) -> bool:
        """Track a payment change."""
        return await self.record_change(f"payment_{payment['id']}", payment)

    async def has_offline_data(self) -> bool:
        """Whether any tracker entry exists."""
        return bool(await self.kv_store.keys(self.settings.offline_prefix))

    async def _pending_keys(self) -> list[str]:
        pending = []
        for full_key in await self.kv_store.keys(self.settings.offline_prefix):
            try:
                entry = await self._load(full_key)
            except ValueError:
                continue
            if entry is not None and not entry.synced:
                pending.append(full_key)
        return pending

    async def pending_count(self) -> int:
        """Number of unsynced entries (corrupt entries are not counted)."""
        return len(await self._pending_keys())

    async def sync(self) -> bool:
        """Mark every unsynced entry as synced.

        Returns:
            False when offline or when the store could not be read
        """
        if not self.is_online():
            self.status.is_online = False
            logger.info("Cannot sync while offline")
            return False

        self.status.is_online = True
        self.status.is_syncing = True
        try:
            for full_key in await self._pending_keys():
                try:
                    entry = await self._load(full_key)
                    if entry is None:
                        continue
                    entry.synced = True
                    entry.synced_at = datetime.now(timezone.utc).isoformat()
                    await self._store(full_key, entry)
                except (StorageError, ValueError) as e:
                    logger.error("Failed to sync %s: %s", full_key, e)

            self.status.last_sync = datetime.now(timezone.utc)
            self.status.pending_changes = await self.pending_count()
            return True
        except StorageError as e:
            logger.error("Sync failed: %s", e)
            return False
        finally:
            self.status.is_syncing = False

    async def cleanup_old_entries(self, now: datetime | None = None) -> int:
        """Purge synced entries past retention and corrupt entries.

        Args:
            now: Reference time (default: current UTC time)

        Returns:
            Number of entries removed
        """
        now = now or datetime.now(timezone.utc)
        cutoff = now - timedelta(days=self.settings.offline_retention_days)
        removed = 0

        for full_key in await self.kv_store.keys(self.settings.offline_prefix):
            try:
                entry = await self._load(full_key)
            except ValueError as e:
                logger.warning("Deleting %s", e)
                await self.kv_store.delete(full_key)
                removed += 1
                continue

            if entry is None or not entry.synced:
                continue

            recorded_at = parse_datetime(entry.timestamp)
            if recorded_at is not None and recorded_at < cutoff:
                await self.kv_store.delete(full_key)
                removed += 1

        if removed:
            logger.info("Removed %d offline tracker entries", removed)
        self.status.pending_changes = await self.pending_count()
        return removed

    async def get_status(self) -> SyncStatus:
        """Refresh and return the sync status."""
        self.status.is_online = self.is_online()
        self.status.pending_changes = await self.pending_count()
        return self.status.model_copy()
