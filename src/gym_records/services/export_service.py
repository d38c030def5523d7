"""Service for assembling and encoding dataset exports."""

import json
import logging
from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from gym_records.config.settings import Settings
from gym_records.db.repositories.base import KeyValueBackend, RecordStore
from gym_records.exceptions import ExportFailedError, StorageError
from gym_records.models.export_import import DateRange, ExportArtifact, ExportOptions
from gym_records.models.snapshot import (
    DatasetSnapshot,
    PricingSettings,
    SettingsBag,
    SnapshotData,
    SnapshotMetadata,
    UserSettings,
)
from gym_records.services.codec import InterchangeCodec
from gym_records.utils.dates import parse_datetime

logger = logging.getLogger(__name__)

# Date field used by the date-range filter, per category
DATE_FIELDS = {
    "members": "membershipStartDate",
    "payments": "date",
    "activities": "timestamp",
}


def filter_by_date_range(
    records: list[dict[str, Any]],
    date_range: DateRange | None,
    date_field: str,
) -> list[dict[str, Any]]:
    """Keep records whose date field falls inside ``[from, to]``.

    Records whose date is missing or unparseable are dropped when a range
    is given.

    Raises:
        ValueError: If a bound of the range cannot be parsed
    """
    if date_range is None:
        return records

    start = parse_datetime(date_range.from_date)
    end = parse_datetime(date_range.to_date)
    if start is None or end is None:
        raise ValueError(
            f"Invalid date range: {date_range.from_date!r} to {date_range.to_date!r}"
        )

    filtered = []
    for record in records:
        item_date = parse_datetime(record.get(date_field)) if isinstance(record, dict) else None
        if item_date is not None and start <= item_date <= end:
            filtered.append(record)
    return filtered


class ExportService:
    """Service building dataset snapshots and export artifacts."""

    def __init__(
        self,
        member_repository: RecordStore,
        payment_repository: RecordStore,
        activity_repository: RecordStore,
        kv_store: KeyValueBackend,
        settings: Settings,
        codec: InterchangeCodec | None = None,
    ) -> None:
        """Initialize export service.

        Args:
            member_repository: Member records
            payment_repository: Payment records
            activity_repository: Activity records
            kv_store: Key-value store holding the settings bags
            settings: Application settings
            codec: Interchange codec (default: a new InterchangeCodec)
        """
        self.member_repository = member_repository
        self.payment_repository = payment_repository
        self.activity_repository = activity_repository
        self.kv_store = kv_store
        self.settings = settings
        self.codec = codec or InterchangeCodec()

    async def export_data(self, options: ExportOptions) -> ExportArtifact:
        """Export the dataset in the requested format.

        Args:
            options: Category selection, password opt-in, date range, format

        Returns:
            ExportArtifact with encoded bytes, MIME type and suggested file name

        Raises:
            ExportFailedError: If anything goes wrong; no partial artifact is returned
        """
        try:
            snapshot = await self.build_snapshot(options)
            text = self.codec.encode(snapshot, options.format)
            extension = self.codec.file_extension(options.format)
            exported_at = datetime.now(timezone.utc)

            artifact = ExportArtifact(
                content=text.encode("utf-8"),
                media_type=self.codec.media_type(options.format),
                extension=extension,
                filename=(
                    f"{self.settings.export_filename_prefix}-"
                    f"{exported_at.date().isoformat()}.{extension}"
                ),
                counts=snapshot.counts,
                exported_at=exported_at,
            )
        except Exception as e:
            logger.error("Export failed: %s", e)
            raise ExportFailedError(f"Failed to export data: {e}") from e

        logger.info(
            "Exported %s (%d bytes, counts=%s)",
            artifact.filename,
            artifact.size_bytes,
            artifact.counts,
        )
        return artifact

    async def build_snapshot(self, options: ExportOptions) -> DatasetSnapshot:
        """Assemble a snapshot honoring category selection and date filtering.

        Args:
            options: Export options

        Returns:
            DatasetSnapshot whose metadata counts match its record lists
        """
        data = SnapshotData()

        if options.include_members:
            data.members = filter_by_date_range(
                await self.member_repository.get_all(),
                options.date_range,
                DATE_FIELDS["members"],
            )

        if options.include_payments:
            data.payments = filter_by_date_range(
                await self.payment_repository.get_all(),
                options.date_range,
                DATE_FIELDS["payments"],
            )

        if options.include_activities:
            data.activities = filter_by_date_range(
                await self.activity_repository.get_all(),
                options.date_range,
                DATE_FIELDS["activities"],
            )

        user_settings = await self.load_user_settings()

        if options.include_settings:
            data.settings = SettingsBag(
                pricing=await self.load_pricing_settings(),
                user=user_settings,
            )
            if options.include_password:
                data.settings.password = await self._load_password()

        metadata = SnapshotMetadata(
            total_members=len(data.members),
            total_payments=len(data.payments),
            total_activities=len(data.activities),
            exported_by=user_settings.username or self.settings.default_username,
            gym_name=self.settings.gym_name,
        )

        return DatasetSnapshot(
            version=self.settings.export_version,
            timestamp=datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
            metadata=metadata,
            data=data,
        )

    async def load_pricing_settings(self) -> PricingSettings:
        """Load pricing settings; missing or corrupt storage yields defaults."""
        bag = await self._load_bag(self.settings.pricing_settings_key)
        try:
            return PricingSettings.model_validate(bag)
        except PydanticValidationError as e:
            logger.warning("Invalid pricing settings, using defaults: %s", e)
            return PricingSettings()

    async def load_user_settings(self) -> UserSettings:
        """Load user settings; missing or corrupt storage yields defaults."""
        bag = await self._load_bag(self.settings.user_settings_key)
        try:
            return UserSettings.model_validate(bag)
        except PydanticValidationError as e:
            logger.warning("Invalid user settings, using defaults: %s", e)
            return UserSettings()

    async def _load_bag(self, key: str) -> dict[str, Any]:
        try:
            raw = await self.kv_store.get(key)
        except StorageError as e:
            logger.warning("Could not read settings under %s: %s", key, e)
            return {}
        if not raw:
            return {}

        try:
            bag = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Ignoring corrupt settings under %s", key)
            return {}

        if not isinstance(bag, dict):
            logger.warning("Ignoring non-object settings under %s", key)
            return {}
        return bag

    async def _load_password(self) -> str:
        return await self.kv_store.get(self.settings.password_key) or self.settings.default_password
