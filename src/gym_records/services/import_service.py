"""Service for importing dataset snapshots into local storage."""

import json
import logging
from typing import TYPE_CHECKING, Any

from gym_records.config.settings import Settings
from gym_records.db.repositories.base import KeyValueBackend, RecordStore
from gym_records.exceptions import (
    BackupFailedError,
    UnsupportedImportFormatError,
    ValidationError,
)
from gym_records.models.export_import import ImportOptions, ImportOutcome
from gym_records.models.snapshot import RECORD_CATEGORIES
from gym_records.services.codec import InterchangeCodec
from gym_records.utils.validators import ensure_valid_import_payload

if TYPE_CHECKING:
    from gym_records.services.backup_service import BackupService

logger = logging.getLogger(__name__)

RECORD_LABELS = {
    "members": "member",
    "payments": "payment",
    "activities": "activity",
}


class ImportService:
    """Service for validating and merging external data into storage."""

    def __init__(
        self,
        member_repository: RecordStore,
        payment_repository: RecordStore,
        activity_repository: RecordStore,
        kv_store: KeyValueBackend,
        settings: Settings,
        codec: InterchangeCodec | None = None,
        backup_service: "BackupService | None" = None,
    ) -> None:
        """Initialize import service.

        Args:
            member_repository: Member records
            payment_repository: Payment records
            activity_repository: Activity records
            kv_store: Key-value store receiving the settings bags
            settings: Application settings
            codec: Interchange codec (default: a new InterchangeCodec)
            backup_service: Used for pre-import backups (optional)
        """
        self.repositories: dict[str, RecordStore] = {
            "members": member_repository,
            "payments": payment_repository,
            "activities": activity_repository,
        }
        self.kv_store = kv_store
        self.settings = settings
        self.codec = codec or InterchangeCodec()
        self.backup_service = backup_service

    async def import_data(
        self,
        file_content: str,
        file_extension: str,
        options: ImportOptions | None = None,
    ) -> ImportOutcome:
        """Import a snapshot file.

        Problems are reported in the returned outcome; this method does not
        raise for malformed files, rejected records or storage failures.

        Args:
            file_content: Raw file text
            file_extension: Extension or file name used to pick the decoder
            options: Merge policy (defaults to ImportOptions())

        Returns:
            ImportOutcome with per-category counts, errors and warnings
        """
        options = options or ImportOptions()
        outcome = ImportOutcome()

        try:
            if options.create_backup and not await self._backup_before_import(outcome):
                return outcome.finalize()

            try:
                payload = self.codec.decode(file_content, file_extension)
            except UnsupportedImportFormatError as e:
                outcome.errors.append(str(e))
                return outcome.finalize()

            if options.validate_data:
                try:
                    ensure_valid_import_payload(payload)
                except ValidationError as e:
                    logger.warning("Import rejected with %d validation error(s)", len(e.errors))
                    outcome.errors.extend(e.errors)
                    return outcome.finalize()

            if not isinstance(payload, dict) or not isinstance(payload.get("data"), dict):
                outcome.errors.append("Unexpected import error: file has no data section")
                return outcome.finalize()

            self._check_version(payload, outcome)

            data = payload["data"]
            for category in RECORD_CATEGORIES:
                await self._import_category(category, data.get(category), options, outcome)

            if data.get("settings") is not None:
                await self._import_settings(data["settings"], outcome)

        except Exception as e:
            logger.exception("Unexpected import failure: %s", e)
            outcome.errors.append(f"Unexpected import error: {e}")

        outcome.finalize()
        logger.info(
            "Import finished: success=%s imported=%s errors=%d warnings=%d",
            outcome.success,
            outcome.imported.model_dump(),
            len(outcome.errors),
            len(outcome.warnings),
        )
        return outcome

    async def _backup_before_import(self, outcome: ImportOutcome) -> bool:
        """Snapshot current state; return False when the import must stop."""
        try:
            if self.backup_service is None:
                raise BackupFailedError("no backup service configured")
            key = await self.backup_service.create_backup()
            logger.info("Created pre-import backup %s", key)
            return True
        except Exception as e:
            if self.settings.backup_failure_policy == "abort":
                logger.error("Pre-import backup failed, aborting import: %s", e)
                outcome.errors.append(f"Pre-import backup failed, import aborted: {e}")
                return False

            logger.warning("Pre-import backup failed, continuing: %s", e)
            outcome.warnings.append(f"Pre-import backup failed: {e}")
            return True

    def _check_version(self, payload: dict[str, Any], outcome: ImportOutcome) -> None:
        version = payload.get("version")
        if version and str(version) not in self.settings.supported_versions:
            outcome.warnings.append(
                f"File version ({version}) may not be fully compatible"
            )

    async def _import_category(
        self,
        category: str,
        records: Any,
        options: ImportOptions,
        outcome: ImportOutcome,
    ) -> None:
        """Write one category record by record; failures never stop the loop."""
        if not records:
            return
        if not isinstance(records, list):
            outcome.errors.append(f"Invalid {category} section: expected a list")
            return

        repository = self.repositories[category]
        imported = 0

        for record in records:
            try:
                if options.skip_duplicates and await self._exists(repository, record):
                    continue
                await repository.upsert_by_id(record)
                imported += 1
            except Exception as e:
                label = RECORD_LABELS[category]
                name = self._describe(category, record)
                logger.warning("Failed to import %s %s: %s", label, name, e)
                outcome.errors.append(f"Failed to import {label} {name}: {e}")

        setattr(outcome.imported, category, imported)

    async def _exists(self, repository: RecordStore, record: Any) -> bool:
        if not isinstance(record, dict):
            return False
        record_id = record.get("id")
        if record_id is None or record_id == "":
            return False
        return await repository.get_by_id(str(record_id)) is not None

    @staticmethod
    def _describe(category: str, record: Any) -> str:
        if not isinstance(record, dict):
            return "<invalid record>"
        if category == "members" and record.get("name"):
            return str(record["name"])
        return str(record.get("id") or "<missing id>")

    async def _import_settings(self, bag: Any, outcome: ImportOutcome) -> None:
        """Write pricing, user and password independently of the records.

        Bags are stored exactly as they appear in the file; typed defaults
        are applied only when settings are read back. Empty bags are skipped.
        """
        try:
            if not isinstance(bag, dict):
                raise ValueError("settings must be an object")

            bags = {
                self.settings.pricing_settings_key: bag.get("pricing"),
                self.settings.user_settings_key: bag.get("user"),
            }
            for key, value in bags.items():
                if value and not isinstance(value, dict):
                    raise ValueError(f"{key} must be an object")

            for key, value in bags.items():
                if value:
                    await self.kv_store.set(key, json.dumps(value, ensure_ascii=False))

            if bag.get("password"):
                await self.kv_store.set(self.settings.password_key, str(bag["password"]))

            outcome.imported.settings = True
        except Exception as e:
            logger.error("Failed to import settings: %s", e)
            outcome.errors.append(f"Failed to import settings: {e}")
