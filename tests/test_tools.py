"""Tests for MCP tool functions and server wiring."""

import json
from datetime import datetime, timedelta, timezone

import pytest

from conftest import make_payload
from gym_records import server
from gym_records.config.settings import Settings
from gym_records.db.database import Database
from gym_records.db.repositories.kv_repository import KeyValueStore
from gym_records.db.repositories.record_repository import MemberRepository
from gym_records.exceptions import (
    BackupFailedError,
    BackupNotFoundError,
    ExportFailedError,
    StorageError,
    ValidationError,
)
from gym_records.services.backup_service import BackupService
from gym_records.services.export_service import ExportService
from gym_records.services.import_service import ImportService
from gym_records.services.offline_sync_service import OfflineSyncService
from gym_records.tools import backup_tools, create_error_response, sync_tools, transfer_tools


class TestErrorResponse:
    """create_error_response()."""

    def test_shape(self):
        response = create_error_response(BackupNotFoundError("Backup not found"), {"key": "x"})

        assert response["error"] is True
        assert response["message"] == "Backup not found"
        assert response["error_type"] == "BackupNotFoundError"
        assert response["details"] == {"key": "x"}
        assert "timestamp" in response

    def test_no_details(self):
        assert "details" not in create_error_response(StorageError("m"))

    def test_type_follows_exception_class(self):
        assert create_error_response(ExportFailedError("x"))["error_type"] == "ExportFailedError"
        assert create_error_response(BackupFailedError("x"))["error_type"] == "BackupFailedError"

    def test_validation_errors_listed(self):
        error = ValidationError(["Member #1: missing id or name", "Payment #2: missing id or amount"])

        response = create_error_response(error, {"path": "f.json"})

        assert response["error_type"] == "ValidationError"
        assert response["message"] == str(error)
        assert response["details"] == {
            "errors": ["Member #1: missing id or name", "Payment #2: missing id or amount"],
            "path": "f.json",
        }


class TestDataExportTool:
    """data_export tool."""

    @pytest.mark.asyncio
    async def test_inline_content(self, export_service: ExportService, seeded_store):
        result = await transfer_tools.data_export(export_service)

        assert result["media_type"] == "application/json"
        assert result["counts"] == {"members": 3, "payments": 2, "activities": 2}
        assert json.loads(result["content"])["metadata"]["totalMembers"] == 3
        assert "file_path" not in result

    @pytest.mark.asyncio
    async def test_write_to_directory(
        self, export_service: ExportService, seeded_store, tmp_path
    ):
        result = await transfer_tools.data_export(
            export_service, output_path=str(tmp_path), format="csv"
        )

        written = tmp_path / result["filename"]
        assert result["file_path"] == str(written)
        assert "content" not in result
        assert written.read_text(encoding="utf-8").startswith("=== الأعضاء ===")
        assert written.stat().st_size == result["size_bytes"]

    @pytest.mark.asyncio
    async def test_write_to_file_path(self, export_service: ExportService, tmp_path):
        target = tmp_path / "out" / "snapshot.json"

        result = await transfer_tools.data_export(export_service, output_path=str(target))

        assert result["file_path"] == str(target)
        assert json.loads(target.read_text(encoding="utf-8"))["version"] == "2.0"

    @pytest.mark.asyncio
    async def test_date_range(self, export_service: ExportService, seeded_store):
        result = await transfer_tools.data_export(
            export_service, date_from="2024-01-01", date_to="2024-01-31T23:59:59Z"
        )

        assert result["counts"] == {"members": 1, "payments": 1, "activities": 1}

    @pytest.mark.asyncio
    async def test_half_open_range_rejected(self, export_service: ExportService):
        result = await transfer_tools.data_export(export_service, date_from="2024-01-01")

        assert result["error"] is True
        assert result["error_type"] == "ValidationError"
        assert result["details"] == {"errors": ["date_from and date_to must be given together"]}

    @pytest.mark.asyncio
    async def test_unsupported_format(self, export_service: ExportService):
        result = await transfer_tools.data_export(export_service, format="pdf")

        assert result["error"] is True
        assert result["error_type"] == "ExportFailedError"


class TestDataImportTool:
    """data_import tool."""

    @pytest.mark.asyncio
    async def test_import_file(
        self,
        import_service: ImportService,
        member_repository: MemberRepository,
        tmp_path,
    ):
        path = tmp_path / "yacin-gym-export-2024-04-01.json"
        path.write_text(
            json.dumps(make_payload(members=[{"id": "m1", "name": "علي"}]), ensure_ascii=False),
            encoding="utf-8",
        )

        result = await transfer_tools.data_import(import_service, str(path))

        assert result["success"] is True
        assert result["imported"] == {
            "members": 1,
            "payments": 0,
            "activities": 0,
            "settings": False,
        }
        assert (await member_repository.get_by_id("m1"))["name"] == "علي"

    @pytest.mark.asyncio
    async def test_extension_from_file_name(self, import_service: ImportService, tmp_path):
        path = tmp_path / "members.csv"
        path.write_text("name\nAli\n", encoding="utf-8")

        result = await transfer_tools.data_import(import_service, str(path), create_backup=False)

        assert result["success"] is False
        assert result["errors"] == ["CSV import not yet supported. Please use a JSON file"]

    @pytest.mark.asyncio
    async def test_missing_file(self, import_service: ImportService, tmp_path):
        result = await transfer_tools.data_import(import_service, str(tmp_path / "nope.json"))

        assert result["error"] is True
        assert result["error_type"] == "StorageError"
        assert result["message"].startswith("Failed to read import file:")
        assert result["details"]["path"] == str(tmp_path / "nope.json")

    @pytest.mark.asyncio
    async def test_empty_path(self, import_service: ImportService):
        result = await transfer_tools.data_import(import_service, "")

        assert result["error_type"] == "ValidationError"


class TestBackupTools:
    """Backup tools."""

    @pytest.mark.asyncio
    async def test_create_list_restore_delete(
        self,
        backup_service: BackupService,
        import_service: ImportService,
        seeded_store,
    ):
        created = await backup_tools.backup_create(backup_service)
        key = created["key"]

        listed = await backup_tools.backup_list(backup_service)
        assert listed["total"] == 1
        assert listed["backups"][0]["key"] == key
        assert listed["backups"][0]["size"].endswith(" KB")

        restored = await backup_tools.backup_restore(backup_service, key)
        assert restored["success"] is True
        assert restored["imported"]["members"] == 3

        deleted = await backup_tools.backup_delete(backup_service, key)
        assert deleted == {"key": key, "deleted": True}
        assert (await backup_tools.backup_list(backup_service))["total"] == 0

    @pytest.mark.asyncio
    async def test_restore_missing(
        self, backup_service: BackupService, import_service: ImportService
    ):
        result = await backup_tools.backup_restore(backup_service, "backup_42")

        assert result["error"] is True
        assert result["error_type"] == "BackupNotFoundError"
        assert result["details"] == {"key": "backup_42"}


class TestSyncTools:
    """Offline tracker tools."""

    @pytest.mark.asyncio
    async def test_record_sync_cleanup(self, offline_sync_service: OfflineSyncService):
        recorded = await sync_tools.offline_record_change(
            offline_sync_service, "member_1", {"id": "1"}
        )
        assert recorded["recorded"] is True
        assert recorded["pending_changes"] == 1

        status = await sync_tools.offline_status(offline_sync_service)
        assert status == {
            "is_online": True,
            "last_sync": None,
            "pending_changes": 1,
            "is_syncing": False,
        }

        synced = await sync_tools.offline_sync(offline_sync_service)
        assert synced["synced"] is True
        assert synced["pending_changes"] == 0
        assert synced["last_sync"] is not None

        cleaned = await sync_tools.offline_cleanup(offline_sync_service)
        assert cleaned["removed"] == 0

    @pytest.mark.asyncio
    async def test_record_requires_key(self, offline_sync_service: OfflineSyncService):
        result = await sync_tools.offline_record_change(offline_sync_service, "", {})

        assert result["error_type"] == "ValidationError"


class TestServerWiring:
    """Service initialization and shutdown."""

    @pytest.mark.asyncio
    async def test_initialize_and_shutdown(self, tmp_path):
        settings = Settings(database_path=str(tmp_path / "gym.db"))

        await server.initialize_services(settings)
        try:
            assert server.backup_service.import_service is server.import_service
            assert server.import_service.backup_service is server.backup_service
            assert len(server._background_tasks) == 1

            created = await server.backup_create()
            assert created["created"] is True
            assert (await server.backup_list())["total"] == 1
            assert (await server.offline_status())["pending_changes"] == 0
        finally:
            await server.shutdown_services()

        assert not server._background_tasks

    @pytest.mark.asyncio
    async def test_startup_sweeps_offline_entries(self, tmp_path):
        # Given a tracker left with stale and corrupt entries
        settings = Settings(database_path=str(tmp_path / "gym.db"))
        db = Database(settings.database_path)
        await db.connect()
        await db.migrate()
        kv_store = KeyValueStore(db)
        now = datetime.now(timezone.utc)
        old = (now - timedelta(days=30)).isoformat()
        await kv_store.set(
            "offline_member_old",
            json.dumps({"data": {}, "timestamp": old, "synced": True, "syncedAt": old}),
        )
        await kv_store.set("offline_broken", "{{{")
        await kv_store.set(
            "offline_member_new",
            json.dumps({"data": {}, "timestamp": now.isoformat(), "synced": False}),
        )
        await db.close()

        # When
        await server.initialize_services(settings)
        try:
            # Then the sweep ran before the first interval elapsed
            remaining = await server.offline_sync_service.kv_store.keys("offline_")
            assert remaining == ["offline_member_new"]
        finally:
            await server.shutdown_services()
