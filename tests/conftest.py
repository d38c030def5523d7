"""Pytest configuration and fixtures for gym-records tests."""

from collections.abc import AsyncIterator
from typing import Any

import pytest
import pytest_asyncio

from gym_records.config.settings import Settings
from gym_records.db.database import Database
from gym_records.db.repositories.kv_repository import KeyValueStore
from gym_records.db.repositories.record_repository import (
    ActivityRepository,
    MemberRepository,
    PaymentRepository,
)
from gym_records.services.backup_service import BackupService
from gym_records.services.codec import InterchangeCodec
from gym_records.services.export_service import ExportService
from gym_records.services.import_service import ImportService
from gym_records.services.offline_sync_service import OfflineSyncService

SAMPLE_MEMBERS: list[dict[str, Any]] = [
    {
        "id": "m1",
        "name": "Ali Benali",
        "membershipStatus": "active",
        "membershipStartDate": "2024-01-10",
        "phoneNumber": "0550000001",
        "subscriptionType": "monthly",
        "sessionsRemaining": 12,
        "paymentStatus": "paid",
    },
    {
        "id": "m2",
        "name": "Sara Kaci",
        "membershipStatus": "active",
        "membershipStartDate": "2024-02-15T09:30:00Z",
        "email": "sara@example.com",
        "subscriptionType": "sessions",
        "sessionsRemaining": 4,
        "paymentStatus": "unpaid",
    },
    {
        "id": "m3",
        "name": "Omar Haddad",
        "membershipStatus": "expired",
        "membershipStartDate": "not-a-date",
    },
]

SAMPLE_PAYMENTS: list[dict[str, Any]] = [
    {
        "id": "p1",
        "memberId": "m1",
        "amount": 1500,
        "date": "2024-01-12T10:00:00Z",
        "subscriptionType": "monthly",
        "paymentMethod": "cash",
        "status": "completed",
        "invoiceNumber": "INV-001",
    },
    {
        "id": "p2",
        "memberId": "m2",
        "amount": 2500.5,
        "date": "2024-03-01",
        "status": "completed",
    },
]

SAMPLE_ACTIVITIES: list[dict[str, Any]] = [
    {"id": "a1", "memberId": "m1", "type": "check-in", "timestamp": "2024-01-11T08:00:00Z"},
    {"id": "a2", "memberId": "m2", "type": "check-in", "timestamp": "2024-02-16T09:00:00Z"},
]


@pytest.fixture
def test_settings() -> Settings:
    """Test configuration settings."""
    return Settings(
        database_path=":memory:",
        backup_failure_policy="warn",
        offline_retention_days=7,
        log_level="DEBUG",
    )


@pytest_asyncio.fixture
async def memory_db() -> AsyncIterator[Database]:
    """In-memory database with migrations applied."""
    db = Database(":memory:")
    await db.connect()
    await db.migrate()
    yield db
    await db.close()


@pytest_asyncio.fixture
async def member_repository(memory_db: Database) -> MemberRepository:
    """Member repository fixture."""
    return MemberRepository(memory_db)


@pytest_asyncio.fixture
async def payment_repository(memory_db: Database) -> PaymentRepository:
    """Payment repository fixture."""
    return PaymentRepository(memory_db)


@pytest_asyncio.fixture
async def activity_repository(memory_db: Database) -> ActivityRepository:
    """Activity repository fixture."""
    return ActivityRepository(memory_db)


@pytest_asyncio.fixture
async def kv_store(memory_db: Database) -> KeyValueStore:
    """Key-value store fixture."""
    return KeyValueStore(memory_db)


@pytest.fixture
def codec() -> InterchangeCodec:
    """Interchange codec fixture."""
    return InterchangeCodec()


@pytest_asyncio.fixture
async def export_service(
    member_repository: MemberRepository,
    payment_repository: PaymentRepository,
    activity_repository: ActivityRepository,
    kv_store: KeyValueStore,
    test_settings: Settings,
) -> ExportService:
    """Export service fixture."""
    return ExportService(
        member_repository, payment_repository, activity_repository, kv_store, test_settings
    )


@pytest_asyncio.fixture
async def backup_service(
    export_service: ExportService,
    kv_store: KeyValueStore,
    test_settings: Settings,
) -> BackupService:
    """Backup service fixture (import service attached by import_service)."""
    return BackupService(export_service, kv_store, test_settings)


@pytest_asyncio.fixture
async def import_service(
    member_repository: MemberRepository,
    payment_repository: PaymentRepository,
    activity_repository: ActivityRepository,
    kv_store: KeyValueStore,
    test_settings: Settings,
    backup_service: BackupService,
) -> ImportService:
    """Import service fixture wired to the backup service both ways."""
    service = ImportService(
        member_repository,
        payment_repository,
        activity_repository,
        kv_store,
        test_settings,
        backup_service=backup_service,
    )
    backup_service.import_service = service
    return service


@pytest_asyncio.fixture
async def offline_sync_service(
    kv_store: KeyValueStore, test_settings: Settings
) -> OfflineSyncService:
    """Offline change tracker fixture (always online)."""
    return OfflineSyncService(kv_store, test_settings)


@pytest_asyncio.fixture
async def seeded_store(
    member_repository: MemberRepository,
    payment_repository: PaymentRepository,
    activity_repository: ActivityRepository,
) -> dict[str, list[dict[str, Any]]]:
    """Populate repositories with sample members, payments and activities."""
    for member in SAMPLE_MEMBERS:
        await member_repository.upsert_by_id(dict(member))
    for payment in SAMPLE_PAYMENTS:
        await payment_repository.upsert_by_id(dict(payment))
    for activity in SAMPLE_ACTIVITIES:
        await activity_repository.upsert_by_id(dict(activity))

    return {
        "members": SAMPLE_MEMBERS,
        "payments": SAMPLE_PAYMENTS,
        "activities": SAMPLE_ACTIVITIES,
    }


def make_payload(
    members: list[dict[str, Any]] | None = None,
    payments: list[dict[str, Any]] | None = None,
    activities: list[dict[str, Any]] | None = None,
    settings: dict[str, Any] | None = None,
    version: str = "2.0",
) -> dict[str, Any]:
    """Build an interchange payload for import tests."""
    data: dict[str, Any] = {
        "members": members or [],
        "payments": payments or [],
        "activities": activities or [],
    }
    if settings is not None:
        data["settings"] = settings
    return {
        "version": version,
        "timestamp": "2024-04-01T12:00:00.000Z",
        "metadata": {
            "totalMembers": len(data["members"]),
            "totalPayments": len(data["payments"]),
            "totalActivities": len(data["activities"]),
            "exportedBy": "ADMIN",
            "gymName": "Yacin Gym",
        },
        "data": data,
    }
