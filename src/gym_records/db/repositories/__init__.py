"""Repository modules for data access."""

from gym_records.db.repositories.base import KeyValueBackend, RecordStore
from gym_records.db.repositories.kv_repository import KeyValueStore
from gym_records.db.repositories.record_repository import (
    ActivityRepository,
    MemberRepository,
    PaymentRepository,
    RecordRepository,
)

__all__ = [
    "RecordStore",
    "KeyValueBackend",
    "RecordRepository",
    "MemberRepository",
    "PaymentRepository",
    "ActivityRepository",
    "KeyValueStore",
]
