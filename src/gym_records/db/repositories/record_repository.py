"""Record repositories for members, payments and activities."""

import json
from datetime import datetime, timezone
from typing import Any

from gym_records.db.database import Database
from gym_records.utils.dates import sort_key_newest_first


class RecordRepository:
    """Repository storing opaque JSON records keyed by ``id``.

    Subclasses pick the table and the fields a record must carry before
    it may be written.
    """

    table: str = ""
    required_fields: tuple[str, ...] = ("id",)

    def __init__(self, db: Database) -> None:
        """Initialize repository.

        Args:
            db: Database instance
        """
        self.db = db

    async def get_all(self) -> list[dict[str, Any]]:
        """Get all records in insertion order.

        Returns:
            List of records
        """
        cursor = await self.db.execute(f"SELECT data FROM {self.table} ORDER BY rowid")
        rows = await cursor.fetchall()
        return [json.loads(row["data"]) for row in rows]

    async def get_by_id(self, record_id: str) -> dict[str, Any] | None:
        """Find a record by ID.

        Args:
            record_id: Record ID

        Returns:
            Record or None if not found
        """
        cursor = await self.db.execute(
            f"SELECT data FROM {self.table} WHERE id = ?", (str(record_id),)
        )
        row = await cursor.fetchone()

        if not row:
            return None

        return json.loads(row["data"])

    async def upsert_by_id(self, record: dict[str, Any]) -> bool:
        """Insert a record or replace the stored record with the same ID.

        Args:
            record: Record to write

        Returns:
            True once the record is stored

        Raises:
            ValueError: If the record is not an object or misses a required field
        """
        self._check_record(record)

        await self.db.execute(
            f"""
            INSERT INTO {self.table} (id, data, updated_at) VALUES (?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                data = excluded.data,
                updated_at = excluded.updated_at
            """,
            (
                str(record["id"]),
                json.dumps(record, ensure_ascii=False),
                datetime.now(timezone.utc).isoformat(),
            ),
        )
        await self.db.commit()
        return True

    async def delete(self, record_id: str) -> bool:
        """Delete a record by ID.

        Args:
            record_id: Record ID

        Returns:
            True if a record was deleted
        """
        cursor = await self.db.execute(
            f"DELETE FROM {self.table} WHERE id = ?", (str(record_id),)
        )
        await self.db.commit()
        return cursor.rowcount > 0

    async def count(self) -> int:
        """Count stored records."""
        cursor = await self.db.execute(f"SELECT COUNT(*) FROM {self.table}")
        row = await cursor.fetchone()
        return row[0] if row else 0

    def _check_record(self, record: Any) -> None:
        if not isinstance(record, dict):
            raise ValueError(f"Record must be an object, got {type(record).__name__}")

        missing = [
            field
            for field in self.required_fields
            if record.get(field) is None or record.get(field) == ""
        ]
        if missing:
            raise ValueError(f"Missing required field(s): {', '.join(missing)}")


class MemberRepository(RecordRepository):
    """Repository for member records."""

    table = "members"
    required_fields = ("id", "name")


class PaymentRepository(RecordRepository):
    """Repository for payment records."""

    table = "payments"
    required_fields = ("id", "amount")


class ActivityRepository(RecordRepository):
    """Repository for member activity records."""

    table = "activities"

    async def get_all(self) -> list[dict[str, Any]]:
        """Get activities carrying a timestamp, newest first."""
        activities = [
            activity
            for activity in await super().get_all()
            if isinstance(activity, dict) and activity.get("timestamp")
        ]
        activities.sort(key=lambda a: sort_key_newest_first(a["timestamp"]), reverse=True)
        return activities
