"""Key-value store backed by the kv_store table."""

from datetime import datetime, timezone

import aiosqlite

from gym_records.db.database import Database
from gym_records.exceptions import StorageError


class KeyValueStore:
    """Local key-value storage for settings, backups and tracked changes."""

    def __init__(self, db: Database) -> None:
        """Initialize store.

        Args:
            db: Database instance
        """
        self.db = db

    async def get(self, key: str) -> str | None:
        """Get a stored value.

        Args:
            key: Key to read

        Returns:
            Stored string or None if absent

        Raises:
            StorageError: If the store cannot be read
        """
        try:
            cursor = await self.db.execute(
                "SELECT value FROM kv_store WHERE key = ?", (key,)
            )
            row = await cursor.fetchone()
        except (aiosqlite.Error, RuntimeError) as e:
            raise StorageError(f"Failed to read key {key}: {e}") from e

        return row["value"] if row else None

    async def set(self, key: str, value: str) -> None:
        """Store a value, replacing any previous one.

        Raises:
            StorageError: If the store cannot be written
        """
        if not isinstance(value, str):
            raise StorageError(f"Value for key {key} must be a string")

        try:
            await self.db.execute(
                """
                INSERT INTO kv_store (key, value, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at
                """,
                (key, value, datetime.now(timezone.utc).isoformat()),
            )
            await self.db.commit()
        except (aiosqlite.Error, RuntimeError) as e:
            raise StorageError(f"Failed to write key {key}: {e}") from e

    async def delete(self, key: str) -> None:
        """Delete a key. Deleting a missing key is a no-op."""
        try:
            await self.db.execute("DELETE FROM kv_store WHERE key = ?", (key,))
            await self.db.commit()
        except (aiosqlite.Error, RuntimeError) as e:
            raise StorageError(f"Failed to delete key {key}: {e}") from e

    async def keys(self, prefix: str | None = None) -> list[str]:
        """List keys, optionally only those starting with ``prefix``."""
        try:
            cursor = await self.db.execute("SELECT key FROM kv_store ORDER BY key")
            rows = await cursor.fetchall()
        except (aiosqlite.Error, RuntimeError) as e:
            raise StorageError(f"Failed to list keys: {e}") from e

        keys = [row["key"] for row in rows]
        if prefix:
            keys = [key for key in keys if key.startswith(prefix)]
        return keys
