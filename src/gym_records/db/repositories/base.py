"""Storage contracts consumed by the export/import services."""

from typing import Any, Protocol


class RecordStore(Protocol):
    """Keyed storage for one record category (members, payments, activities)."""

    async def get_all(self) -> list[dict[str, Any]]:
        """Return every stored record."""
        ...

    async def get_by_id(self, record_id: str) -> dict[str, Any] | None:
        """Return the record with this id, or None."""
        ...

    async def upsert_by_id(self, record: dict[str, Any]) -> bool:
        """Insert or replace a record keyed by its ``id``."""
        ...


class KeyValueBackend(Protocol):
    """String key-value storage used for settings, backups and the change tracker."""

    async def get(self, key: str) -> str | None:
        """Return the stored value, or None."""
        ...

    async def set(self, key: str, value: str) -> None:
        """Store a value."""
        ...

    async def delete(self, key: str) -> None:
        """Remove a key (no-op when absent)."""
        ...

    async def keys(self, prefix: str | None = None) -> list[str]:
        """List stored keys, optionally restricted to a prefix."""
        ...
