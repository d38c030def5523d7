"""Export/Import models."""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ExportFormat(str, Enum):
    """Export encodings."""

    JSON = "json"
    CSV = "csv"
    EXCEL = "excel"


class DateRange(BaseModel):
    """Inclusive date window applied to every exported category."""

    model_config = ConfigDict(populate_by_name=True)

    from_date: str = Field(alias="from")
    to_date: str = Field(alias="to")


class ExportOptions(BaseModel):
    """What to export and how to encode it."""

    include_members: bool = True
    include_payments: bool = True
    include_activities: bool = True
    include_settings: bool = True
    include_password: bool = False
    date_range: DateRange | None = None
    # Kept as a plain string: unknown formats are rejected by the codec.
    format: str = ExportFormat.JSON.value


class ExportArtifact(BaseModel):
    """Encoded export ready to be saved or downloaded."""

    content: bytes
    media_type: str
    extension: str
    filename: str
    counts: dict[str, int] = Field(default_factory=dict)
    exported_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def size_bytes(self) -> int:
        """Size of the encoded content."""
        return len(self.content)


class ImportOptions(BaseModel):
    """Merge policy for an import.

    Every record that is not skipped is upserted by id, so it always replaces
    an existing record with the same id. ``skip_duplicates`` is the only
    switch that keeps existing records. ``overwrite_existing`` is carried
    for interchange compatibility and does not change the merge.
    """

    overwrite_existing: bool = Field(
        default=False,
        description="Informational only; non-skipped records are always overwritten",
    )
    skip_duplicates: bool = True
    validate_data: bool = True
    create_backup: bool = True


class ImportedCounts(BaseModel):
    """Number of records written per category."""

    members: int = 0
    payments: int = 0
    activities: int = 0
    settings: bool = False

    def any_records(self) -> bool:
        """Whether at least one record was written."""
        return self.members > 0 or self.payments > 0 or self.activities > 0


class ImportOutcome(BaseModel):
    """Result of an import or restore."""

    success: bool = False
    imported: ImportedCounts = Field(default_factory=ImportedCounts)
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    def finalize(self) -> "ImportOutcome":
        """Compute ``success``: no errors, or at least one record imported."""
        self.success = not self.errors or self.imported.any_records()
        return self


class BackupInfo(BaseModel):
    """Listing entry for a stored backup."""

    key: str
    date: str
    size: str
    size_kb: int
    created_at: datetime | None = None
