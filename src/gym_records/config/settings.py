"""Application settings management using Pydantic Settings."""

from pathlib import Path
from typing import Literal, Self

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _get_default_db_path() -> str:
    """Get default database path in the working directory."""
    return str(Path.cwd() / "data" / "gym_records.db")


class Settings(BaseSettings):
    """Application configuration settings.

    All settings can be configured via environment variables with the
    prefix `GYM_RECORDS_`. For example, `GYM_RECORDS_DATABASE_PATH`.
    """

    # Database
    database_path: str = Field(
        default_factory=_get_default_db_path,
        description="SQLite database file path",
    )

    # Interchange format
    export_version: str = Field(
        default="2.0", description="Schema version stamped on new snapshots"
    )
    supported_versions: list[str] = Field(
        default_factory=lambda: ["1.0", "2.0"],
        description="Snapshot versions accepted without a compatibility warning",
    )
    gym_name: str = Field(
        default="Yacin Gym", description="Installation label written to metadata"
    )
    export_filename_prefix: str = Field(
        default="yacin-gym-export", description="Prefix of suggested export file names"
    )

    # Identity fallbacks
    default_username: str = Field(
        default="ADMIN", description="exportedBy value when no user is configured"
    )
    default_password: str = Field(
        default="ADMIN",
        description="Password exported when inclusion is requested and none is stored",
    )

    # Key-value store keys
    pricing_settings_key: str = Field(default="gymPricingSettings")
    user_settings_key: str = Field(default="gymUserSettings")
    password_key: str = Field(default="gymPassword")

    # Backups
    backup_prefix: str = Field(default="backup_", description="Backup key namespace")
    backup_failure_policy: Literal["abort", "warn"] = Field(
        default="warn",
        description="What an import does when its pre-import backup fails",
    )

    # Offline change tracker
    offline_prefix: str = Field(default="offline_", description="Tracker key namespace")
    offline_retention_days: int = Field(
        default=7,
        ge=1,
        description="Synced tracker entries older than this are purged",
    )
    offline_cleanup_interval_seconds: int = Field(
        default=3600,
        ge=60,
        description="Tracker cleanup interval in seconds (minimum 60)",
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")

    model_config = SettingsConfigDict(
        env_prefix="GYM_RECORDS_", env_file=".env", env_file_encoding="utf-8"
    )

    @model_validator(mode="after")
    def validate_interchange_config(self) -> Self:
        """Validate interchange and identity configuration."""
        if not self.default_username.strip():
            raise ValueError("default_username must not be blank")
        if self.export_version not in self.supported_versions:
            raise ValueError(
                f"export_version ({self.export_version}) must be listed in "
                f"supported_versions ({', '.join(self.supported_versions)})"
            )
        return self
