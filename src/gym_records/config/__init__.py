"""Configuration module for Gym Records."""

from gym_records.config.settings import Settings

# Global settings instance (lazy-loaded singleton)
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the global settings instance.

    Settings are loaded from environment variables on first access.

    Returns:
        The global Settings instance
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def set_settings(settings: Settings | None) -> None:
    """Replace the global settings instance (None resets to lazy loading)."""
    global _settings
    _settings = settings


__all__ = ["Settings", "get_settings", "set_settings"]
