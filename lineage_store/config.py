"""
Configuration management for the lineage store.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Default to a local SQLite database when no URL is configured.
DEFAULT_DATABASE_URL = "sqlite:///./lineage_store.db"


class Settings(BaseSettings):
    """Store settings, read from LINEAGE_STORE_* variables or a .env file."""

    model_config = SettingsConfigDict(
        env_prefix="LINEAGE_STORE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database
    database_url: str = Field(default=DEFAULT_DATABASE_URL)
    enable_upgrade_migration: bool = Field(
        default=False,
        description="Step an older schema up to the library version on init",
    )

    # Logging
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json", description="json or console")


@lru_cache
def get_settings() -> Settings:
    """Get store settings."""
    return Settings()
