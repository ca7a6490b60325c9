"""Configuration management for SchemaFlow.

This module uses Pydantic Settings to load and validate configuration from
environment variables and .env files. Configuration is loaded once by the
composition root and is immutable during runtime.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration settings.

    Settings are loaded from environment variables and .env files.
    All configuration values are validated at startup.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="SCHEMAFLOW_",
        case_sensitive=False,
        extra="ignore",
    )

    # Application Settings
    app_name: str = "SchemaFlow"
    app_version: str = "0.1.0"
    environment: Literal["development", "production", "testing"] = "development"
    debug: bool = False

    # Database Settings
    database_url: str = "sqlite:///./sf_data/schemaflow.db"
    db_echo: bool = False

    # Logging Settings
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["json", "console"] = "json"

    # Cache Settings
    cache_ttl_seconds: int = 300  # 5 minutes

    # File Settings
    files_root_url: str = Field(
        default="/storage/uploads",
        description="Public URL prefix for stored files",
    )
    files_thumbnail_url: str = Field(
        default="/storage/uploads/thumbs",
        description="Public URL prefix for generated thumbnails",
    )
    thumbnail_default_format: str = "jpg"

    # Access Settings
    admin_group_id: int = Field(
        default=1,
        description="Group whose members can read private fields of every user",
    )
    public_group_name: str = "public"

    @field_validator("files_root_url", "files_thumbnail_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Drop a trailing slash so URLs can be joined with '/'."""
        return v.rstrip("/")

    @field_validator("thumbnail_default_format")
    @classmethod
    def normalize_thumbnail_format(cls, v: str) -> str:
        """Store the thumbnail extension lowercase and without a dot."""
        return v.lower().lstrip(".")

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_testing(self) -> bool:
        """Check if running in testing environment."""
        return self.environment == "testing"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Settings: Cached application settings instance.
    """
    return Settings()
