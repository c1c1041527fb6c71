"""
Configuration management for the assignment lifecycle service.

Centralizes all configuration using Pydantic settings with environment variable support.
"""

import logging
from typing import Literal, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

from shared.utils.constants import (
    DEFAULT_AUTO_ARCHIVE_THRESHOLD_DAYS,
    DEFAULT_RECENT_ACTIVITY_WINDOW_HOURS,
    DEFAULT_STATE_FILE,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # State Store Configuration
    state_store_backend: Literal["json", "sql"] = Field(
        default="json",
        description="Where assignment state is persisted: a JSON document or a SQL table"
    )
    state_file_path: str = Field(
        default=DEFAULT_STATE_FILE,
        description="Path of the JSON state document (json backend)"
    )

    # Database Configuration
    database_url: str = Field(
        default="sqlite:///data/assignment-states.db",
        description="SQLAlchemy connection URL (sql backend)"
    )
    db_pool_size: int = Field(
        default=5,
        description="Database connection pool size"
    )
    db_max_overflow: int = Field(
        default=10,
        description="Maximum overflow connections"
    )
    db_pool_timeout: int = Field(
        default=30,
        description="Connection pool timeout in seconds"
    )

    # Lifecycle Configuration
    recent_activity_window_hours: float = Field(
        default=DEFAULT_RECENT_ACTIVITY_WINDOW_HOURS,
        description="Sessions newer than this count as recent activity"
    )
    auto_archive_threshold_days: float = Field(
        default=DEFAULT_AUTO_ARCHIVE_THRESHOLD_DAYS,
        description="Days an assignment stays resolved before auto-archive"
    )

    # Application Settings
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )
    environment: str = Field(
        default="development",
        description="Environment: development, staging, production"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get or create the global settings instance.

    Returns:
        Settings: Application settings
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings():
    """Reset the global settings instance (useful for testing)."""
    global _settings
    _settings = None


def validate_required_settings():
    """
    Validate settings at runtime.

    Should be called after settings are loaded but before application starts.
    Raises ValueError if a setting is missing or out of range.
    """
    settings = get_settings()

    if settings.state_store_backend == "sql" and not settings.database_url:
        raise ValueError("DATABASE_URL is required when STATE_STORE_BACKEND=sql")

    if settings.state_store_backend == "json" and not settings.state_file_path:
        raise ValueError("STATE_FILE_PATH is required when STATE_STORE_BACKEND=json")

    if settings.recent_activity_window_hours <= 0:
        raise ValueError("RECENT_ACTIVITY_WINDOW_HOURS must be positive")

    if settings.auto_archive_threshold_days <= 0:
        raise ValueError("AUTO_ARCHIVE_THRESHOLD_DAYS must be positive")

    return True


def configure_logging(settings: Optional[Settings] = None):
    """Apply the configured log level to the root logger."""
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
