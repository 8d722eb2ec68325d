"""
Application Configuration

Uses Pydantic Settings for type-safe configuration.
"""

import logging
from pydantic_settings import BaseSettings
from pydantic import Field, field_validator, ConfigDict


class Settings(BaseSettings):
    """Application settings with validation."""

    # === Core ===
    debug: bool = Field(default=False, description="Enable debug logging regardless of log_level")
    log_level: str = Field(default="INFO", description="Logging level")

    # === Database ===
    database_url: str = Field(
        default="sqlite:///./pacecoach.db",
        description="Database connection URL"
    )

    # === Analytics ===
    diagnostics_window_size: int = Field(
        default=3,
        ge=1,
        description="Rolling window used for run diagnostics when none is given"
    )
    scenario_season_scope: bool = Field(
        default=False,
        description="Apply SEASON-scoped scenario adjustments (inert when off)"
    )
    persist_analytics: bool = Field(
        default=False,
        description="Record analytics runs and artifacts by default"
    )

    @field_validator('database_url')
    @classmethod
    def fix_postgres_url(cls, v: str) -> str:
        """Fix Render/Railway postgres:// URL to postgresql://"""
        if v.startswith("postgres://"):
            return v.replace("postgres://", "postgresql://", 1)
        return v

    @field_validator('log_level')
    @classmethod
    def check_log_level(cls, v: str) -> str:
        """Normalize and validate the logging level name."""
        level = v.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {v}")
        return level

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


# Global settings instance
settings = Settings()
