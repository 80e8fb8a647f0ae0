"""
Client Configuration

Settings loaded from environment variables (prefix FUELCOACH_) or .env.
"""

from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Client settings."""

    # === Core ===
    debug: bool = False
    log_level: str = Field(default="INFO", description="Logging level")

    # === Backend API ===
    backend_url: str = Field(
        default="http://localhost:5000",
        description="Base URL of the nutrition API (paths live under /api)"
    )
    request_timeout: float = Field(default=30.0, description="HTTP timeout in seconds")

    # === Durable session storage ===
    database_url: str = Field(
        default="sqlite:///./fuelcoach.db",
        description="Key-value store for the persisted session"
    )

    # === Consumption reminders ===
    recommendation_poll_attempts: int = Field(default=3, ge=1)
    recommendation_poll_delay: float = Field(default=4.0, ge=0)
    default_start_time: str = "18:00"
    default_timing_minutes: int = 30
    daily_reminder_hour: int = Field(default=9, ge=0, le=23)
    daily_reminder_minute: int = Field(default=0, ge=0, le=59)
    immediate_delay_seconds: int = Field(default=5, ge=1)

    # Optional fixed user agent for API requests
    user_agent: Optional[str] = None

    @field_validator("backend_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    model_config = SettingsConfigDict(
        env_prefix="FUELCOACH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


# Global settings instance
settings = Settings()
