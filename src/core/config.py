"""Configuration management for focus-timer."""

from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from croniter import croniter
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Storage Configuration
    storage_backend: Literal["json", "sqlite"] = Field(
        default="json", description="Backing store for the task document (json file or sqlite)"
    )
    tasks_file_path: str = Field(default="./data/tasks.json", description="Path of the JSON task file")
    projects_file_path: str = Field(default="./data/projects.json", description="Path of the JSON project file")
    sqlite_db_path: str = Field(default="./data/tasks.db", description="Path of the SQLite database file (tasks and projects tables)")

    # Calendar Configuration
    reporting_timezone: str = Field(
        default="UTC", description="IANA timezone used to compute the current calendar day"
    )

    # Daily Reset Scheduler
    daily_reset_cron: str = Field(default="5 0 * * *", description="Crontab expression for the daily reset job")
    scheduler_autostart: bool = Field(default=True, description="Start the daily reset scheduler on app startup")

    default_user_id: str = Field(default="user_001", description="User ID used when a request names none")

    # Pydantic Logfire Configuration (optional)
    logfire_token: str | None = Field(default=None, description="Pydantic Logfire token for observability")

    # API Client Configuration
    api_base_url: str = Field(default="http://127.0.0.1:8000", description="Base URL used by the API client")
    client_cache_path: str = Field(
        default="./data/pending_sessions.json", description="Local cache for sessions the client could not send"
    )

    @field_validator("reporting_timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        """Validate the timezone is a known IANA name."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            msg = f"Unknown timezone: {v}"
            raise ValueError(msg) from e
        return v

    @field_validator("daily_reset_cron")
    @classmethod
    def validate_cron(cls, v: str) -> str:
        """Validate the reset schedule is a five-field crontab expression."""
        if len(v.split()) != 5 or not croniter.is_valid(v):
            msg = f"Invalid crontab expression: {v}"
            raise ValueError(msg)
        return v


# Application Constants
class Constants:
    """Application-wide constants."""

    # API Configuration
    API_TIMEOUT_SECONDS: int = 10

    # Time Tracking
    DEFAULT_ESTIMATED_DURATION_SECONDS: int = 1500  # 25 minute pomodoro
    MIN_SESSION_SECONDS: int = 3  # Shorter sessions are treated as accidental clicks

    # Batch Endpoints
    MAX_BATCH_SIZE: int = 50

    # Statistics
    WEEKLY_STATS_DEFAULT_DAYS: int = 7
    WEEKLY_STATS_MAX_DAYS: int = 30
    DEFAULT_PLANNED_TIME: str = "23:59"

    # Scheduler Configuration
    DAILY_RESET_JOB_ID: str = "daily_reset"

    # Job Tracker Configuration
    TRACKER_DEAD_LETTER_QUEUE_MAXLEN: int = 100  # Max items in dead letter queue
    TRACKER_CONSECUTIVE_FAILURE_THRESHOLD: int = 3


def get_settings() -> Settings:
    """Get application settings (singleton pattern)."""
    return Settings()


# Global settings instance
settings = get_settings()
constants = Constants()
