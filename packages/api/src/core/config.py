# This project was developed with assistance from AI tools.
"""
Application configuration.

All settings read from environment variables with sensible local dev defaults.
Group related settings together; each group becomes a section future PRs extend.
"""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve project root .env regardless of CWD
_PROJECT_ROOT = Path(__file__).resolve().parents[4]
_ENV_FILE = _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    """Application settings -- single source of truth for env-driven config."""

    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # -- App --
    APP_NAME: str = "doc-compliance"

    # -- CORS --
    ALLOWED_HOSTS: list[str] = ["http://localhost:5173"]

    # -- Store --
    STORE_TIMEOUT_SECONDS: float = Field(
        default=10.0,
        description="Upper bound for any single store or notification call.",
    )

    # -- Auth --
    AUTH_DISABLED: bool = Field(
        default=False,
        description="Bypass JWT validation. Set True for tests and local dev without Keycloak.",
    )
    KEYCLOAK_URL: str = "http://localhost:8080"
    KEYCLOAK_REALM: str = "doc-compliance"
    JWKS_CACHE_TTL: int = Field(
        default=300,
        description="JWKS cache lifetime in seconds (default 5 minutes).",
    )

    # -- Scheduler --
    SCHEDULER_ENABLED: bool = Field(
        default=False,
        description="Start recurring jobs at startup. Jobs can still be run manually when off.",
    )
    SCHEDULER_TIMEZONE: str = Field(
        default="America/Guatemala",
        description="Organizational timezone for job cadence and reminder day arithmetic.",
    )

    # -- Compliance policy --
    EXPIRING_SOON_DAYS: int = 30
    RENEWAL_WINDOW_DAYS: int = 7
    REMINDER_LOG_RETENTION_DAYS: int = Field(
        default=180,
        description="Reminder log entries older than this are purged by daily maintenance.",
    )
    NOTIFICATION_RETENTION_DAYS: int = Field(
        default=30,
        description="Read notifications older than this are deleted by the weekly cleanup.",
    )
    WEEKLY_REPORT_WINDOW_DAYS: int = 7


settings = Settings()
