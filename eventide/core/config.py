"""
Configuration management for Eventide.

Handles environment-based configuration for development and production.
"""
import os
from pathlib import Path
from typing import Optional
from pydantic_settings import BaseSettings
from pydantic import field_validator


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Environment
    environment: str = os.getenv("ENVIRONMENT", "development")

    # Debug - handle non-boolean values gracefully
    debug: bool = False

    @field_validator("debug", mode="before")
    @classmethod
    def parse_debug(cls, v):
        """Parse debug from environment, handling non-boolean values."""
        if isinstance(v, bool):
            return v
        if isinstance(v, str):
            return v.lower() in ("true", "1", "yes")
        debug_env = os.getenv("DEBUG", "false").lower()
        return debug_env in ("true", "1", "yes")

    # API
    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", "8000"))

    # Database
    database_path: str = os.getenv("DATABASE_PATH", str(Path.home() / ".eventide" / "eventide.db"))
    database_echo: bool = os.getenv("DATABASE_ECHO", "false").lower() == "true"

    # Shared secret expected in X-Event-Secret on change-trigger webhooks (unset: no check)
    event_secret: Optional[str] = os.getenv("EVENT_SECRET", None)

    # Scheduling
    schedule_run_in_process: bool = _env_flag("SCHEDULE_RUN_IN_PROCESS", "true")
    schedule_tick_interval: int = int(os.getenv("SCHEDULE_TICK_INTERVAL", "30"))
    # Keep claimed events when their schedule is deleted (only the frontier is removed)
    schedule_keep_event_history: bool = _env_flag("SCHEDULE_KEEP_EVENT_HISTORY", "false")
    schedule_allow_every_minute: bool = _env_flag("SCHEDULE_ALLOW_EVERY_MINUTE", "true")
    schedules_per_user_limit: int = int(os.getenv("SCHEDULES_PER_USER_LIMIT", "100"))

    class Config:
        # Load .env from project root (eventide/core/config.py -> parent.parent.parent)
        env_file = str(Path(__file__).resolve().parent.parent.parent / ".env")
        case_sensitive = False
        extra = "ignore"


# Global settings instance
settings = Settings()


def get_database_url() -> str:
    """Get SQLite database URL."""
    # Ensure directory exists
    db_path = Path(settings.database_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    return f"sqlite:///{settings.database_path}"
