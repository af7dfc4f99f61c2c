"""
RMI Scheduler - Configuration settings.

Loads from environment variables with sensible defaults.
"""

from datetime import date
from typing import Optional
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # Database (key-value snapshot store and sync sheet rows)
    database_url: str = "sqlite:///./rmi.db"

    # Key under which the schedule snapshot is persisted
    schedule_key: str = "rmiSchedule"

    # Maintenance cycle
    cycle_months: int = 3
    due_soon_days: int = 7
    history_capacity: int = 10

    # Date validation boundary for scheduleMaintenance
    earliest_maintenance_date: date = date(2000, 1, 1)
    max_future_days: int = 366

    # Remote spreadsheet sync - leave empty to disable
    sync_url: Optional[str] = None
    sync_timeout_seconds: float = 10.0

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False
    log_level: str = "INFO"

    # Frontend - comma-separated list in .env, e.g. CORS_ORIGINS=http://localhost:5173
    cors_origins: str = ""

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()
