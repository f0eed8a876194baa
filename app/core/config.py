"""Centralized application configuration."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="APP_", env_file=".env", extra="ignore"
    )

    # Data storage path
    data_path: Path = Path("data")
    database_filename: str = "video_analysis_jobs.db"

    # Analysis provider configuration
    default_model: str = "gemini-2.5-flash"
    google_api_key: str | None = None

    # Video metadata configuration
    youtube_api_key: str | None = None
    metadata_timeout: float = 15.0

    # Videos longer than this (seconds) are analyzed at low media resolution
    low_resolution_threshold_seconds: int = 3600

    # Queue consumer configuration
    consumer_batch_size: int = 10
    consumer_concurrency: int = 2
    consumer_batch_timeout: float = 1.0
    queue_retry_delay_seconds: float = 5.0
    queue_max_delivery_attempts: int = 5

    # Persistence configuration
    store_busy_retries: int = 3

    # Job listing bounds
    job_list_default_limit: int = 20
    job_list_max_limit: int = 100

    # Lifecycle configuration
    graceful_shutdown_timeout: float = 5.0
    recover_jobs_on_startup: bool = True

    @property
    def database_path(self) -> Path:
        """Full path of the SQLite job database."""
        return self.data_path / self.database_filename


@lru_cache
def get_settings() -> Settings:
    """Get cached settings singleton."""
    return Settings()
