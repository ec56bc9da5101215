"""
Application configuration using Pydantic settings.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict

from typing import Optional


class Settings(BaseSettings):
    """Application settings."""

    # App
    app_name: str = "Finance Tracker"
    log_level: str = "INFO"

    # Database
    database_url: str = "sqlite:///./data/db.sqlite"

    # Duplicate detection
    duplicate_window_days: int = 5
    duplicate_similarity_threshold: float = 0.8

    # Import commit
    import_batch_size: int = 50
    import_create_timeout_seconds: float = 10.0
    import_create_attempts: int = 3

    # Statement parsing ("Nov 28" has no year; None means the current year)
    statement_reference_year: Optional[int] = None

    # Server
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    frontend_url: str = "http://localhost:5173"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False
    )


# Global settings instance
settings = Settings()
