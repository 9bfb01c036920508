"""
Application configuration — Pydantic Settings.

Loads from .env with strict validation. Single source of truth
for all environment-dependent values.
"""

from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Application ──────────────────────────────────────────────
    APP_NAME: str = "MachineStatusReports"
    APP_ENV: str = "development"
    DEBUG: bool = False
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    CORS_ORIGINS: List[str] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    # ── Remote data service ──────────────────────────────────────
    DATA_SERVICE_URL: str = "http://127.0.0.1:8001"
    DATA_SERVICE_CONFIG: str = ""

    # ── Reports ──────────────────────────────────────────────────
    HISTORY_FETCH_CONCURRENCY: int = 8
    REPORT_TIMEZONE: str = "UTC"
    DEFAULT_WINDOW_HOURS: int = 24

    # ── Logging ──────────────────────────────────────────────────
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = ""

    # ── URL Builders ─────────────────────────────────────────────

    def data_service_url_for(self, path: str) -> str:
        """Join a data-service path onto the configured base URL."""
        return f"{self.DATA_SERVICE_URL.rstrip('/')}/{path.lstrip('/')}"


@lru_cache
def get_settings() -> Settings:
    """Cached settings singleton."""
    return Settings()


settings = get_settings()
