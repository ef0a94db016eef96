from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings

_BACKEND_DIR = Path(__file__).resolve().parents[1]
_ENV_FILES = (
    _BACKEND_DIR / ".env",
    ".env",
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    app_title: str = "Metrics Service API"
    app_version: str = "1.0.0"
    app_env: str = "development"
    service_name: str = "metrics-service"
    database_url: str = "sqlite:///./metrics.db"
    cors_origins: list[str] = ["http://localhost:3000"]

    # External identity service
    auth_service_url: str = "http://localhost:3001"
    auth_timeout_seconds: float = 5.0
    admin_role: str = "admin"

    # Retention horizons in days; AI requests share the engagement horizon
    metrics_retention_days: int = 90
    sales_retention_days: int = 365
    performance_retention_days: int = 30
    retention_sweep_interval_seconds: float = 3600

    # Aggregation defaults
    dashboard_window_days: int = 30
    alert_error_rate_threshold: float = 5.0         # percent
    alert_response_time_threshold: float = 2000.0   # ms

    # Logging: per-category log levels (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    log_level: str = "INFO"                  # Root / app-wide
    log_level_sql: str = "WARNING"           # sqlalchemy.engine, SQL queries
    log_level_http: str = "WARNING"          # httpx / httpcore, outbound HTTP
    log_level_uvicorn: str = "INFO"          # uvicorn.access / uvicorn.error
    log_level_ingestion: str = "INFO"        # IngestionService write path

    model_config = {
        "env_file": _ENV_FILES,
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance; reads .env once."""
    return Settings()
