"""Application configuration using Pydantic Settings."""

from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database (read-only: data, future_master, calc_correlation_ranking)
    DATABASE_URL: str = "sqlite:///./matchstate.db"

    # Reporting day: snapshots are scoped to "today" in this timezone
    REPORTING_TIMEZONE: str = "Asia/Tokyo"

    # Correlation ranking
    CORRELATION_TOP_N: int = 5
    CORRELATION_BACKFILL: bool = True  # False = hard prefix filter

    # API rate limit per client IP (slowapi syntax)
    RATE_LIMIT_PER_MINUTE: str = "120/minute"

    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
