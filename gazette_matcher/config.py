"""
Application configuration helpers.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Configuration loaded from environment variables."""

    api_base_url: str = Field("http://localhost:5000/api", alias="MATCHER_API_BASE")
    submit_timeout_seconds: float = Field(600.0, alias="SUBMIT_TIMEOUT_SECONDS")
    request_timeout_seconds: float = Field(30.0, alias="REQUEST_TIMEOUT_SECONDS")
    progress_reset_delay: float = Field(1.0, alias="PROGRESS_RESET_DELAY")
    rows_per_page: int = Field(50, alias="ROWS_PER_PAGE", ge=1)
    fetch_on_start: bool = Field(False, alias="FETCH_ON_START")
    refetch_after_failed_clear: bool = Field(False, alias="REFETCH_AFTER_FAILED_CLEAR")

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore", populate_by_name=True
    )


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
