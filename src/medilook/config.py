"""Application configuration."""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings

from medilook.constants import (
    DEFAULT_HISTORY_PATH,
    DEFAULT_LABEL_CACHE_DIR,
    DEFAULT_MAX_RETRIES,
    DEFAULT_TIMEOUT,
    HISTORY_CAPACITY,
    OPENFDA_BASE_URL,
    SEARCH_DEBOUNCE_SECONDS,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # openFDA
    openfda_api_key: str = ""
    openfda_base_url: str = OPENFDA_BASE_URL
    request_timeout_seconds: float = DEFAULT_TIMEOUT
    max_retries: int = DEFAULT_MAX_RETRIES

    # Search history
    history_path: Path = DEFAULT_HISTORY_PATH
    history_capacity: int = HISTORY_CAPACITY

    # Label response cache
    label_cache_enabled: bool = False
    label_cache_dir: Path = DEFAULT_LABEL_CACHE_DIR

    # App Settings
    debounce_seconds: float = SEARCH_DEBOUNCE_SECONDS
    debug: bool = False
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        frozen = True


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
