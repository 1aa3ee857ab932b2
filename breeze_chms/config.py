"""Configuration handling for the Breeze client."""

from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Client configuration loaded from environment variables."""

    url: str | None = None
    api_key: str | None = None
    dry_run: bool = False
    http_timeout_seconds: float = 30

    model_config = SettingsConfigDict(
        env_prefix="BREEZE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """Return cached Settings instance."""
    return Settings()
