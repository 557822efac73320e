"""Configuration settings for the extractor, loaded from environment variables."""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_STRATEGY_ORDER = [
    "transcript-api",
    "transcript-api-any",
    "watch-page",
    "timedtext",
    "yt-dlp",
]

_CHROME_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)


class Settings(BaseSettings):
    """Application settings; every field can be overridden as YTCE_<NAME>."""

    model_config = SettingsConfigDict(
        env_prefix="YTCE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Transcript strategy chain
    strategy_order: list[str] = DEFAULT_STRATEGY_ORDER
    preferred_languages: list[str] = ["en"]
    attempt_delay: float = 0.3  # seconds, only between failed attempts
    transcript_budget: float = 8.0  # seconds, whole chain

    # Metadata
    metadata_timeout: float = 4.0

    # HTTP
    http_timeout: float = 6.0
    user_agent: str = _CHROME_UA
    accept_language: str = "en-US,en;q=0.8"

    # Logging
    log_level: str = "INFO"
    log_json: bool = False


@lru_cache
def get_settings() -> Settings:
    return Settings()
