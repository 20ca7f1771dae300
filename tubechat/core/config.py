from functools import lru_cache
from typing import Annotated

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    redis_url: str | None = None
    youtube_api_key: str | None = None
    openai_api_key: str | None = None
    openai_model: str = "gpt-4o-mini"
    openai_base_url: str | None = None
    openai_max_tokens: int = 500
    openai_max_chars: int = 12000
    provider_timeout_seconds: float = 15.0
    metadata_ttl_seconds: int = 3600
    degraded_metadata_ttl_seconds: int = 300
    transcript_ttl_seconds: int = 7200
    summary_ttl_seconds: int = 7200
    processing_ttl_seconds: int = 300
    memory_cache_max_entries: int = 10000
    qa_history_limit: int = 6
    qa_fallback_enabled: bool = True
    transcript_languages: Annotated[list[str], NoDecode] = ["en", "en-US", "en-GB"]
    dashboard_cors_origins: Annotated[list[str], NoDecode] = ["http://localhost:3000"]
    log_level: str = "INFO"
    log_file: str | None = None

    model_config = SettingsConfigDict(env_file=".env", env_prefix="APP_", env_file_encoding="utf-8")

    @field_validator("dashboard_cors_origins", "transcript_languages", mode="before")
    @classmethod
    def _split_csv(cls, value: str | list[str]) -> list[str]:
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()


settings = get_settings()
