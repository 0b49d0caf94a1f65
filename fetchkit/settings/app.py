"""Application settings powered by Pydantic BaseSettings."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from fetchkit.fetch.constants import DEFAULT_TIMEOUT_SECONDS, DEFAULT_USER_AGENT


class FetchSettings(BaseSettings):
    """Environment configuration for fetchers.

    Values come from ``FETCHKIT_*`` environment variables or a ``.env`` file.
    """

    model_config = SettingsConfigDict(
        env_prefix="FETCHKIT_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    user_agent: str = Field(default=DEFAULT_USER_AGENT, min_length=1)
    timeout_seconds: float = Field(default=DEFAULT_TIMEOUT_SECONDS, ge=1.0, le=300.0)
    cache_ttl_seconds: float | None = Field(default=None, gt=0.0)
    log_level: str = "INFO"
    log_json: bool = True


def get_settings() -> FetchSettings:
    """Get a settings instance."""
    return FetchSettings()
