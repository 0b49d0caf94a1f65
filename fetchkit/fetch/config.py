"""Configuration models for the HTTP fetch layer."""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator

from fetchkit.fetch.cache import CachePolicy
from fetchkit.fetch.constants import (
    DEFAULT_TIMEOUT_SECONDS,
    DEFAULT_USER_AGENT,
    JSON_CONTENT_TYPE,
)
from fetchkit.fetch.redact import is_sensitive_header
from fetchkit.settings.app import FetchSettings


def _default_headers() -> dict[str, str]:
    return {
        "Accept": JSON_CONTENT_TYPE,
        "Content-Type": JSON_CONTENT_TYPE,
    }


class FetchConfig(BaseModel):
    """Configuration for a fetcher.

    Central configuration for default headers, transport timeouts and the
    response cache.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    user_agent: Annotated[str, Field(min_length=1, max_length=500)] = (
        DEFAULT_USER_AGENT
    )
    default_headers: dict[str, str] = Field(
        default_factory=_default_headers,
        description="Headers applied underneath every request's own headers",
    )
    timeout_seconds: Annotated[float, Field(ge=1.0, le=300.0)] = (
        DEFAULT_TIMEOUT_SECONDS
    )
    follow_redirects: bool = True
    cache_policy: CachePolicy = Field(default_factory=CachePolicy.disabled)

    @field_validator("default_headers")
    @classmethod
    def validate_no_auth_headers(cls, v: dict[str, str]) -> dict[str, str]:
        """Ensure no credential headers are stored in config."""
        for key in v:
            if is_sensitive_header(key):
                msg = (
                    f"Header '{key}' must not be stored in config; "
                    "set it on the request instead"
                )
                raise ValueError(msg)
        return v

    @classmethod
    def from_settings(cls, settings: FetchSettings) -> "FetchConfig":
        """Build a config from environment settings.

        Args:
            settings: Loaded settings.

        Returns:
            FetchConfig with caching enabled when a TTL is configured.
        """
        cache_policy = (
            CachePolicy.memory(settings.cache_ttl_seconds)
            if settings.cache_ttl_seconds is not None
            else CachePolicy.disabled()
        )
        return cls(
            user_agent=settings.user_agent,
            timeout_seconds=settings.timeout_seconds,
            cache_policy=cache_policy,
        )

    def request_headers(self) -> dict[str, str]:
        """Get the default header set, User-Agent included.

        Returns:
            Dictionary of headers.
        """
        return {"User-Agent": self.user_agent, **self.default_headers}
