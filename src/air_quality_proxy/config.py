"""Application configuration management."""

from functools import lru_cache
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CACHE_TTL_SECONDS = 3600


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # Server settings
    app_host: str = Field(default="0.0.0.0", description="Server bind host")
    app_port: int = Field(default=8080, description="Server bind port")

    # Upstream API settings
    upstream_url: str = Field(
        default="https://air-quality-api.open-meteo.com/v1/air-quality",
        description="Open-Meteo air-quality API URL",
    )
    upstream_timeout_seconds: float = Field(
        default=30.0,
        description="Upstream request timeout in seconds",
        ge=0.1,
        le=300.0,
    )

    # Cache settings
    cache_table_name: str = Field(
        ...,
        min_length=1,
        description="Cache store identifier (table / key namespace)",
    )
    cache_ttl_seconds: int = Field(
        default=DEFAULT_CACHE_TTL_SECONDS,
        description="Cache record TTL in seconds",
    )
    cache_backend: Literal["memory", "redis"] = Field(
        default="memory",
        description="Cache backend (memory or redis)",
    )
    cache_max_size: int = Field(
        default=10000,
        description="Maximum entries for the in-memory backend",
        ge=1,
        le=1000000,
    )
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL for the redis backend",
    )
    coalesce_requests: bool = Field(
        default=False,
        description="Share one upstream fetch between concurrent misses for a key",
    )

    # Logging settings
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    log_format: str = Field(
        default="json",
        description="Log format (json or text)",
    )

    @field_validator("cache_ttl_seconds", mode="before")
    @classmethod
    def _parse_ttl(cls, value: Any) -> int:
        """Fall back to the default TTL on missing, unparsable or non-positive input."""
        if value is None or isinstance(value, bool):
            return DEFAULT_CACHE_TTL_SECONDS
        try:
            ttl = int(str(value).strip(), 10)
        except ValueError:
            return DEFAULT_CACHE_TTL_SECONDS
        return ttl if ttl > 0 else DEFAULT_CACHE_TTL_SECONDS


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()  # type: ignore[call-arg]
