"""Application configuration via Pydantic Settings.

All configuration is loaded from environment variables following 12-factor principles.
"""

from datetime import timedelta

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # District provider (Geocodio)
    geocodio_api_key: str | None = Field(
        default=None,
        description="Geocodio API key (sent as a bearer token); fallbacks are used when unset",
    )
    geocodio_base_url: str = Field(
        default="https://api.geocod.io/v1.7",
        description="Geocodio API base URL",
    )
    geocodio_timeout: float = Field(
        default=10.0,
        description="Geocodio request timeout in seconds",
        gt=0,
    )
    geocodio_max_retries: int = Field(
        default=3,
        description="Retries after a timeout, network error or HTTP 429",
        ge=0,
    )
    geocodio_retry_backoff: float = Field(
        default=1.0,
        description="Base backoff in seconds between provider retries",
        ge=0,
    )
    geocodio_fields: str = Field(
        default="cd,stateleg",
        description="Geocodio fields selector for district data",
    )

    @field_validator("geocodio_base_url")
    @classmethod
    def validate_geocodio_base_url(cls, v: str) -> str:
        if not v.startswith(("https://", "http://")):
            msg = "geocodio_base_url must be an http(s) URL"
            raise ValueError(msg)
        return v.rstrip("/")

    # Rate limiting
    rate_limit_requests: int = Field(
        default=1000,
        description="Provider requests allowed per rate-limit window",
        gt=0,
    )
    rate_limit_window_seconds: int = Field(
        default=24 * 60 * 60,
        description="Rate-limit window length in seconds",
        gt=0,
    )

    # Cache
    cache_path: str | None = Field(
        default=None,
        description="JSON file backing the district cache (in-memory when unset)",
    )
    cache_ttl_days: int = Field(
        default=30,
        description="Lifetime of provider-resolved cache entries in days",
        gt=0,
    )
    cache_fallback_ttl_hours: int = Field(
        default=24,
        description="Lifetime of fallback-resolved cache entries in hours",
        gt=0,
    )
    cache_stale_max_age_days: int = Field(
        default=90,
        description="Maximum age of an expired cache entry still usable as a fallback",
        gt=0,
    )
    cache_cleanup_threshold: int = Field(
        default=1000,
        description="Entry count above which expired entries are purged on write",
        gt=0,
    )

    @property
    def cache_ttl(self) -> timedelta:
        return timedelta(days=self.cache_ttl_days)

    @property
    def cache_fallback_ttl(self) -> timedelta:
        return timedelta(hours=self.cache_fallback_ttl_hours)

    @property
    def cache_stale_max_age(self) -> timedelta:
        return timedelta(days=self.cache_stale_max_age_days)

    # Batch processing
    batch_size: int = Field(
        default=25,
        description="ZIP codes per batch chunk",
        gt=0,
    )
    batch_max_concurrency: int = Field(
        default=10,
        description="Maximum concurrent resolutions during a batch run",
        gt=0,
    )
    batch_delay_ms: int = Field(
        default=100,
        description="Delay between batch chunks in milliseconds",
        ge=0,
    )

    # Export
    export_dir: str = Field(
        default="./exports",
        description="Directory for batch export snapshots",
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    log_dir: str | None = Field(
        default=None,
        description="Directory for log files (enables file logging with 24h rotation when set)",
    )


def get_settings() -> Settings:
    """Create and return application settings."""
    return Settings()
