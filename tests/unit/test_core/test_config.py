"""Unit tests for core configuration module."""

from datetime import timedelta

import pytest
from pydantic import ValidationError

from district_lookup.core.config import Settings, get_settings


class TestSettings:
    """Tests for Settings configuration."""

    def test_settings_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Settings load from environment variables."""
        monkeypatch.setenv("GEOCODIO_API_KEY", "env-key")
        monkeypatch.setenv("BATCH_SIZE", "50")
        settings = Settings(_env_file=None)  # type: ignore[call-arg]
        assert settings.geocodio_api_key == "env-key"
        assert settings.batch_size == 50

    def test_settings_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Default values are applied correctly."""
        monkeypatch.delenv("GEOCODIO_API_KEY", raising=False)
        settings = Settings(_env_file=None)  # type: ignore[call-arg]
        assert settings.geocodio_api_key is None
        assert settings.geocodio_base_url == "https://api.geocod.io/v1.7"
        assert settings.geocodio_max_retries == 3
        assert settings.rate_limit_requests == 1000
        assert settings.rate_limit_window_seconds == 86400
        assert settings.cache_path is None
        assert settings.cache_cleanup_threshold == 1000
        assert settings.batch_size == 25
        assert settings.batch_max_concurrency == 10
        assert settings.batch_delay_ms == 100
        assert settings.export_dir == "./exports"
        assert settings.log_level == "INFO"

    def test_ttl_properties(self) -> None:
        settings = Settings(
            _env_file=None,  # type: ignore[call-arg]
            cache_ttl_days=7,
            cache_fallback_ttl_hours=6,
            cache_stale_max_age_days=60,
        )
        assert settings.cache_ttl == timedelta(days=7)
        assert settings.cache_fallback_ttl == timedelta(hours=6)
        assert settings.cache_stale_max_age == timedelta(days=60)

    def test_base_url_trailing_slash_stripped(self) -> None:
        settings = Settings(_env_file=None, geocodio_base_url="https://example.test/v1/")  # type: ignore[call-arg]
        assert settings.geocodio_base_url == "https://example.test/v1"

    def test_base_url_must_be_http(self) -> None:
        with pytest.raises(ValidationError, match="http"):
            Settings(_env_file=None, geocodio_base_url="ftp://example.test")  # type: ignore[call-arg]

    def test_validation_positive_integers(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Positive integer fields reject zero and negative values."""
        monkeypatch.setenv("BATCH_MAX_CONCURRENCY", "0")
        with pytest.raises(ValidationError):
            Settings(_env_file=None)  # type: ignore[call-arg]

    def test_negative_retries_rejected(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GEOCODIO_MAX_RETRIES", "-1")
        with pytest.raises(ValidationError):
            Settings(_env_file=None)  # type: ignore[call-arg]

    def test_env_is_case_insensitive(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("log_level", "DEBUG")
        settings = Settings(_env_file=None)  # type: ignore[call-arg]
        assert settings.log_level == "DEBUG"

    def test_get_settings_returns_settings(self) -> None:
        assert isinstance(get_settings(), Settings)
