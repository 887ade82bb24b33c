"""Tests for environment-driven settings."""

import pytest
from pydantic import ValidationError

from pricefeed.config import (
    AppSettings,
    DashboardSettings,
    FeedClientSettings,
    HermesSettings,
)


class TestDefaults:
    def test_feed_client_defaults(self) -> None:
        settings = FeedClientSettings()
        assert settings.refresh_interval_ms == 5000
        assert settings.staleness_threshold_seconds == 60
        assert settings.confidence_threshold_ratio == pytest.approx(0.1)
        assert settings.max_retries == 3
        assert settings.enable_real_time_updates is True

    def test_hermes_defaults(self) -> None:
        settings = HermesSettings()
        assert settings.base_url == "https://hermes.pyth.network"
        assert settings.request_timeout == pytest.approx(10.0)

    def test_dashboard_defaults(self) -> None:
        settings = DashboardSettings()
        assert settings.port == 8080
        assert settings.enabled is True


class TestEnvironment:
    def test_feed_prefix(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("FEED_REFRESH_INTERVAL_MS", "1500")
        monkeypatch.setenv("FEED_ENABLE_REAL_TIME_UPDATES", "false")
        settings = FeedClientSettings()
        assert settings.refresh_interval_ms == 1500
        assert settings.enable_real_time_updates is False

    def test_hermes_prefix(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HERMES_BASE_URL", "https://hermes-beta.pyth.network")
        assert HermesSettings().base_url == "https://hermes-beta.pyth.network"

    def test_log_level(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        assert AppSettings().log_level == "DEBUG"


class TestConstraints:
    def test_refresh_interval_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            FeedClientSettings(refresh_interval_ms=0)

    def test_negative_retries_rejected(self) -> None:
        with pytest.raises(ValidationError):
            FeedClientSettings(max_retries=-1)

    def test_zero_retries_allowed(self) -> None:
        assert FeedClientSettings(max_retries=0).max_retries == 0
