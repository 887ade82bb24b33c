"""Configuration system using pydantic-settings with environment variable loading."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class HermesSettings(BaseSettings):
    """Pyth Hermes price service connection settings."""

    model_config = SettingsConfigDict(env_prefix="HERMES_")

    base_url: str = "https://hermes.pyth.network"
    request_timeout: float = 10.0  # seconds


class FeedClientSettings(BaseSettings):
    """Polling and validation parameters for the price feed client.

    Thresholds drive both the per-reading ``is_stale`` flag and the
    on-demand validation results shown on the dashboard.
    All fields configurable via FEED_ environment variable prefix.
    """

    model_config = SettingsConfigDict(env_prefix="FEED_")

    refresh_interval_ms: int = Field(default=5000, gt=0)
    staleness_threshold_seconds: int = Field(default=60, ge=0)
    confidence_threshold_ratio: float = Field(default=0.1, ge=0.0, le=1.0)  # 10%
    max_retries: int = Field(default=3, ge=0)
    enable_real_time_updates: bool = True


class DashboardSettings(BaseSettings):
    """Dashboard server configuration."""

    model_config = SettingsConfigDict(env_prefix="DASHBOARD_")

    host: str = "0.0.0.0"
    port: int = 8080
    enabled: bool = True


class AppSettings(BaseSettings):
    """Root application settings, composing all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    log_level: str = "INFO"
    hermes: HermesSettings = HermesSettings()
    feeds: FeedClientSettings = FeedClientSettings()
    dashboard: DashboardSettings = DashboardSettings()
