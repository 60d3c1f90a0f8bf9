"""Configuration system using pydantic-settings with environment variable loading."""

from datetime import date
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ExchangeSettings(BaseSettings):
    """Live kline REST endpoint connection settings."""

    model_config = SettingsConfigDict(env_prefix="EXCHANGE_")

    api_url: str = "https://api.binance.com/api/v3"
    enable_rate_limit: bool = True
    timeout_ms: int = 10_000


class CrawlSettings(BaseSettings):
    """Backward pagination crawl over the live kline endpoint.

    All fields configurable via CRAWL_ environment variable prefix.
    List fields take JSON, e.g. CRAWL_SYMBOLS='["BTCUSDT","ETHUSDT"]'.
    """

    model_config = SettingsConfigDict(env_prefix="CRAWL_")

    symbols: list[str] = ["BTCUSDT", "ETHUSDT", "BNBUSDT", "ADAUSDT"]
    intervals: list[str] = ["1d"]
    page_size: int = 1000  # Binance max for /klines
    page_delay: float = 0.1  # seconds between page requests
    output_dir: str = "csv"
    max_concurrent_series: int = 8


class ArchiveSettings(BaseSettings):
    """Bulk archive download from the date-bucketed public data mirror.

    All fields configurable via ARCHIVE_ environment variable prefix.
    """

    model_config = SettingsConfigDict(env_prefix="ARCHIVE_")

    base_url: str = "https://data.binance.vision/data/spot"
    symbols: list[str] = ["BTCUSDT", "ETHUSDT", "BNBUSDT"]
    intervals: list[str] = ["1m"]
    granularity: Literal["daily", "monthly"] = "daily"
    start_date: date = date(2018, 8, 1)
    end_date: date | None = None  # None = today (UTC)
    output_dir: str = "static"
    max_concurrent_downloads: int = 16
    timeout_seconds: float = 60.0


class RetrySettings(BaseSettings):
    """Retry and backoff policy shared by page fetches and archive downloads."""

    model_config = SettingsConfigDict(env_prefix="RETRY_")

    max_attempts: int = 5
    base_delay: float = 1.0
    backoff_factor: float = 2.0
    rate_limit_multiplier: float = 3.0  # extra wait on 429/418


class AppSettings(BaseSettings):
    """Root application settings, composing all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    log_level: str = "INFO"
    log_format: Literal["console", "json", "logfmt"] = "console"
    exchange: ExchangeSettings = Field(default_factory=ExchangeSettings)
    crawl: CrawlSettings = Field(default_factory=CrawlSettings)
    archive: ArchiveSettings = Field(default_factory=ArchiveSettings)
    retry: RetrySettings = Field(default_factory=RetrySettings)
