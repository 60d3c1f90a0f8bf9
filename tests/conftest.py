"""Shared test fixtures for the kline harvester."""

import asyncio
from collections.abc import Callable
from datetime import date
from pathlib import Path

import pytest

from harvester.config import ArchiveSettings, CrawlSettings
from harvester.exchange.client import KlineSource

ONE_MINUTE_MS = 60_000


def make_raw_kline(
    open_time: int,
    interval_ms: int = ONE_MINUTE_MS,
    open_price: str = "42000.01000000",
) -> list:
    """A 12-field kline array as the /klines endpoint returns it."""
    return [
        open_time,
        open_price,
        "42100.00000000",
        "41900.50000000",
        "42050.10000000",
        "12.34500000",
        open_time + interval_ms - 1,
        "518765.43210000",
        321,
        "6.10000000",
        "256432.10000000",
        "0",
    ]


class FakeKlineSource(KlineSource):
    """In-memory /klines endpoint honouring endTime and limit.

    Holds raw klines per (symbol, interval), oldest first, and records
    every request so tests can assert on cursor movement.
    """

    def __init__(self, klines: dict[tuple[str, str], list[list]] | None = None) -> None:
        self._klines = klines or {}
        self.calls: list[tuple[str, str, int, int]] = []

    async def connect(self) -> None:
        pass

    async def close(self) -> None:
        pass

    async def fetch_klines(
        self,
        symbol: str,
        interval: str,
        end_time_ms: int,
        limit: int = 1000,
    ) -> list[list]:
        self.calls.append((symbol, interval, end_time_ms, limit))
        # Yield so concurrent crawls interleave their page requests.
        await asyncio.sleep(0)
        available = [k for k in self._klines.get((symbol, interval), []) if k[0] <= end_time_ms]
        return [list(k) for k in available[-limit:]]


def history(count: int, start: int = 1_600_000_000_000, **kwargs) -> list[list]:
    """`count` consecutive one-minute raw klines starting at `start`."""
    return [make_raw_kline(start + i * ONE_MINUTE_MS, **kwargs) for i in range(count)]


@pytest.fixture
def raw_kline() -> Callable[..., list]:
    """Factory for single raw kline arrays."""
    return make_raw_kline


@pytest.fixture
def kline_history() -> Callable[..., list[list]]:
    """Factory for consecutive raw kline histories."""
    return history


@pytest.fixture
def fake_source() -> Callable[..., FakeKlineSource]:
    """Factory for in-memory kline sources."""
    return FakeKlineSource


@pytest.fixture
def crawl_settings(tmp_path: Path) -> CrawlSettings:
    """CrawlSettings writing to a temp dir with no inter-page delay."""
    return CrawlSettings(
        symbols=["BTCUSDT", "ETHUSDT"],
        intervals=["1m", "1h"],
        page_size=10,
        page_delay=0,
        output_dir=str(tmp_path / "csv"),
        max_concurrent_series=2,
    )


@pytest.fixture
def archive_settings(tmp_path: Path) -> ArchiveSettings:
    """ArchiveSettings over a three-day daily range writing to a temp dir."""
    return ArchiveSettings(
        base_url="https://archive.test/data/spot",
        symbols=["BTCUSDT", "ETHUSDT"],
        intervals=["1m"],
        granularity="daily",
        start_date=date(2021, 1, 1),
        end_date=date(2021, 1, 3),
        output_dir=str(tmp_path / "static"),
        max_concurrent_downloads=4,
    )
