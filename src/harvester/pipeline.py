"""Acquisition pipelines: enumerate work items, fetch concurrently, persist each.

LiveCrawlPipeline:
  one task per (symbol, interval) -> backward crawl -> CSV file

ArchivePipeline, per (symbol, interval):
  Pending -> DirectoryCreated -> URLsEnumerated
          -> AllDownloadsLaunched -> AllDownloadsJoined

Both return a RunReport so callers can tell "all succeeded" from "some
failed"; no per-task failure ever escapes as an exception.
"""

import time
from datetime import date, datetime, timezone
from itertools import product
from pathlib import Path

import httpx
import structlog

from harvester.archive.downloader import ArchiveDownloader
from harvester.archive.enumerator import enumerate_archive_references
from harvester.config import ArchiveSettings, CrawlSettings
from harvester.crawl.crawler import SeriesCrawler
from harvester.crawl.writer import write_series
from harvester.exceptions import FilesystemError, HarvesterError
from harvester.exchange.client import KlineSource
from harvester.fanout import gather_bounded
from harvester.logging import get_logger
from harvester.models import Granularity, RunReport, TaskOutcome
from harvester.retry import RetryPolicy

logger = get_logger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


def today_utc() -> date:
    return datetime.now(timezone.utc).date()


class LiveCrawlPipeline:
    """Crawls every configured (symbol, interval) pair and writes one CSV each.

    Usage:
        pipeline = LiveCrawlPipeline(settings.crawl, source, retry_policy)
        report = await pipeline.run()
    """

    def __init__(
        self,
        settings: CrawlSettings,
        source: KlineSource,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        self._settings = settings
        self._crawler = SeriesCrawler(
            source,
            retry_policy=retry_policy,
            page_size=settings.page_size,
            page_delay=settings.page_delay,
        )

    async def crawl_and_save(
        self, symbol: str, interval: str, end_time_ms: int
    ) -> TaskOutcome:
        """Crawl one series and persist it. Failures become the outcome."""
        key = f"{symbol}_{interval}"
        with structlog.contextvars.bound_contextvars(symbol=symbol, interval=interval):
            logger.info("fetching_kline_series", end_time=end_time_ms)
            try:
                series = await self._crawler.crawl(symbol, interval, end_time_ms)
                path = await write_series(series, self._settings.output_dir)
            except HarvesterError as e:
                logger.error("kline_series_failed", error_type=type(e).__name__, error=str(e))
                return TaskOutcome(key=key, ok=False, error=str(e))

        return TaskOutcome(key=key, ok=True, path=path, records=len(series))

    async def run(self, end_time_ms: int | None = None) -> RunReport:
        """Crawl all pairs concurrently, up to max_concurrent_series at once."""
        start_time = time.monotonic()
        end_time_ms = end_time_ms if end_time_ms is not None else now_ms()
        pairs = list(product(self._settings.symbols, self._settings.intervals))

        logger.info("live_crawl_started", pairs=len(pairs), end_time=end_time_ms)
        results = await gather_bounded(
            (self.crawl_and_save(s, i, end_time_ms) for s, i in pairs),
            limit=self._settings.max_concurrent_series,
        )

        report = RunReport()
        for (symbol, interval), result in zip(pairs, results):
            if isinstance(result, BaseException):
                logger.error(
                    "kline_series_crashed",
                    symbol=symbol,
                    interval=interval,
                    error=repr(result),
                )
                report.add(
                    TaskOutcome(key=f"{symbol}_{interval}", ok=False, error=repr(result))
                )
            else:
                report.add(result)

        logger.info(
            "live_crawl_complete",
            succeeded=report.succeeded,
            failed=report.failed,
            duration_seconds=round(time.monotonic() - start_time, 1),
        )
        return report


class ArchivePipeline:
    """Downloads every archive for every configured (symbol, interval) pair.

    Usage:
        async with httpx.AsyncClient() as client:
            pipeline = ArchivePipeline(settings.archive, client, retry_policy)
            report = await pipeline.run()
    """

    def __init__(
        self,
        settings: ArchiveSettings,
        http_client: httpx.AsyncClient,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        self._settings = settings
        self._downloader = ArchiveDownloader(
            http_client,
            retry_policy=retry_policy,
            max_concurrency=settings.max_concurrent_downloads,
        )

    @property
    def pairs(self) -> list[tuple[str, str]]:
        return list(product(self._settings.symbols, self._settings.intervals))

    def save_dir(self, symbol: str, interval: str) -> Path:
        return Path(self._settings.output_dir) / symbol / interval

    def prepare_directories(self) -> None:
        """Create every <output_dir>/<symbol>/<interval> directory.

        Raises:
            FilesystemError: If any directory cannot be created.
        """
        for symbol, interval in self.pairs:
            path = self.save_dir(symbol, interval)
            try:
                path.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise FilesystemError(f"Error creating directory {path}: {e}") from e

    async def process_pair(
        self, symbol: str, interval: str, start: date, end: date
    ) -> RunReport:
        """Enumerate and download every archive for one pair."""
        with structlog.contextvars.bound_contextvars(symbol=symbol, interval=interval):
            logger.info("archive_pair_started")
            references = enumerate_archive_references(
                symbol,
                interval,
                start,
                end,
                Granularity(self._settings.granularity),
                self._settings.base_url,
            )
            logger.info("archive_urls_enumerated", count=len(references))
            report = await self._downloader.download_all(
                references, self._settings.output_dir
            )
            logger.info(
                "archive_pair_complete",
                succeeded=report.succeeded,
                failed=report.failed,
            )
        return report

    async def run(self, end_date: date | None = None) -> RunReport:
        """Download all pairs concurrently and wait for every download.

        Raises:
            FilesystemError: If the output directories cannot be created.
        """
        start_time = time.monotonic()
        start = self._settings.start_date
        end = end_date or self._settings.end_date or today_utc()

        logger.info(
            "archive_download_started",
            pairs=len(self.pairs),
            granularity=self._settings.granularity,
            start=start.isoformat(),
            end=end.isoformat(),
        )
        self.prepare_directories()

        pairs = self.pairs
        results = await gather_bounded(
            self.process_pair(symbol, interval, start, end) for symbol, interval in pairs
        )

        report = RunReport()
        for (symbol, interval), result in zip(pairs, results):
            if isinstance(result, BaseException):
                logger.error(
                    "archive_pair_crashed",
                    symbol=symbol,
                    interval=interval,
                    error=repr(result),
                )
                report.add(
                    TaskOutcome(key=f"{symbol}_{interval}", ok=False, error=repr(result))
                )
            else:
                report.extend(result)

        logger.info(
            "archive_download_complete",
            succeeded=report.succeeded,
            failed=report.failed,
            duration_seconds=round(time.monotonic() - start_time, 1),
        )
        return report
