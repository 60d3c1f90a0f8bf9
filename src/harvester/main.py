"""Entry point for the kline harvester.

Two commands, each configured entirely through AppSettings (environment
variables / .env):

    kline-harvester crawl     walk the live /klines endpoint backward, write CSVs
    kline-harvester archive   download daily/monthly zip archives

Per-task failures are logged and summarised. The exit status is non-zero
only with --strict and at least one failed task.
"""

import argparse
import asyncio
import sys

import httpx

from harvester.config import AppSettings
from harvester.exchange.binance_client import BinanceClient
from harvester.logging import get_logger, setup_logging
from harvester.models import RunReport
from harvester.pipeline import ArchivePipeline, LiveCrawlPipeline
from harvester.retry import RetryPolicy


async def run_crawl(settings: AppSettings) -> RunReport:
    """Run the live crawl pipeline, always closing the exchange client."""
    client = BinanceClient(settings.exchange)
    try:
        await client.connect()
        pipeline = LiveCrawlPipeline(
            settings.crawl,
            client,
            retry_policy=RetryPolicy.from_settings(settings.retry),
        )
        return await pipeline.run()
    finally:
        await client.close()


async def run_archive(settings: AppSettings) -> RunReport:
    """Run the bulk archive pipeline over a shared HTTP client."""
    timeout = httpx.Timeout(settings.archive.timeout_seconds)
    async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as client:
        pipeline = ArchivePipeline(
            settings.archive,
            client,
            retry_policy=RetryPolicy.from_settings(settings.retry),
        )
        return await pipeline.run()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kline-harvester",
        description="Acquire historical kline data from the live API or bulk archives.",
    )
    parser.add_argument(
        "command",
        choices=["crawl", "archive"],
        help="crawl: paginate the live API; archive: download zip archives",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="exit with status 1 if any task failed",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Synchronous entry point."""
    args = build_parser().parse_args(argv)

    # 1. Load settings
    settings = AppSettings()

    # 2. Setup logging
    setup_logging(settings.log_level, settings.log_format)
    logger = get_logger("harvester.main")

    runner = run_crawl if args.command == "crawl" else run_archive
    report = asyncio.run(runner(settings))

    for failure in report.failures():
        logger.warning("task_failed", key=failure.key, error=failure.error)
    logger.info(
        "run_summary",
        command=args.command,
        total=report.total,
        succeeded=report.succeeded,
        failed=report.failed,
    )

    if args.strict and not report.all_ok:
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
