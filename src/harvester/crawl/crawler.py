"""Backward-paginated crawl of a full kline history for one symbol/interval.

Walks the time axis from a reference end time toward the past, one page at
a time, until the upstream returns an empty page. Pages are strictly
sequential: the cursor for page n+1 comes from the first candle of page n.

Upstream contract (Binance /klines with endTime):
- A page holds at most `limit` candles with open_time <= endTime
- Candles within a page are oldest-first
- An empty page means no older data exists
"""

import asyncio

from harvester.crawl.decoder import decode_page
from harvester.exceptions import DecodeError
from harvester.exchange.client import KlineSource
from harvester.logging import get_logger
from harvester.models import Series
from harvester.retry import RetryPolicy

logger = get_logger(__name__)


class SeriesCrawler:
    """Fetches a complete kline series by walking backward from an end time.

    Any transport, status or decode error aborts the crawl and propagates;
    no partial series is ever returned.

    Usage:
        crawler = SeriesCrawler(source, RetryPolicy.none(), page_size=1000)
        series = await crawler.crawl("BTCUSDT", "1d", end_time_ms)
    """

    def __init__(
        self,
        source: KlineSource,
        retry_policy: RetryPolicy | None = None,
        page_size: int = 1000,
        page_delay: float = 0.1,
    ) -> None:
        if page_size < 1:
            raise ValueError("page_size must be at least 1")
        self._source = source
        self._retry = retry_policy or RetryPolicy.none()
        self._page_size = page_size
        self._page_delay = page_delay

    async def crawl(self, symbol: str, interval: str, end_time_ms: int) -> Series:
        """Return every candle with open_time <= end_time_ms, oldest first."""
        series = Series(symbol, interval)
        cursor = end_time_ms

        while True:
            logger.debug(
                "fetching_kline_page",
                symbol=symbol,
                interval=interval,
                end_time=cursor,
                page=series.page_count + 1,
            )
            raw_page = await self._retry.call(
                self._source.fetch_klines,
                symbol,
                interval,
                cursor,
                self._page_size,
            )

            if not raw_page:
                break

            page = decode_page(raw_page)

            # Guards against an upstream that ignores endTime, which would
            # otherwise never produce the terminating empty page.
            if page[-1].open_time > cursor:
                raise DecodeError(
                    f"Page for {symbol} {interval} contains open_time "
                    f"{page[-1].open_time} after requested end {cursor}"
                )

            series.prepend_page(page)

            cursor = page[0].open_time - 1

            # Rate limit courtesy delay between paginated calls
            await asyncio.sleep(self._page_delay)

        logger.info(
            "kline_crawl_complete",
            symbol=symbol,
            interval=interval,
            candles=len(series),
            pages=series.page_count,
        )
        return series
