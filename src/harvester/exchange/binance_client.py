"""Binance kline client implementation via ccxt async.

Wraps ccxt.async_support.binance and calls the raw GET /api/v3/klines
endpoint rather than the unified fetch_ohlcv, which would coerce prices and
volumes to float and drop the trailing fields of each kline.
"""

import ccxt.async_support as ccxt_async

from harvester.config import ExchangeSettings
from harvester.exceptions import DecodeError, TransportError, UpstreamStatusError
from harvester.exchange.client import KlineSource
from harvester.logging import get_logger

logger = get_logger(__name__)


class BinanceClient(KlineSource):
    """Concrete Binance spot kline source using ccxt async."""

    def __init__(self, settings: ExchangeSettings) -> None:
        self._settings = settings

        config: dict = {
            "enableRateLimit": settings.enable_rate_limit,
            "timeout": settings.timeout_ms,
            "urls": {
                "api": {
                    "public": settings.api_url,
                },
            },
        }

        self._exchange = ccxt_async.binance(config)

    @property
    def exchange(self) -> ccxt_async.binance:
        """Access the underlying ccxt exchange instance."""
        return self._exchange

    async def connect(self) -> None:
        """No market loading needed: the klines endpoint takes raw symbols."""
        logger.info("binance_client_ready", api_url=self._settings.api_url)

    async def close(self) -> None:
        """Clean up ccxt async resources. CRITICAL: must be called to avoid resource leaks."""
        logger.info("closing_binance_connection")
        await self._exchange.close()
        logger.info("binance_connection_closed")

    async def fetch_klines(
        self,
        symbol: str,
        interval: str,
        end_time_ms: int,
        limit: int = 1000,
    ) -> list[list]:
        """Fetch one raw page from /klines, translating ccxt errors."""
        params = {
            "symbol": symbol,
            "interval": interval,
            "endTime": end_time_ms,
            "limit": limit,
        }
        target = f"{symbol} {interval}"
        try:
            page = await self._exchange.public_get_klines(params)
        # Order matters: RateLimitExceeded, DDoSProtection and ExchangeNotAvailable
        # all subclass NetworkError. RateLimitExceeded is not a DDoSProtection.
        except (ccxt_async.RateLimitExceeded, ccxt_async.DDoSProtection) as e:
            raise UpstreamStatusError(f"Rate limited fetching {target}: {e}", 429) from e
        except ccxt_async.ExchangeNotAvailable as e:
            raise UpstreamStatusError(f"Upstream unavailable for {target}: {e}", 503) from e
        except ccxt_async.NetworkError as e:
            raise TransportError(f"Error fetching {target}: {e}") from e
        except ccxt_async.BaseError as e:
            raise UpstreamStatusError(f"Error fetching {target}: {e}") from e

        if not isinstance(page, list):
            raise DecodeError(
                f"Expected a JSON array of klines for {symbol} {interval}, "
                f"got {type(page).__name__}"
            )
        return page
