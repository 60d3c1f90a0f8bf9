"""Tests for BinanceClient.

All tests use a mocked ccxt endpoint method to avoid real API calls.
"""

from unittest.mock import AsyncMock

import ccxt.async_support as ccxt_async
import pytest

from harvester.config import ExchangeSettings
from harvester.exceptions import DecodeError, TransportError, UpstreamStatusError
from harvester.exchange.binance_client import BinanceClient


@pytest.fixture
def exchange_settings() -> ExchangeSettings:
    """Exchange settings pointing at a non-production host."""
    return ExchangeSettings(api_url="https://api.example.test/api/v3")


@pytest.fixture
def binance_client(exchange_settings: ExchangeSettings) -> BinanceClient:
    """BinanceClient whose raw klines endpoint is mocked."""
    client = BinanceClient(exchange_settings)
    client.exchange.public_get_klines = AsyncMock(return_value=[])
    return client


class TestBinanceClientInit:
    """Tests for BinanceClient initialization."""

    def test_api_url_override(self, binance_client) -> None:
        assert binance_client.exchange.urls["api"]["public"] == "https://api.example.test/api/v3"

    def test_rate_limit_enabled_by_default(self, binance_client) -> None:
        assert binance_client.exchange.enableRateLimit is True

    def test_timeout_from_settings(self) -> None:
        client = BinanceClient(ExchangeSettings(timeout_ms=2500))
        assert client.exchange.timeout == 2500


class TestFetchKlines:
    """Tests for the raw /klines page request."""

    @pytest.mark.asyncio
    async def test_sends_pagination_params(self, binance_client, raw_kline) -> None:
        page = [raw_kline(1_600_000_000_000)]
        binance_client.exchange.public_get_klines.return_value = page

        result = await binance_client.fetch_klines("BTCUSDT", "1d", 1_700_000_000_000, 1000)

        assert result == page
        binance_client.exchange.public_get_klines.assert_awaited_once_with(
            {
                "symbol": "BTCUSDT",
                "interval": "1d",
                "endTime": 1_700_000_000_000,
                "limit": 1000,
            }
        )

    @pytest.mark.asyncio
    async def test_empty_page_passthrough(self, binance_client) -> None:
        assert await binance_client.fetch_klines("BTCUSDT", "1d", 1) == []

    @pytest.mark.asyncio
    async def test_network_error_is_transport_error(self, binance_client) -> None:
        binance_client.exchange.public_get_klines.side_effect = ccxt_async.RequestTimeout("timed out")
        with pytest.raises(TransportError):
            await binance_client.fetch_klines("BTCUSDT", "1d", 1)

    @pytest.mark.asyncio
    async def test_rate_limit_is_retryable_status(self, binance_client) -> None:
        binance_client.exchange.public_get_klines.side_effect = ccxt_async.RateLimitExceeded("429")
        with pytest.raises(UpstreamStatusError) as exc_info:
            await binance_client.fetch_klines("BTCUSDT", "1d", 1)
        assert exc_info.value.status_code == 429
        assert exc_info.value.is_rate_limited
        assert exc_info.value.retryable

    @pytest.mark.asyncio
    async def test_exchange_unavailable_is_retryable_status(self, binance_client) -> None:
        binance_client.exchange.public_get_klines.side_effect = ccxt_async.ExchangeNotAvailable("503")
        with pytest.raises(UpstreamStatusError) as exc_info:
            await binance_client.fetch_klines("BTCUSDT", "1d", 1)
        assert exc_info.value.retryable

    @pytest.mark.asyncio
    async def test_bad_symbol_is_fatal_status(self, binance_client) -> None:
        binance_client.exchange.public_get_klines.side_effect = ccxt_async.BadSymbol("Invalid symbol.")
        with pytest.raises(UpstreamStatusError) as exc_info:
            await binance_client.fetch_klines("NOPE", "1d", 1)
        assert not exc_info.value.retryable
        assert exc_info.value.status_code is None

    @pytest.mark.asyncio
    async def test_ddos_protection_is_rate_limited(self, binance_client) -> None:
        binance_client.exchange.public_get_klines.side_effect = ccxt_async.DDoSProtection("418")
        with pytest.raises(UpstreamStatusError) as exc_info:
            await binance_client.fetch_klines("BTCUSDT", "1d", 1)
        assert exc_info.value.is_rate_limited

    @pytest.mark.asyncio
    async def test_non_array_body_is_decode_error(self, binance_client) -> None:
        binance_client.exchange.public_get_klines.return_value = {"code": -1121}
        with pytest.raises(DecodeError):
            await binance_client.fetch_klines("BTCUSDT", "1d", 1)


class TestLifecycle:
    """Tests for connect/close."""

    @pytest.mark.asyncio
    async def test_close_releases_ccxt_resources(self, binance_client) -> None:
        binance_client.exchange.close = AsyncMock()
        await binance_client.close()
        binance_client.exchange.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_connect_makes_no_request(self, binance_client) -> None:
        await binance_client.connect()
        binance_client.exchange.public_get_klines.assert_not_awaited()
