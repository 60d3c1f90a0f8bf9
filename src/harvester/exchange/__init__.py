"""Exchange client layer -- Binance kline API integration via ccxt."""

from harvester.exchange.binance_client import BinanceClient
from harvester.exchange.client import KlineSource

__all__ = ["BinanceClient", "KlineSource"]
