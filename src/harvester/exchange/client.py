"""Abstract kline source interface.

Crawl code depends only on this interface, keeping exchange-specific
details isolated in the concrete implementation.
"""

from abc import ABC, abstractmethod


class KlineSource(ABC):
    """Abstract base class for paged kline endpoints."""

    @abstractmethod
    async def connect(self) -> None:
        """Initialize the connection."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Release the underlying HTTP session."""
        ...

    @abstractmethod
    async def fetch_klines(
        self,
        symbol: str,
        interval: str,
        end_time_ms: int,
        limit: int = 1000,
    ) -> list[list]:
        """Fetch one page of raw kline arrays with open time <= end_time_ms.

        Returns up to `limit` 12-element positional arrays, oldest first,
        exactly as the upstream JSON encodes them. An empty list means there
        is no older data.

        One request per call; the caller owns the cursor and moves
        end_time_ms backward between calls.

        Raises:
            TransportError: Connection or timeout failure.
            UpstreamStatusError: Non-success response.
            DecodeError: Body is not a JSON array.
        """
        ...
