"""Custom exceptions for the kline harvester.

Every failure the acquisition engine can hit is one of four kinds. Exchange
and HTTP library exceptions are translated into these at the client
boundary so crawl and download code never imports ccxt or httpx errors.
"""

# Statuses the upstream uses to signal throttling (418 = IP auto-banned).
RATE_LIMIT_STATUSES = frozenset({418, 429})


class HarvesterError(Exception):
    """Base exception for all harvester errors."""


class TransportError(HarvesterError):
    """Raised on connection, DNS, or timeout failure before a status arrives."""


class UpstreamStatusError(HarvesterError):
    """Raised when the upstream answers with a non-success HTTP status."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code

    @property
    def is_rate_limited(self) -> bool:
        return self.status_code in RATE_LIMIT_STATUSES

    @property
    def retryable(self) -> bool:
        """Throttling and server-side errors may succeed on a later attempt."""
        if self.status_code is None:
            return False
        return self.is_rate_limited or self.status_code >= 500


class DecodeError(HarvesterError):
    """Raised when a response body does not match the expected page shape."""


class FilesystemError(HarvesterError):
    """Raised when creating a directory or writing an output file fails."""
