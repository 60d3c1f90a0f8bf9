"""Retry wrapper with exponential backoff for upstream calls.

Page fetches and archive downloads share one policy object. Only failures
that can plausibly succeed later are retried: transport errors, throttling
statuses (429/418) and 5xx. Decode errors and other statuses (e.g. a 404
for an archive that was never published) fail on the first attempt.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

from harvester.config import RetrySettings
from harvester.exceptions import TransportError, UpstreamStatusError
from harvester.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class RetryPolicy:
    """Execute an async call with exponential backoff retry.

    Delays grow as base_delay * backoff_factor ** attempt (1s, 2s, 4s, ...
    with defaults). Rate-limit responses wait rate_limit_multiplier times
    longer. Re-raises the last error once max_attempts is exhausted.
    """

    def __init__(
        self,
        max_attempts: int = 5,
        base_delay: float = 1.0,
        backoff_factor: float = 2.0,
        rate_limit_multiplier: float = 3.0,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.backoff_factor = backoff_factor
        self.rate_limit_multiplier = rate_limit_multiplier

    @classmethod
    def from_settings(cls, settings: RetrySettings) -> "RetryPolicy":
        return cls(
            max_attempts=settings.max_attempts,
            base_delay=settings.base_delay,
            backoff_factor=settings.backoff_factor,
            rate_limit_multiplier=settings.rate_limit_multiplier,
        )

    @classmethod
    def none(cls) -> "RetryPolicy":
        """A single attempt, no retries."""
        return cls(max_attempts=1)

    def delay_for(self, attempt: int, error: Exception) -> float:
        """Seconds to wait after the given zero-based failed attempt."""
        delay = self.base_delay * (self.backoff_factor**attempt)
        if isinstance(error, UpstreamStatusError) and error.is_rate_limited:
            delay *= self.rate_limit_multiplier
        return delay

    @staticmethod
    def is_retryable(error: Exception) -> bool:
        if isinstance(error, TransportError):
            return True
        if isinstance(error, UpstreamStatusError):
            return error.retryable
        return False

    async def call(self, fn: Callable[..., Awaitable[T]], *args, **kwargs) -> T:
        """Await fn(*args, **kwargs), retrying transient failures."""
        for attempt in range(self.max_attempts):
            try:
                return await fn(*args, **kwargs)
            except (TransportError, UpstreamStatusError) as e:
                if not self.is_retryable(e) or attempt == self.max_attempts - 1:
                    if self.max_attempts > 1:
                        logger.error(
                            "call_failed_permanently",
                            error=str(e),
                            attempts=attempt + 1,
                        )
                    raise

                delay = self.delay_for(attempt, e)
                if isinstance(e, UpstreamStatusError) and e.is_rate_limited:
                    logger.warning(
                        "rate_limit_exceeded",
                        attempt=attempt + 1,
                        max_attempts=self.max_attempts,
                        delay=delay,
                    )
                else:
                    logger.warning(
                        "call_retry",
                        attempt=attempt + 1,
                        max_attempts=self.max_attempts,
                        delay=delay,
                        error=str(e),
                    )

                await asyncio.sleep(delay)

        raise AssertionError("unreachable")  # pragma: no cover
