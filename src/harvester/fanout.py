"""Bounded fan-out: one task per work item, joined with a single barrier.

Every work item is launched immediately as its own asyncio task; a semaphore
caps how many are past the gate at once so a large date range cannot open
thousands of sockets and file handles together. Exceptions are captured per
item (asyncio.gather with return_exceptions) so one failure never cancels
its siblings.
"""

import asyncio
from collections.abc import Awaitable, Iterable
from typing import TypeVar

T = TypeVar("T")


async def gather_bounded(
    work: Iterable[Awaitable[T]],
    limit: int | None = None,
) -> list[T | BaseException]:
    """Run all awaitables concurrently, at most `limit` at a time.

    Args:
        work: Awaitables to run. Each becomes its own task.
        limit: Maximum number running at once. None means unbounded.

    Returns:
        One entry per awaitable, in submission order: its result, or the
        exception it raised.
    """
    if limit is not None and limit < 1:
        raise ValueError("limit must be at least 1")

    if limit is None:
        return await asyncio.gather(*work, return_exceptions=True)

    semaphore = asyncio.Semaphore(limit)

    async def _gated(item: Awaitable[T]) -> T:
        async with semaphore:
            return await item

    return await asyncio.gather(
        *(_gated(item) for item in work), return_exceptions=True
    )
