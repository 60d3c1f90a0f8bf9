"""Concurrent archive downloader with per-file failure isolation.

Each archive is its own task: GET the URL, stream the body to
<save_path>.part, then rename into place. A failed download is logged and
reported as a failed TaskOutcome; it never raises into the caller and never
cancels sibling downloads. Archive contents are not opened or validated.
"""

import asyncio
import contextlib
from collections.abc import Sequence
from pathlib import Path

import aiofiles
import httpx

from harvester.exceptions import (
    FilesystemError,
    HarvesterError,
    TransportError,
    UpstreamStatusError,
)
from harvester.fanout import gather_bounded
from harvester.logging import get_logger
from harvester.models import ArchiveReference, RunReport, TaskOutcome
from harvester.retry import RetryPolicy

logger = get_logger(__name__)

PART_SUFFIX = ".part"


class ArchiveDownloader:
    """Downloads archive files through a shared httpx.AsyncClient.

    The concurrency cap is held by the downloader itself, so it bounds every
    download_all() call sharing this instance, not just one call.

    Args:
        http_client: Client used for every request. Owned by the caller.
        retry_policy: Applied per file. Defaults to a single attempt.
        max_concurrency: Cap on simultaneous downloads. None = unbounded.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        retry_policy: RetryPolicy | None = None,
        max_concurrency: int | None = 16,
    ) -> None:
        if max_concurrency is not None and max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self._client = http_client
        self._retry = retry_policy or RetryPolicy.none()
        self._max_concurrency = max_concurrency
        self._slots = (
            asyncio.Semaphore(max_concurrency) if max_concurrency else None
        )

    async def _fetch_to_file(self, url: str, path: Path) -> int:
        """One download attempt. Returns the number of bytes written."""
        part_path = path.with_name(path.name + PART_SUFFIX)
        written = 0
        try:
            async with self._client.stream("GET", url) as response:
                if not response.is_success:
                    raise UpstreamStatusError(
                        f"Failed to download {url}: HTTP {response.status_code}",
                        response.status_code,
                    )
                try:
                    async with aiofiles.open(part_path, mode="wb") as f:
                        async for chunk in response.aiter_raw():
                            await f.write(chunk)
                            written += len(chunk)
                    part_path.replace(path)
                except OSError as e:
                    raise FilesystemError(f"Error writing {path}: {e}") from e
        except httpx.RequestError as e:
            raise TransportError(f"Error downloading {url}: {e}") from e
        finally:
            if part_path.exists():
                part_path.unlink()
        return written

    async def download(
        self, reference: ArchiveReference, base_dir: Path | str
    ) -> TaskOutcome:
        """Download one archive. Never raises; failures become the outcome."""
        path = reference.save_path(base_dir)
        slot = self._slots if self._slots is not None else contextlib.nullcontext()
        async with slot:
            logger.info("download_started", url=reference.url)
            try:
                path.parent.mkdir(parents=True, exist_ok=True)
                size = await self._retry.call(self._fetch_to_file, reference.url, path)
            except (HarvesterError, OSError) as e:
                logger.warning("download_failed", url=reference.url, error=str(e))
                return TaskOutcome(key=reference.url, ok=False, error=str(e))

        logger.info("download_complete", url=reference.url, path=str(path), bytes=size)
        return TaskOutcome(key=reference.url, ok=True, path=path, records=size)

    async def download_all(
        self, references: Sequence[ArchiveReference], base_dir: Path | str
    ) -> RunReport:
        """Download every archive concurrently and wait for all of them.

        Returns one outcome per reference, in the order given, regardless of
        which downloads succeeded.
        """
        logger.debug(
            "downloads_launched",
            count=len(references),
            max_concurrency=self._max_concurrency,
        )
        # One task per archive; the shared semaphore in download() gates them.
        results = await gather_bounded(
            self.download(ref, base_dir) for ref in references
        )

        report = RunReport()
        for reference, result in zip(references, results):
            if isinstance(result, BaseException):
                logger.error(
                    "download_task_crashed",
                    url=reference.url,
                    error=repr(result),
                )
                report.add(TaskOutcome(key=reference.url, ok=False, error=repr(result)))
            else:
                report.add(result)

        logger.debug(
            "downloads_joined",
            count=report.total,
            succeeded=report.succeeded,
            failed=report.failed,
        )
        return report
