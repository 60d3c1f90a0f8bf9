"""Bulk archive path: date-range URL enumeration and concurrent download."""

from harvester.archive.downloader import ArchiveDownloader
from harvester.archive.enumerator import (
    archive_url,
    enumerate_archive_references,
    enumerate_archive_urls,
)

__all__ = [
    "ArchiveDownloader",
    "archive_url",
    "enumerate_archive_references",
    "enumerate_archive_urls",
]
