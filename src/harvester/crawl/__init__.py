"""Live crawl: backward pagination, kline decoding, and CSV persistence."""

from harvester.crawl.crawler import SeriesCrawler
from harvester.crawl.decoder import decode_kline, decode_page
from harvester.crawl.writer import series_path, write_series

__all__ = [
    "SeriesCrawler",
    "decode_kline",
    "decode_page",
    "series_path",
    "write_series",
]
