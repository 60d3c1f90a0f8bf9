"""CSV persistence for crawled kline series.

One file per series at <folder>/<symbol>_<interval>.csv, rows oldest-first.
Only the seven OHLCV columns in CSV_HEADER are written; the remaining kline
fields stay in memory.
"""

import csv
import io
from pathlib import Path

import aiofiles

from harvester.exceptions import FilesystemError
from harvester.logging import get_logger
from harvester.models import CSV_HEADER, Series

logger = get_logger(__name__)


def series_path(folder: Path | str, symbol: str, interval: str) -> Path:
    """Deterministic output path for one series."""
    return Path(folder) / f"{symbol}_{interval}.csv"


def render_csv(series: Series) -> str:
    """Render the header plus one row per candle as CSV text."""
    string_io = io.StringIO()
    writer = csv.writer(string_io)
    writer.writerow(CSV_HEADER)
    for candle in series:
        writer.writerow(candle.to_row())
    return string_io.getvalue()


async def write_series(series: Series, folder: Path | str) -> Path:
    """Write a completed series to CSV, replacing any previous file.

    Returns:
        The path written.

    Raises:
        FilesystemError: If the folder cannot be created or the file written.
    """
    path = series_path(folder, series.symbol, series.interval)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise FilesystemError(f"Error creating folder {path.parent}: {e}") from e

    try:
        async with aiofiles.open(path, mode="w", encoding="utf-8", newline="") as f:
            await f.write(render_csv(series))
    except OSError as e:
        raise FilesystemError(f"Error writing CSV file {path}: {e}") from e

    logger.info(
        "series_saved",
        symbol=series.symbol,
        interval=series.interval,
        rows=len(series),
        path=str(path),
    )
    return path
