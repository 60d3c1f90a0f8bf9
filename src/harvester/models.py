"""Shared data models for kline acquisition.

CRITICAL: Quantities are kept as the exact strings the upstream sends.
Never convert prices or volumes to float; use Candle.decimal() for arithmetic.
"""

from collections import deque
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from pathlib import Path

from harvester.exceptions import DecodeError

CSV_HEADER: list[str] = [
    "Open Time",
    "Open",
    "High",
    "Low",
    "Close",
    "Volume",
    "Close Time",
]


class Granularity(str, Enum):
    """Archive bucketing unit."""

    DAILY = "daily"
    MONTHLY = "monthly"

    @property
    def token_format(self) -> str:
        """strftime pattern for the date token embedded in archive filenames."""
        if self is Granularity.MONTHLY:
            return "%Y-%m"
        return "%Y-%m-%d"


@dataclass(frozen=True)
class Candle:
    """One fixed-interval OHLCV observation, decoded from a 12-field kline array."""

    open_time: int  # Unix milliseconds
    open: str
    high: str
    low: str
    close: str
    volume: str
    close_time: int  # Unix milliseconds
    quote_asset_volume: str
    number_of_trades: int
    taker_buy_base_asset_volume: str
    taker_buy_quote_asset_volume: str
    ignore: str

    def decimal(self, name: str) -> Decimal:
        """Return a quantity field as Decimal, e.g. candle.decimal("close")."""
        return Decimal(getattr(self, name))

    def to_row(self) -> list[str]:
        """The persisted columns, in CSV_HEADER order."""
        return [
            str(self.open_time),
            self.open,
            self.high,
            self.low,
            self.close,
            self.volume,
            str(self.close_time),
        ]


class Series:
    """All candles for one (symbol, interval), oldest first.

    The crawler walks backward in time, so each page it hands over is older
    than everything already held. prepend_page() enforces that ordering,
    which also guarantees no two candles share an open_time.
    """

    def __init__(self, symbol: str, interval: str) -> None:
        self.symbol = symbol
        self.interval = interval
        self._candles: deque[Candle] = deque()
        self.page_count = 0

    @property
    def key(self) -> str:
        return f"{self.symbol}_{self.interval}"

    @property
    def candles(self) -> list[Candle]:
        return list(self._candles)

    @property
    def oldest_open_time(self) -> int | None:
        return self._candles[0].open_time if self._candles else None

    @property
    def newest_open_time(self) -> int | None:
        return self._candles[-1].open_time if self._candles else None

    def prepend_page(self, page: Sequence[Candle]) -> None:
        """Place one chronologically ordered page in front of the series.

        Raises:
            DecodeError: If the page is not strictly increasing by open_time,
                or overlaps with candles already in the series.
        """
        if not page:
            return

        for previous, current in zip(page, page[1:]):
            if current.open_time <= previous.open_time:
                raise DecodeError(
                    f"Page for {self.key} is not strictly increasing at "
                    f"open_time {current.open_time}"
                )

        oldest = self.oldest_open_time
        if oldest is not None and page[-1].open_time >= oldest:
            raise DecodeError(
                f"Page for {self.key} overlaps the series: newest open_time "
                f"{page[-1].open_time} is not older than {oldest}"
            )

        self._candles.extendleft(reversed(page))
        self.page_count += 1

    def __len__(self) -> int:
        return len(self._candles)

    def __iter__(self) -> Iterator[Candle]:
        return iter(self._candles)


@dataclass(frozen=True)
class ArchiveReference:
    """One date-bucketed archive file: where to fetch it and what it covers."""

    symbol: str
    interval: str
    period: date  # first day of the bucket
    granularity: Granularity
    url: str

    @property
    def filename(self) -> str:
        return self.url.rsplit("/", 1)[-1]

    def save_dir(self, base_dir: Path | str) -> Path:
        return Path(base_dir) / self.symbol / self.interval

    def save_path(self, base_dir: Path | str) -> Path:
        return self.save_dir(base_dir) / self.filename


@dataclass
class TaskOutcome:
    """Result of one work item (a crawled series or a downloaded archive)."""

    key: str
    ok: bool
    error: str | None = None
    path: Path | None = None
    records: int = 0  # candles written, or bytes downloaded


@dataclass
class RunReport:
    """Outcomes of every work item in a pipeline run, in submission order."""

    outcomes: list[TaskOutcome] = field(default_factory=list)

    def add(self, outcome: TaskOutcome) -> None:
        self.outcomes.append(outcome)

    def extend(self, other: "RunReport") -> None:
        self.outcomes.extend(other.outcomes)

    @property
    def total(self) -> int:
        return len(self.outcomes)

    @property
    def succeeded(self) -> int:
        return sum(1 for o in self.outcomes if o.ok)

    @property
    def failed(self) -> int:
        return self.total - self.succeeded

    @property
    def all_ok(self) -> bool:
        return self.failed == 0

    def failures(self) -> list[TaskOutcome]:
        return [o for o in self.outcomes if not o.ok]
