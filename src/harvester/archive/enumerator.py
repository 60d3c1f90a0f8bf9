"""Date-range enumeration of archive URLs on the public data mirror.

Archive layout:
    <base>/<daily|monthly>/klines/<SYMBOL>/<INTERVAL>/<SYMBOL>-<INTERVAL>-<token>.zip
where token is YYYY-MM-DD (daily) or YYYY-MM (monthly).

Pure functions: no network or filesystem access.
"""

from datetime import date, datetime, timedelta

from harvester.models import ArchiveReference, Granularity


def _as_date(value: date) -> date:
    # datetime is a date subclass; drop the time part so comparisons are by day.
    if isinstance(value, datetime):
        return value.date()
    return value


def _next_month(current: date) -> date:
    if current.month == 12:
        return current.replace(year=current.year + 1, month=1)
    return current.replace(month=current.month + 1)


def _periods(start: date, end: date, granularity: Granularity) -> list[date]:
    periods: list[date] = []
    if granularity is Granularity.MONTHLY:
        current = start.replace(day=1)
        last = end.replace(day=1)
        while current <= last:
            periods.append(current)
            current = _next_month(current)
    else:
        current = start
        while current <= end:
            periods.append(current)
            current += timedelta(days=1)
    return periods


def archive_url(
    base_url: str,
    symbol: str,
    interval: str,
    period: date,
    granularity: Granularity,
) -> str:
    """Build the URL of one archive file."""
    token = period.strftime(granularity.token_format)
    return (
        f"{base_url.rstrip('/')}/{granularity.value}/klines/"
        f"{symbol}/{interval}/{symbol}-{interval}-{token}.zip"
    )


def enumerate_archive_references(
    symbol: str,
    interval: str,
    start: date,
    end: date,
    granularity: Granularity | str,
    base_url: str,
) -> list[ArchiveReference]:
    """List the archives covering [start, end] inclusive, oldest first.

    Daily mode yields one reference per calendar day. Monthly mode yields
    one per calendar month from month(start) to month(end); the day of
    month is ignored. Returns an empty list when start is after end.
    """
    granularity = Granularity(granularity)
    start, end = _as_date(start), _as_date(end)
    # Checked before month normalisation, which would otherwise turn a
    # reversed range inside one month into a single archive.
    if start > end:
        return []

    return [
        ArchiveReference(
            symbol=symbol,
            interval=interval,
            period=period,
            granularity=granularity,
            url=archive_url(base_url, symbol, interval, period, granularity),
        )
        for period in _periods(start, end, granularity)
    ]


def enumerate_archive_urls(
    symbol: str,
    interval: str,
    start: date,
    end: date,
    granularity: Granularity | str,
    base_url: str,
) -> list[str]:
    """Same as enumerate_archive_references, returning only the URLs."""
    return [
        ref.url
        for ref in enumerate_archive_references(
            symbol, interval, start, end, granularity, base_url
        )
    ]
