"""Positional decoding of raw kline arrays into Candle records.

Upstream kline layout (12 fields):
    [open_time, open, high, low, close, volume, close_time,
     quote_asset_volume, number_of_trades, taker_buy_base_asset_volume,
     taker_buy_quote_asset_volume, ignore]

Any type mismatch is fatal: a page that cannot be decoded aborts the crawl.
"""

import re
from typing import Any

from harvester.exceptions import DecodeError
from harvester.models import Candle

KLINE_FIELD_COUNT = 12

# Plain fixed-point digits only: no exponent, NaN/Infinity or underscores.
_QUANTITY = re.compile(r"-?\d+(?:\.\d+)?")


def _as_int(value: Any, name: str) -> int:
    # bool is an int subclass; a JSON true/false here is a malformed kline.
    if isinstance(value, bool):
        raise DecodeError(f"{name}: expected integer, got bool")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    raise DecodeError(f"{name}: expected integer, got {value!r}")


def _as_quantity(value: Any, name: str) -> str:
    if not isinstance(value, str):
        raise DecodeError(f"{name}: expected decimal string, got {value!r}")
    if not _QUANTITY.fullmatch(value):
        raise DecodeError(f"{name}: not a decimal string: {value!r}")
    return value


def decode_kline(raw: Any) -> Candle:
    """Decode one 12-element kline array.

    Raises:
        DecodeError: If the element is not a 12-element array or any field
            has the wrong type.
    """
    if not isinstance(raw, (list, tuple)) or len(raw) != KLINE_FIELD_COUNT:
        raise DecodeError(f"Expected a {KLINE_FIELD_COUNT}-element kline array, got {raw!r}")

    open_time = _as_int(raw[0], "open_time")
    close_time = _as_int(raw[6], "close_time")
    if close_time <= open_time:
        raise DecodeError(f"close_time {close_time} is not after open_time {open_time}")

    number_of_trades = _as_int(raw[8], "number_of_trades")
    if number_of_trades < 0:
        raise DecodeError(f"number_of_trades is negative: {number_of_trades}")

    ignore = raw[11]
    if not isinstance(ignore, str):
        raise DecodeError(f"ignore: expected string, got {ignore!r}")

    return Candle(
        open_time=open_time,
        open=_as_quantity(raw[1], "open"),
        high=_as_quantity(raw[2], "high"),
        low=_as_quantity(raw[3], "low"),
        close=_as_quantity(raw[4], "close"),
        volume=_as_quantity(raw[5], "volume"),
        close_time=close_time,
        quote_asset_volume=_as_quantity(raw[7], "quote_asset_volume"),
        number_of_trades=number_of_trades,
        taker_buy_base_asset_volume=_as_quantity(raw[9], "taker_buy_base_asset_volume"),
        taker_buy_quote_asset_volume=_as_quantity(raw[10], "taker_buy_quote_asset_volume"),
        ignore=ignore,
    )


def decode_page(raw_page: list) -> list[Candle]:
    """Decode every element of one page, preserving upstream order."""
    return [decode_kline(raw) for raw in raw_page]
