"""Tests for positional kline decoding."""

import pytest

from harvester.crawl.decoder import decode_kline, decode_page
from harvester.exceptions import DecodeError


class TestDecodeKline:
    """Tests for decoding a single 12-field kline array."""

    def test_decodes_all_fields(self, raw_kline) -> None:
        candle = decode_kline(raw_kline(1_600_000_000_000))
        assert candle.open_time == 1_600_000_000_000
        assert candle.open == "42000.01000000"
        assert candle.high == "42100.00000000"
        assert candle.low == "41900.50000000"
        assert candle.close == "42050.10000000"
        assert candle.volume == "12.34500000"
        assert candle.close_time == 1_600_000_059_999
        assert candle.quote_asset_volume == "518765.43210000"
        assert candle.number_of_trades == 321
        assert candle.taker_buy_base_asset_volume == "6.10000000"
        assert candle.taker_buy_quote_asset_volume == "256432.10000000"
        assert candle.ignore == "0"

    def test_quantities_kept_verbatim(self, raw_kline) -> None:
        raw = raw_kline(1_600_000_000_000)
        raw[5] = "0.00000000"
        candle = decode_kline(raw)
        # Decimal("0.00000000") would render as "0E-8"; the string must survive.
        assert candle.volume == "0.00000000"

    def test_integral_float_timestamp_accepted(self, raw_kline) -> None:
        raw = raw_kline(1_600_000_000_000)
        raw[0] = 1_600_000_000_000.0
        assert decode_kline(raw).open_time == 1_600_000_000_000

    def test_tuple_accepted(self, raw_kline) -> None:
        assert decode_kline(tuple(raw_kline(1_600_000_000_000))).number_of_trades == 321

    def test_too_few_fields(self, raw_kline) -> None:
        with pytest.raises(DecodeError):
            decode_kline(raw_kline(1_600_000_000_000)[:11])

    def test_not_an_array(self) -> None:
        with pytest.raises(DecodeError):
            decode_kline({"openTime": 1})

    def test_string_timestamp_rejected(self, raw_kline) -> None:
        raw = raw_kline(1_600_000_000_000)
        raw[0] = "1600000000000"
        with pytest.raises(DecodeError, match="open_time"):
            decode_kline(raw)

    def test_bool_trade_count_rejected(self, raw_kline) -> None:
        raw = raw_kline(1_600_000_000_000)
        raw[8] = True
        with pytest.raises(DecodeError, match="number_of_trades"):
            decode_kline(raw)

    def test_negative_trade_count_rejected(self, raw_kline) -> None:
        raw = raw_kline(1_600_000_000_000)
        raw[8] = -1
        with pytest.raises(DecodeError):
            decode_kline(raw)

    def test_float_price_rejected(self, raw_kline) -> None:
        raw = raw_kline(1_600_000_000_000)
        raw[1] = 42000.01
        with pytest.raises(DecodeError, match="open"):
            decode_kline(raw)

    def test_non_numeric_price_rejected(self, raw_kline) -> None:
        raw = raw_kline(1_600_000_000_000)
        raw[4] = "n/a"
        with pytest.raises(DecodeError, match="close"):
            decode_kline(raw)

    @pytest.mark.parametrize("value", ["NaN", "Infinity", "-inf", "1_000", "1e5", " 1.0", ""])
    def test_non_fixed_point_price_rejected(self, raw_kline, value) -> None:
        raw = raw_kline(1_600_000_000_000)
        raw[2] = value
        with pytest.raises(DecodeError, match="high"):
            decode_kline(raw)

    def test_close_time_must_follow_open_time(self, raw_kline) -> None:
        raw = raw_kline(1_600_000_000_000)
        raw[6] = raw[0]
        with pytest.raises(DecodeError, match="close_time"):
            decode_kline(raw)


class TestDecodePage:
    """Tests for decoding a whole page."""

    def test_preserves_order(self, kline_history) -> None:
        candles = decode_page(kline_history(3))
        assert [c.open_time for c in candles] == [
            1_600_000_000_000,
            1_600_000_060_000,
            1_600_000_120_000,
        ]

    def test_empty_page(self) -> None:
        assert decode_page([]) == []

    def test_one_bad_element_fails_page(self, kline_history) -> None:
        page = kline_history(3)
        page[1][2] = None
        with pytest.raises(DecodeError):
            decode_page(page)
