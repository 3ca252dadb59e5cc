"""Tests for the intraday classifier."""

from datetime import date

import pytest

from conftest import make_deal
from nse_deals.intraday import IntradayRule, filter_intraday, get_stats, is_intraday


class TestIsIntraday:
    """Tests for is_intraday."""

    def test_offsetting_buy_and_sell(self) -> None:
        """Test equal buy and sell on the same day is intraday."""
        buy = make_deal(side="BUY", quantity=1000)
        sell = make_deal(side="SELL", quantity=1000)
        assert is_intraday(buy, [buy, sell])
        assert is_intraday(sell, [buy, sell])

    def test_one_sided_buy(self) -> None:
        """Test a lone buy of 1000 exceeds the 100 share buffer."""
        buy = make_deal(side="BUY", quantity=1000)
        assert not is_intraday(buy, [buy])

    def test_small_lone_trade_within_floor(self) -> None:
        """Test that a trade below the share floor counts as flat."""
        buy = make_deal(side="BUY", quantity=80)
        assert is_intraday(buy, [buy])

    def test_near_offset_within_floor(self) -> None:
        """Test buy 500 / sell 480: diff 20 is within max(100, 49)."""
        buy = make_deal(side="BUY", quantity=500)
        sell = make_deal(side="SELL", quantity=480)
        assert is_intraday(buy, [buy, sell])

    def test_ratio_buffer_used_for_large_volume(self) -> None:
        """Test 5% of two-sided volume once it exceeds the floor."""
        buy = make_deal(side="BUY", quantity=100_000)
        sell_inside = make_deal(side="SELL", quantity=91_000)  # diff 9000 <= 9550
        sell_outside = make_deal(side="SELL", quantity=90_000)  # diff 10000 > 9500
        assert is_intraday(buy, [buy, sell_inside])
        assert not is_intraday(buy, [buy, sell_outside])

    def test_other_day_client_or_symbol_ignored(self) -> None:
        """Test that only same client, symbol and date are netted."""
        buy = make_deal(side="BUY", quantity=1000)
        universe = [
            buy,
            make_deal(side="SELL", quantity=1000, day=date(2024, 1, 2)),
            make_deal(side="SELL", quantity=1000, client="Y"),
            make_deal(side="SELL", quantity=1000, symbol="XYZ"),
        ]
        assert not is_intraday(buy, universe)

    @pytest.mark.parametrize(
        ("sold", "expected"),
        [(900, True), (899, False)],
    )
    def test_buffer_boundary(self, sold: int, expected: bool) -> None:
        """Test the inclusive boundary with a custom rule."""
        rule = IntradayRule(min_buffer=100, buffer_ratio=0.0)
        buy = make_deal(side="BUY", quantity=1000)
        sell = make_deal(side="SELL", quantity=sold)
        assert is_intraday(buy, [buy, sell], rule) is expected


class TestFilterIntraday:
    """Tests for filter_intraday and get_stats."""

    @pytest.fixture
    def deals(self) -> list:
        return [
            make_deal(client="X", symbol="Y", side="BUY", quantity=500),
            make_deal(client="X", symbol="Y", side="SELL", quantity=480),
            make_deal(client="Z", symbol="Y", side="BUY", quantity=5000),
            make_deal(client="X", symbol="Q", side="SELL", quantity=2000),
        ]

    def test_show_keeps_everything(self, deals: list) -> None:
        """Test that hide=False returns every deal."""
        assert filter_intraday(deals, False) == deals

    def test_hide_removes_round_trip(self, deals: list) -> None:
        """Test that the offsetting pair is removed and the rest kept."""
        kept = filter_intraday(deals, True)
        assert kept == deals[2:]

    def test_stats_match_filter(self, deals: list) -> None:
        """Test that stats count against the same universe as the filter."""
        stats = get_stats(deals)
        assert stats.total == 4
        assert stats.intraday == 2
        assert stats.filtered == len(filter_intraday(deals, True))

    def test_judged_against_full_universe(self) -> None:
        """Test that removing one leg does not change the verdict on the other."""
        buys = [make_deal(side="BUY", quantity=500), make_deal(side="BUY", quantity=500, price=51)]
        sell = make_deal(side="SELL", quantity=1000)
        assert filter_intraday(buys + [sell], True) == []

    def test_empty(self) -> None:
        """Test empty input."""
        assert filter_intraday([], True) == []
        stats = get_stats([])
        assert (stats.total, stats.intraday, stats.filtered) == (0, 0, 0)
