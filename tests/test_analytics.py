"""Tests for the four rollups and the per-symbol client breakdown."""

import math
from datetime import date

import pytest

from conftest import make_deal
from nse_deals.analytics import (
    aggregate_by_client,
    aggregate_by_client_stock,
    aggregate_by_date_symbol,
    aggregate_by_symbol,
    aggregate_clients_for_symbol,
)
from nse_deals.deduplication import deduplicate

D1 = date(2024, 1, 1)
D2 = date(2024, 1, 2)
D3 = date(2024, 1, 3)


@pytest.fixture
def deals() -> list:
    return [
        make_deal(symbol="ABC", client="X", side="BUY", quantity=100, price=50, day=D1),
        make_deal(symbol="ABC", client="X", side="SELL", quantity=40, price=55, day=D3),
        make_deal(symbol="ABC", client="Y", side="BUY", quantity=300, price=48, day=D2),
        make_deal(symbol="XYZ", client="X", side="SELL", quantity=1000, price=10, day=D2),
        make_deal(symbol="XYZ", client="Z", side="BUY", quantity=500, price=12, day=D2),
    ]


class TestAggregateBySymbol:
    """Tests for aggregate_by_symbol."""

    def test_totals(self, deals: list) -> None:
        """Test bought/sold quantities, values and nets for one symbol."""
        groups = {group.symbol: group for group in aggregate_by_symbol(deals)}
        abc = groups["ABC"]

        assert abc.total_bought == 400
        assert abc.total_sold == 40
        assert abc.total_value_bought == 100 * 50 + 300 * 48
        assert abc.total_value_sold == 40 * 55
        assert abc.net_position == 360
        assert abc.net_value == abc.total_value_bought - abc.total_value_sold
        assert abc.deal_count == 3
        assert abc.unique_clients == 2
        assert abc.min_price == 48
        assert abc.max_price == 55
        assert abc.avg_deal_size == pytest.approx(440 / 3)
        assert abc.avg_buy_price == pytest.approx((5000 + 14400) / 400)
        assert abc.avg_sell_price == pytest.approx(55)

    def test_deals_ordered_by_quantity(self, deals: list) -> None:
        """Test each group's deals are largest quantity first."""
        groups = {group.symbol: group for group in aggregate_by_symbol(deals)}
        assert [deal.quantity for deal in groups["ABC"].deals] == [300, 100, 40]

    def test_side_data_lookups(self, deals: list) -> None:
        """Test market cap, price and ask price lookups default to 0."""
        groups = aggregate_by_symbol(
            deals, market_cap={"ABC": 1500.0}, price={"XYZ": 11.5}, ask_price={"ABC": 51.0}
        )
        by_symbol = {group.symbol: group for group in groups}
        assert by_symbol["ABC"].market_cap == 1500.0
        assert by_symbol["ABC"].price == 0
        assert by_symbol["ABC"].ask_price == 51.0
        assert by_symbol["XYZ"].market_cap == 0
        assert by_symbol["XYZ"].price == 11.5

    def test_sell_only_group_has_zero_buy_average(self) -> None:
        """Test the zero guard on an empty buy side."""
        (group,) = aggregate_by_symbol([make_deal(side="SELL", quantity=10, price=3)])
        assert group.avg_buy_price == 0
        assert not math.isnan(group.avg_buy_price)
        assert group.avg_sell_price == 3

    def test_group_order_is_first_seen(self, deals: list) -> None:
        """Test no ordering is imposed on the group list."""
        assert [group.symbol for group in aggregate_by_symbol(deals)] == ["ABC", "XYZ"]


class TestAggregateByClient:
    """Tests for aggregate_by_client."""

    def test_client_totals_and_breakdown(self, deals: list) -> None:
        """Test per-client totals and per-symbol summaries."""
        clients = {client.client_name: client for client in aggregate_by_client(deals)}
        x = clients["X"]

        assert x.total_bought == 100
        assert x.total_sold == 1040
        assert x.total_value_bought == 5000
        assert x.total_value_sold == 40 * 55 + 10_000
        assert x.net_value == x.total_value_bought - x.total_value_sold
        assert x.unique_stocks == 2
        assert x.total_deals == 3
        # XYZ has the larger absolute net value
        assert [stock.symbol for stock in x.stock_data] == ["XYZ", "ABC"]
        abc = x.stock_data[1]
        assert abc.total_shares == 60
        assert abc.avg_buy_price == 50
        assert abc.avg_sell_price == 55
        assert abc.deal_count == 2

    def test_stock_deals_newest_first(self, deals: list) -> None:
        """Test per-symbol deals are ordered by date, not quantity."""
        clients = {client.client_name: client for client in aggregate_by_client(deals)}
        abc = next(stock for stock in clients["X"].stock_data if stock.symbol == "ABC")
        assert [deal.date for deal in abc.deals] == [D3, D1]

    def test_clients_ordered_by_value_bought(self, deals: list) -> None:
        """Test the client list is ordered by value bought, descending."""
        names = [client.client_name for client in aggregate_by_client(deals)]
        assert names == ["Y", "Z", "X"]


class TestAggregateByClientStock:
    """Tests for aggregate_by_client_stock."""

    def test_weighted_average_spans_both_sides(self, deals: list) -> None:
        """Test the weighted average uses all deals regardless of side."""
        groups = aggregate_by_client_stock(deals)
        pair = next(g for g in groups if (g.client_name, g.symbol) == ("X", "ABC"))

        assert pair.weighted_avg_price == pytest.approx((5000 + 2200) / 140)
        assert pair.avg_buy_price == 50
        assert pair.avg_sell_price == 55
        assert pair.first_deal_date == D1
        assert pair.last_deal_date == D3
        assert [deal.date for deal in pair.deals] == [D3, D1]

    def test_client_names_with_separators(self) -> None:
        """Test that pipes and commas in client names do not break the grouping."""
        deals = [
            make_deal(client="A|B, LLP", symbol="ABC"),
            make_deal(client="A", symbol="B, LLP|ABC"),
        ]
        groups = aggregate_by_client_stock(deals)
        assert {(g.client_name, g.symbol) for g in groups} == {
            ("A|B, LLP", "ABC"),
            ("A", "B, LLP|ABC"),
        }

    def test_ordered_by_absolute_net_value(self, deals: list) -> None:
        """Test output order by |net value| descending."""
        groups = aggregate_by_client_stock(deals, market_cap={"XYZ": 900.0}, price={"ABC": 52.0})
        assert [abs(g.net_value) for g in groups] == sorted(
            (abs(g.net_value) for g in groups), reverse=True
        )
        assert groups[0].client_name == "Y"
        by_pair = {(g.client_name, g.symbol): g for g in groups}
        assert by_pair[("X", "XYZ")].market_cap == 900.0
        assert by_pair[("X", "ABC")].price == 52.0
        assert by_pair[("Y", "ABC")].market_cap == 0


class TestAggregateByDateSymbol:
    """Tests for aggregate_by_date_symbol."""

    def test_groups_one_symbol_by_date(self, deals: list) -> None:
        """Test pre-filtering, per-date totals and newest date first."""
        groups = aggregate_by_date_symbol(deals, "ABC")

        assert [group.date for group in groups] == [D3, D2, D1]
        assert all(group.symbol == "ABC" for group in groups)
        assert groups[1].total_bought == 300
        assert groups[1].unique_clients == 1
        assert groups[0].net_position == -40

    def test_deals_ordered_by_quantity(self) -> None:
        """Test each day's deals are largest quantity first."""
        deals = [
            make_deal(quantity=10, client="A"),
            make_deal(quantity=30, client="B"),
            make_deal(quantity=20, client="C"),
        ]
        (group,) = aggregate_by_date_symbol(deals, "ABC")
        assert [deal.quantity for deal in group.deals] == [30, 20, 10]
        assert group.unique_clients == 3

    def test_unknown_symbol(self, deals: list) -> None:
        """Test a symbol with no deals yields nothing."""
        assert aggregate_by_date_symbol(deals, "NOPE") == []


def test_clients_for_symbol(deals: list) -> None:
    """Test the per-symbol client breakdown."""
    groups = aggregate_clients_for_symbol(deals, "ABC")

    assert [group.client_name for group in groups] == ["Y", "X"]
    x = groups[1]
    assert x.net_shares == 60
    assert x.total_value == 5000 + 2200
    assert x.avg_price == pytest.approx(7200 / 140)


@pytest.mark.parametrize(
    "rollup",
    [
        aggregate_by_symbol,
        aggregate_by_client,
        aggregate_by_client_stock,
        lambda deals: aggregate_by_date_symbol(deals, "ABC"),
    ],
)
def test_empty_input(rollup) -> None:
    """Test every rollup returns an empty list for empty input."""
    assert rollup([]) == []


def test_every_deal_counted_once(deals: list) -> None:
    """Test deal counts add up to the input size in every rollup."""
    assert sum(g.deal_count for g in aggregate_by_symbol(deals)) == len(deals)
    assert sum(g.total_deals for g in aggregate_by_client(deals)) == len(deals)
    assert sum(g.deal_count for g in aggregate_by_client_stock(deals)) == len(deals)
    abc_deals = [deal for deal in deals if deal.symbol == "ABC"]
    assert sum(g.deal_count for g in aggregate_by_date_symbol(deals, "ABC")) == len(abc_deals)


def test_net_value_identity(deals: list) -> None:
    """Test net value equals value bought minus value sold everywhere."""
    groups = [
        *aggregate_by_symbol(deals),
        *aggregate_by_client(deals),
        *aggregate_by_client_stock(deals),
        *aggregate_by_date_symbol(deals, "XYZ"),
    ]
    for group in groups:
        assert group.net_value == group.total_value_bought - group.total_value_sold


def test_inputs_not_reordered(deals: list) -> None:
    """Test that aggregation leaves the caller's list untouched."""
    snapshot = list(deals)
    aggregate_by_symbol(deals)
    aggregate_by_client(deals)
    aggregate_by_client_stock(deals)
    assert deals == snapshot


def test_end_to_end_duplicate_feeds() -> None:
    """Test the same trade in both feeds aggregates once."""
    bulk = [make_deal(symbol="ABC", client="X", side="BUY", quantity=100, price=50)]
    block = [make_deal(symbol="ABC", client="X", side="BUY", quantity=100, price=50)]
    result = deduplicate(bulk, block)

    assert len(result.deals) == 1
    assert result.deals[0].deal_type == "BOTH"
    (group,) = aggregate_by_symbol(result.deals)
    assert group.symbol == "ABC"
    assert group.total_bought == 100
    assert group.total_value_bought == 5000
    assert group.deal_count == 1
