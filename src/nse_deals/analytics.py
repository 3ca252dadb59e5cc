"""Roll deduplicated deals up by symbol, client, client and symbol, or date.

Every rollup is a pure function: it builds fresh output objects and never
mutates the deals it is given. Averages over an empty side are 0.
"""
from __future__ import annotations

import logging
from typing import Iterable, Mapping, Optional, Sequence

from .models import (
    ClientGroup,
    ClientStockGroup,
    ClientStockSummary,
    DateGroup,
    DealRecord,
    SymbolClientGroup,
    SymbolGroup,
)

LOGGER = logging.getLogger(__name__)


def _ratio(numerator: float, denominator: float) -> float:
    return numerator / denominator if denominator else 0.0


def _by_quantity(deals: Iterable[DealRecord]) -> list[DealRecord]:
    return sorted(deals, key=lambda deal: deal.quantity, reverse=True)


def _newest_first(deals: Iterable[DealRecord]) -> list[DealRecord]:
    return sorted(deals, key=lambda deal: deal.date, reverse=True)


def _group(deals: Iterable[DealRecord], key) -> dict:
    groups: dict = {}
    for deal in deals:
        groups.setdefault(key(deal), []).append(deal)
    return groups


class _SideTotals:
    """Bought and sold quantities and values for one group of deals."""

    __slots__ = ("bought", "sold", "value_bought", "value_sold")

    def __init__(self, deals: Iterable[DealRecord] = ()) -> None:
        self.bought = 0
        self.sold = 0
        self.value_bought = 0.0
        self.value_sold = 0.0
        for deal in deals:
            self.add(deal)

    def add(self, deal: DealRecord) -> None:
        if deal.is_buy:
            self.bought += deal.quantity
            self.value_bought += deal.value
        else:
            self.sold += deal.quantity
            self.value_sold += deal.value

    def merge(self, other: "_SideTotals") -> None:
        self.bought += other.bought
        self.sold += other.sold
        self.value_bought += other.value_bought
        self.value_sold += other.value_sold

    @property
    def net_position(self) -> int:
        return self.bought - self.sold

    @property
    def net_value(self) -> float:
        return self.value_bought - self.value_sold

    @property
    def avg_buy_price(self) -> float:
        return _ratio(self.value_bought, self.bought)

    @property
    def avg_sell_price(self) -> float:
        return _ratio(self.value_sold, self.sold)


def aggregate_by_symbol(
    deals: Sequence[DealRecord],
    market_cap: Optional[Mapping[str, float]] = None,
    price: Optional[Mapping[str, float]] = None,
    ask_price: Optional[Mapping[str, float]] = None,
) -> list[SymbolGroup]:
    """Aggregate deals per symbol, attaching market cap and price lookups.

    Each group's deals are ordered largest quantity first. The group list
    keeps first-seen symbol order; callers sort it with :func:`sort_groups`.
    """

    market_cap = market_cap or {}
    price = price or {}
    ask_price = ask_price or {}

    groups = []
    for symbol, symbol_deals in _group(deals, lambda deal: deal.symbol).items():
        totals = _SideTotals(symbol_deals)
        prices = [deal.price for deal in symbol_deals]
        groups.append(
            SymbolGroup(
                symbol=symbol,
                company_name=symbol_deals[0].company_name,
                total_bought=totals.bought,
                total_sold=totals.sold,
                total_value_bought=totals.value_bought,
                total_value_sold=totals.value_sold,
                net_position=totals.net_position,
                net_value=totals.net_value,
                deal_count=len(symbol_deals),
                unique_clients=len({deal.client_name for deal in symbol_deals}),
                avg_deal_size=_ratio(totals.bought + totals.sold, len(symbol_deals)),
                avg_buy_price=totals.avg_buy_price,
                avg_sell_price=totals.avg_sell_price,
                min_price=min(prices),
                max_price=max(prices),
                market_cap=market_cap.get(symbol, 0),
                price=price.get(symbol, 0),
                ask_price=ask_price.get(symbol, 0),
                deals=_by_quantity(symbol_deals),
            )
        )
    LOGGER.debug("Aggregated %d deals into %d symbols", len(deals), len(groups))
    return groups


def aggregate_by_client(deals: Sequence[DealRecord]) -> list[ClientGroup]:
    """Aggregate deals per client with a per-symbol breakdown.

    Each client's symbols are ordered by absolute net value and each
    symbol's deals newest first. Clients are ordered by value bought.
    """

    clients = []
    for client_name, client_deals in _group(deals, lambda deal: deal.client_name).items():
        client_totals = _SideTotals()
        stock_data = []
        for symbol, symbol_deals in _group(client_deals, lambda deal: deal.symbol).items():
            totals = _SideTotals(symbol_deals)
            client_totals.merge(totals)
            stock_data.append(
                ClientStockSummary(
                    symbol=symbol,
                    company_name=symbol_deals[0].company_name,
                    total_shares=totals.net_position,
                    total_bought=totals.bought,
                    total_sold=totals.sold,
                    total_value_bought=totals.value_bought,
                    total_value_sold=totals.value_sold,
                    net_value=totals.net_value,
                    deal_count=len(symbol_deals),
                    avg_buy_price=totals.avg_buy_price,
                    avg_sell_price=totals.avg_sell_price,
                    deals=_newest_first(symbol_deals),
                )
            )
        stock_data.sort(key=lambda stock: abs(stock.net_value), reverse=True)
        clients.append(
            ClientGroup(
                client_name=client_name,
                total_bought=client_totals.bought,
                total_sold=client_totals.sold,
                total_value_bought=client_totals.value_bought,
                total_value_sold=client_totals.value_sold,
                net_position=client_totals.net_position,
                net_value=client_totals.net_value,
                unique_stocks=len(stock_data),
                total_deals=len(client_deals),
                avg_buy_price=client_totals.avg_buy_price,
                avg_sell_price=client_totals.avg_sell_price,
                stock_data=stock_data,
            )
        )
    clients.sort(key=lambda client: client.total_value_bought, reverse=True)
    LOGGER.debug("Aggregated %d deals into %d clients", len(deals), len(clients))
    return clients


def aggregate_by_client_stock(
    deals: Sequence[DealRecord],
    market_cap: Optional[Mapping[str, float]] = None,
    price: Optional[Mapping[str, float]] = None,
) -> list[ClientStockGroup]:
    """Aggregate deals per (client, symbol) pair, largest absolute net value first."""

    market_cap = market_cap or {}
    price = price or {}

    groups = []
    pairs = _group(deals, lambda deal: (deal.client_name, deal.symbol))
    for (client_name, symbol), pair_deals in pairs.items():
        totals = _SideTotals(pair_deals)
        quantity = sum(deal.quantity for deal in pair_deals)
        oldest_first = sorted(pair_deals, key=lambda deal: deal.date)
        groups.append(
            ClientStockGroup(
                client_name=client_name,
                symbol=symbol,
                company_name=pair_deals[0].company_name,
                total_shares=totals.net_position,
                total_bought=totals.bought,
                total_sold=totals.sold,
                total_value_bought=totals.value_bought,
                total_value_sold=totals.value_sold,
                net_position=totals.net_position,
                net_value=totals.net_value,
                deal_count=len(pair_deals),
                avg_buy_price=totals.avg_buy_price,
                avg_sell_price=totals.avg_sell_price,
                weighted_avg_price=_ratio(totals.value_bought + totals.value_sold, quantity),
                first_deal_date=oldest_first[0].date,
                last_deal_date=oldest_first[-1].date,
                market_cap=market_cap.get(symbol, 0),
                price=price.get(symbol, 0),
                deals=_newest_first(pair_deals),
            )
        )
    groups.sort(key=lambda group: abs(group.net_value), reverse=True)
    LOGGER.debug("Aggregated %d deals into %d client/symbol pairs", len(deals), len(groups))
    return groups


def aggregate_by_date_symbol(deals: Sequence[DealRecord], symbol: str) -> list[DateGroup]:
    """Aggregate one symbol's deals per trade date, most recent date first."""

    symbol_deals = [deal for deal in deals if deal.symbol == symbol]
    groups = []
    for trade_date, day_deals in _group(symbol_deals, lambda deal: deal.date).items():
        totals = _SideTotals(day_deals)
        groups.append(
            DateGroup(
                date=trade_date,
                symbol=symbol,
                company_name=day_deals[0].company_name,
                total_bought=totals.bought,
                total_sold=totals.sold,
                total_value_bought=totals.value_bought,
                total_value_sold=totals.value_sold,
                net_position=totals.net_position,
                net_value=totals.net_value,
                deal_count=len(day_deals),
                unique_clients=len({deal.client_name for deal in day_deals}),
                avg_buy_price=totals.avg_buy_price,
                avg_sell_price=totals.avg_sell_price,
                deals=_by_quantity(day_deals),
            )
        )
    groups.sort(key=lambda group: group.date, reverse=True)
    return groups


def aggregate_clients_for_symbol(deals: Sequence[DealRecord], symbol: str) -> list[SymbolClientGroup]:
    """Aggregate one symbol's deals per client, largest absolute traded value first."""

    symbol_deals = [deal for deal in deals if deal.symbol == symbol]
    groups = []
    for client_name, client_deals in _group(symbol_deals, lambda deal: deal.client_name).items():
        totals = _SideTotals(client_deals)
        traded_value = totals.value_bought + totals.value_sold
        groups.append(
            SymbolClientGroup(
                client_name=client_name,
                symbol=symbol,
                company_name=client_deals[0].company_name,
                net_shares=totals.net_position,
                total_value=traded_value,
                deal_count=len(client_deals),
                avg_price=_ratio(traded_value, totals.bought + totals.sold),
                deals=_newest_first(client_deals),
            )
        )
    groups.sort(key=lambda group: abs(group.total_value), reverse=True)
    return groups


__all__ = [
    "aggregate_by_symbol",
    "aggregate_by_client",
    "aggregate_by_client_stock",
    "aggregate_by_date_symbol",
    "aggregate_clients_for_symbol",
]
