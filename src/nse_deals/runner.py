"""Command line entry point printing bulk/block deal rollups."""
from __future__ import annotations

import argparse
import logging
import sys
from typing import Any, Callable, Iterable, Sequence

from .analytics import (
    aggregate_by_client,
    aggregate_by_client_stock,
    aggregate_by_date_symbol,
    aggregate_by_symbol,
)
from .config import Settings
from .formatting import format_date, format_market_cap, format_number, format_price
from .logging_utils import configure_logging
from .pipeline import DealsResult, load_deals, resolve_date_range
from .preferences import CUSTOM_DATE_FILTER, DATE_FILTERS, DEAL_TYPE_OPTIONS
from .sorting import SORT_DIRECTIONS, filter_by_substring, sort_groups
from .sources import create_sources
from .sources.utils import parse_date

LOGGER = logging.getLogger(__name__)

Column = tuple[str, Callable[[Any], str]]

VIEW_COLUMNS: dict[str, list[Column]] = {
    "deals": [
        ("TYPE", lambda d: d.deal_type or ""),
        ("DATE", lambda d: format_date(d.date)),
        ("SYMBOL", lambda d: d.symbol),
        ("CLIENT", lambda d: d.client_name),
        ("SIDE", lambda d: d.side),
        ("QUANTITY", lambda d: format_number(d.quantity)),
        ("PRICE", lambda d: format_price(d.price)),
        ("REMARKS", lambda d: d.remarks),
    ],
    "symbol": [
        ("SYMBOL", lambda g: g.symbol),
        ("BOUGHT", lambda g: format_number(g.total_bought)),
        ("SOLD", lambda g: format_number(g.total_sold)),
        ("VALUE BOUGHT", lambda g: format_number(round(g.total_value_bought))),
        ("VALUE SOLD", lambda g: format_number(round(g.total_value_sold))),
        ("NET VALUE", lambda g: format_number(round(g.net_value))),
        ("DEALS", lambda g: str(g.deal_count)),
        ("CLIENTS", lambda g: str(g.unique_clients)),
        ("MCAP", lambda g: format_market_cap(g.market_cap)),
        ("PRICE", lambda g: format_price(g.price)),
    ],
    "client": [
        ("CLIENT", lambda g: g.client_name),
        ("VALUE BOUGHT", lambda g: format_number(round(g.total_value_bought))),
        ("VALUE SOLD", lambda g: format_number(round(g.total_value_sold))),
        ("NET VALUE", lambda g: format_number(round(g.net_value))),
        ("STOCKS", lambda g: str(g.unique_stocks)),
        ("DEALS", lambda g: str(g.total_deals)),
    ],
    "client-stock": [
        ("CLIENT", lambda g: g.client_name),
        ("SYMBOL", lambda g: g.symbol),
        ("NET SHARES", lambda g: format_number(g.total_shares)),
        ("NET VALUE", lambda g: format_number(round(g.net_value))),
        ("WAVG PRICE", lambda g: format_price(g.weighted_avg_price)),
        ("PERIOD", lambda g: f"{format_date(g.first_deal_date)} to {format_date(g.last_deal_date)}"),
        ("DEALS", lambda g: str(g.deal_count)),
    ],
    "date": [
        ("DATE", lambda g: format_date(g.date)),
        ("BOUGHT", lambda g: format_number(g.total_bought)),
        ("SOLD", lambda g: format_number(g.total_sold)),
        ("NET VALUE", lambda g: format_number(round(g.net_value))),
        ("DEALS", lambda g: str(g.deal_count)),
        ("CLIENTS", lambda g: str(g.unique_clients)),
    ],
}


def build_groups(result: DealsResult, view: str, symbol: str | None = None) -> list:
    """Run the rollup behind ``view`` over a loaded result (``deals`` lists them as-is)."""

    if view == "deals":
        return list(result.deals)
    if view == "symbol":
        return aggregate_by_symbol(result.deals, result.market_cap, result.price)
    if view == "client":
        return aggregate_by_client(result.deals)
    if view == "client-stock":
        return aggregate_by_client_stock(result.deals, result.market_cap, result.price)
    if view == "date":
        if not symbol:
            raise ValueError("The date view needs a symbol")
        return aggregate_by_date_symbol(result.deals, symbol)
    raise ValueError(f"Unknown view: {view}")


def render_table(groups: Sequence[Any], columns: Sequence[Column]) -> str:
    rows = [[header for header, _ in columns]]
    rows.extend([render(group) for _, render in columns] for group in groups)
    widths = [max(len(row[i]) for row in rows) for i in range(len(columns))]
    return "\n".join(
        "  ".join(cell.ljust(width) for cell, width in zip(row, widths)).rstrip() for row in rows
    )


def parse_args(args: Iterable[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--deal-type", choices=sorted(DEAL_TYPE_OPTIONS), help="Feed(s) to load")
    parser.add_argument(
        "--date-filter",
        choices=[*DATE_FILTERS, CUSTOM_DATE_FILTER],
        help="Preset window, or Custom with --from/--to",
    )
    parser.add_argument("--from", dest="from_date", type=parse_date, help="Start date (DD-MM-YYYY)")
    parser.add_argument("--to", dest="to_date", type=parse_date, help="End date (DD-MM-YYYY)")
    parser.add_argument(
        "--show-intraday",
        action="store_true",
        help="Keep same-day round trips instead of hiding them",
    )
    parser.add_argument("--view", choices=sorted(VIEW_COLUMNS), default="symbol")
    parser.add_argument("--symbol", help="Symbol for the date view")
    parser.add_argument("--sort", help="Field to sort by, e.g. total_value_bought")
    parser.add_argument("--direction", choices=SORT_DIRECTIONS, default="desc")
    parser.add_argument("--client", help="Client name substring filter")
    parser.add_argument("--stock", help="Symbol or company name substring filter")
    parser.add_argument("--limit", type=int, default=25, help="Rows to print (0 for all)")
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging output",
    )
    return parser.parse_args(args=args)


def main(argv: Iterable[str] | None = None) -> int:
    options = parse_args(argv)
    configure_logging(logging.DEBUG if options.verbose else None)
    settings = Settings.load()

    date_filter = options.date_filter
    if date_filter is None and (options.from_date or options.to_date):
        date_filter = CUSTOM_DATE_FILTER
    preferences = settings.preferences.merged(
        deal_type=options.deal_type,
        date_filter=date_filter,
        hide_intraday=False if options.show_intraday else None,
        from_date=options.from_date,
        to_date=options.to_date,
    )

    try:
        date_range = resolve_date_range(
            preferences.date_filter, preferences.from_date, preferences.to_date
        )
        source, sheet = create_sources(settings)
        result = load_deals(
            source,
            preferences.deal_type,
            date_range.from_date,
            date_range.to_date,
            hide_intraday=preferences.hide_intraday,
            rule=settings.intraday_rule,
            sheet=sheet,
        )
        groups = build_groups(result, options.view, options.symbol)
        if options.sort:
            groups = sort_groups(groups, options.sort, options.direction)
    except ValueError as exc:
        LOGGER.error("%s", exc)
        return 2

    groups = filter_by_substring(groups, options.client, options.stock)
    if options.limit:
        groups = groups[: options.limit]

    stats = result.intraday_stats
    print(
        f"{date_range.from_date:%d-%m-%Y} to {date_range.to_date:%d-%m-%Y}: "
        f"{stats.total} deals, {stats.intraday} intraday, {len(result.deals)} shown"
    )
    print(render_table(groups, VIEW_COLUMNS[options.view]))
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
