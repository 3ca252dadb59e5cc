"""Fetch, deduplicate and filter deals for one dashboard request."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Optional

import requests

from .deduplication import deduplicate, tag_deal_type
from .intraday import DEFAULT_RULE, IntradayRule, filter_intraday, get_stats
from .models import DealRecord, DealType, DedupStats, IntradayStats
from .preferences import CUSTOM_DATE_FILTER, DATE_FILTERS, DEAL_TYPE_OPTIONS
from .sources.base import BLOCK_DEALS, BULK_DEALS, DealSource, FeedResponse
from .sources.sheet import StockSheetSource

LOGGER = logging.getLogger(__name__)

BOTH_FEEDS = "both"


class InvalidDateRangeError(ValueError):
    """Raised when a date range is incomplete or runs backwards."""


@dataclass(frozen=True)
class DateRange:
    from_date: date
    to_date: date


@dataclass
class DealsResult:
    """Deals ready for aggregation plus the side data and counts shown alongside."""

    deals: list[DealRecord] = field(default_factory=list)
    market_cap: dict[str, float] = field(default_factory=dict)
    price: dict[str, float] = field(default_factory=dict)
    intraday_stats: IntradayStats = field(default_factory=IntradayStats)
    dedup_stats: Optional[DedupStats] = None


def validate_date_range(from_date: Optional[date], to_date: Optional[date]) -> DateRange:
    if from_date is None or to_date is None:
        raise InvalidDateRangeError("Please select both from and to dates")
    if from_date > to_date:
        raise InvalidDateRangeError("Please select a valid date range")
    return DateRange(from_date, to_date)


def resolve_date_range(
    date_filter: str,
    custom_from: Optional[date] = None,
    custom_to: Optional[date] = None,
    today: Optional[date] = None,
) -> DateRange:
    """Turn a preset such as ``1W`` (or ``Custom`` with explicit dates) into a range."""

    if date_filter == CUSTOM_DATE_FILTER:
        return validate_date_range(custom_from, custom_to)
    if date_filter not in DATE_FILTERS:
        raise InvalidDateRangeError(f"Unknown date filter: {date_filter}")
    today = today or date.today()
    return DateRange(today - timedelta(days=DATE_FILTERS[date_filter]), today)


def _fetch_feed(source: DealSource, feed_type: str, date_range: DateRange) -> FeedResponse:
    try:
        return source.fetch_deals(feed_type, date_range.from_date, date_range.to_date)
    except (requests.RequestException, ValueError):
        LOGGER.exception("Failed to fetch %s, continuing without them", feed_type)
        return FeedResponse()


def load_deals(
    source: DealSource,
    deal_type: str,
    from_date: Optional[date],
    to_date: Optional[date],
    hide_intraday: bool = True,
    rule: IntradayRule = DEFAULT_RULE,
    sheet: Optional[StockSheetSource] = None,
) -> DealsResult:
    """Fetch the requested feed(s) and prepare them for the rollups.

    ``both`` merges the bulk and block feeds through :func:`deduplicate`.
    Intraday counts always describe the unfiltered list; the returned
    deals have intraday trades removed only when ``hide_intraday`` is set.
    Feed failures are logged and treated as empty feeds.
    """

    if deal_type not in DEAL_TYPE_OPTIONS:
        raise ValueError(f"Unknown deal type: {deal_type}")
    date_range = validate_date_range(from_date, to_date)

    dedup_stats = None
    if deal_type == BOTH_FEEDS:
        bulk = _fetch_feed(source, BULK_DEALS, date_range)
        block = _fetch_feed(source, BLOCK_DEALS, date_range)
        dedup = deduplicate(bulk.deals, block.deals)
        all_deals, dedup_stats = dedup.deals, dedup.stats
        # Side data does not depend on the feed type, so one response is enough.
        side_data = bulk if bulk.market_cap or bulk.price else block
        LOGGER.info(
            "Merged %d bulk and %d block deals into %d unique (%d duplicates)",
            len(bulk.deals),
            len(block.deals),
            dedup_stats.unique,
            dedup_stats.duplicates,
        )
    else:
        side_data = _fetch_feed(source, deal_type, date_range)
        feed_tag = DealType.BULK if deal_type == BULK_DEALS else DealType.BLOCK
        all_deals = tag_deal_type(side_data.deals, feed_tag)

    market_cap = dict(side_data.market_cap)
    price = dict(side_data.price)
    if sheet is not None:
        sheet_market_cap, sheet_price = sheet.fetch()
        market_cap.update(sheet_market_cap)
        price.update(sheet_price)

    stats = get_stats(all_deals, rule)
    deals = filter_intraday(all_deals, hide_intraday, rule)
    LOGGER.info(
        "Prepared %d deals (%d intraday, hidden=%s)", len(deals), stats.intraday, hide_intraday
    )
    return DealsResult(
        deals=deals,
        market_cap=market_cap,
        price=price,
        intraday_stats=stats,
        dedup_stats=dedup_stats,
    )


__all__ = [
    "BOTH_FEEDS",
    "InvalidDateRangeError",
    "DateRange",
    "DealsResult",
    "validate_date_range",
    "resolve_date_range",
    "load_deals",
]
