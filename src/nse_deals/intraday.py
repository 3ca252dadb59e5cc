"""Detect same-day round trips that leave a client's position roughly flat.

A client whose buys and sells of one symbol on one day offset each other to
within a tolerance is treated as non-directional. The tolerance is the larger
of a fixed share count and a fraction of the day's two-sided volume.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Iterable, Sequence

from .models import DealRecord, IntradayStats

LOGGER = logging.getLogger(__name__)

DEFAULT_MIN_BUFFER = 100
DEFAULT_BUFFER_RATIO = 0.05


@dataclass(frozen=True)
class IntradayRule:
    """Tolerance used to decide whether a net position is effectively flat."""

    min_buffer: float = DEFAULT_MIN_BUFFER
    buffer_ratio: float = DEFAULT_BUFFER_RATIO

    def buffer(self, total_volume: float) -> float:
        return max(self.min_buffer, total_volume * self.buffer_ratio)

    def is_flat(self, total_bought: float, total_sold: float) -> bool:
        return abs(total_bought - total_sold) <= self.buffer(total_bought + total_sold)


DEFAULT_RULE = IntradayRule()


def _activity_key(deal: DealRecord) -> tuple:
    return (deal.client_name, deal.symbol, deal.date)


def _day_totals(universe: Iterable[DealRecord]) -> dict[tuple, list[int]]:
    """Sum bought and sold quantity per (client, symbol, date)."""

    totals: dict[tuple, list[int]] = defaultdict(lambda: [0, 0])
    for deal in universe:
        bucket = totals[_activity_key(deal)]
        if deal.is_buy:
            bucket[0] += deal.quantity
        else:
            bucket[1] += deal.quantity
    return totals


def is_intraday(
    deal: DealRecord,
    universe: Iterable[DealRecord],
    rule: IntradayRule = DEFAULT_RULE,
) -> bool:
    """Return True when the client's same-day activity in the symbol nets out."""

    key = _activity_key(deal)
    bought = sold = 0
    for other in universe:
        if _activity_key(other) != key:
            continue
        if other.is_buy:
            bought += other.quantity
        else:
            sold += other.quantity
    return rule.is_flat(bought, sold)


def _intraday_flags(deals: Sequence[DealRecord], rule: IntradayRule) -> list[bool]:
    totals = _day_totals(deals)
    return [rule.is_flat(*totals[_activity_key(deal)]) for deal in deals]


def filter_intraday(
    deals: Sequence[DealRecord],
    hide: bool,
    rule: IntradayRule = DEFAULT_RULE,
) -> list[DealRecord]:
    """Drop intraday deals when ``hide`` is set.

    Every deal is judged against the complete ``deals`` list, never against
    the partially filtered output.
    """

    if not hide:
        return list(deals)
    flags = _intraday_flags(deals, rule)
    kept = [deal for deal, flagged in zip(deals, flags) if not flagged]
    LOGGER.debug("Hid %d intraday deals out of %d", len(deals) - len(kept), len(deals))
    return kept


def get_stats(deals: Sequence[DealRecord], rule: IntradayRule = DEFAULT_RULE) -> IntradayStats:
    intraday = sum(_intraday_flags(deals, rule))
    return IntradayStats(total=len(deals), intraday=intraday, filtered=len(deals) - intraday)


__all__ = [
    "DEFAULT_MIN_BUFFER",
    "DEFAULT_BUFFER_RATIO",
    "DEFAULT_RULE",
    "IntradayRule",
    "is_intraday",
    "filter_intraday",
    "get_stats",
]
