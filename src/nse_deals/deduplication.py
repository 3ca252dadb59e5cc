"""Merge the bulk and block deal feeds into one set of unique trades."""
from __future__ import annotations

import logging
from dataclasses import replace
from typing import Iterable, Optional

from .models import DealRecord, DealType, DeduplicationResult, DedupStats

LOGGER = logging.getLogger(__name__)


def tag_deal_type(deals: Optional[Iterable[DealRecord]], deal_type: str) -> list[DealRecord]:
    """Return copies of ``deals`` carrying ``deal_type``."""

    return [replace(deal, deal_type=deal_type) for deal in deals or ()]


def _with_default_type(deals: Optional[Iterable[DealRecord]], deal_type: str) -> list[DealRecord]:
    return [deal if deal.deal_type else replace(deal, deal_type=deal_type) for deal in deals or ()]


def deduplicate(
    bulk_deals: Optional[Iterable[DealRecord]],
    block_deals: Optional[Iterable[DealRecord]],
) -> DeduplicationResult:
    """Merge bulk and block deals, collapsing trades reported by both feeds.

    Untagged records are tagged with the feed they came from; records that
    already carry a type keep it, so feeding a deduplicated list back in is a
    no-op. Records are keyed on date, symbol, client, quantity, price and
    side. The first record seen for a key is kept as-is; a later record with
    the same key counts as a duplicate and, when it came from the other
    feed, marks the kept record as ``BOTH``.
    """

    all_deals = _with_default_type(bulk_deals, DealType.BULK) + _with_default_type(
        block_deals, DealType.BLOCK
    )
    unique: dict[tuple, DealRecord] = {}
    duplicates = 0
    for deal in all_deals:
        key = deal.dedup_key
        existing = unique.get(key)
        if existing is None:
            unique[key] = deal
            continue
        duplicates += 1
        if existing.deal_type != deal.deal_type:
            unique[key] = replace(existing, deal_type=DealType.BOTH)

    deals = list(unique.values())
    LOGGER.debug(
        "Deduplicated %d deals into %d unique (%d duplicates)",
        len(all_deals),
        len(deals),
        duplicates,
    )
    return DeduplicationResult(
        deals=deals,
        stats=DedupStats(total=len(all_deals), duplicates=duplicates, unique=len(deals)),
    )


__all__ = ["tag_deal_type", "deduplicate"]
