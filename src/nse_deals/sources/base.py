"""Base classes for fetching deal feeds."""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date

from ..models import DealRecord

BULK_DEALS = "bulk_deals"
BLOCK_DEALS = "block_deals"
FEED_TYPES = (BULK_DEALS, BLOCK_DEALS)


@dataclass(slots=True)
class FeedResponse:
    """Deals returned by one feed request plus any side data it carried."""

    deals: list[DealRecord] = field(default_factory=list)
    market_cap: dict[str, float] = field(default_factory=dict)
    price: dict[str, float] = field(default_factory=dict)


class DealSource(ABC):
    """Abstract source that can load one deal feed for a date range."""

    @abstractmethod
    def fetch_deals(self, feed_type: str, from_date: date, to_date: date) -> FeedResponse:
        """Return the ``feed_type`` deals traded between the two dates."""


__all__ = ["BULK_DEALS", "BLOCK_DEALS", "FEED_TYPES", "FeedResponse", "DealSource"]
