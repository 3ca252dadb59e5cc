"""Data sources feeding the deal analytics core."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .base import BLOCK_DEALS, BULK_DEALS, FEED_TYPES, DealSource, FeedResponse
from .nse import NseDealsSource
from .sheet import StockSheetSource

if TYPE_CHECKING:
    from ..config import Settings

LOGGER = logging.getLogger(__name__)


def create_sources(settings: Settings) -> tuple[DealSource, StockSheetSource | None]:
    """Instantiate the deal feed and, when configured, the stock sheet lookup."""

    source = NseDealsSource(
        base_url=settings.nse_base_url,
        timeout=settings.request_timeout,
        fetch_market_caps=settings.fetch_market_caps,
    )
    sheet = None
    if settings.sheet_id:
        LOGGER.debug("Using stock sheet %s for market caps", settings.sheet_id)
        sheet = StockSheetSource(settings.sheet_id, timeout=settings.request_timeout)
    return source, sheet


__all__ = [
    "create_sources",
    "BULK_DEALS",
    "BLOCK_DEALS",
    "FEED_TYPES",
    "DealSource",
    "FeedResponse",
    "NseDealsSource",
    "StockSheetSource",
]
