"""Pytest configuration and shared fixtures."""

from datetime import date

import pytest
import requests

from nse_deals.models import DealRecord
from nse_deals.sources.base import DealSource, FeedResponse


def make_deal(
    symbol: str = "ABC",
    client: str = "X",
    side: str = "BUY",
    quantity: int = 100,
    price: float = 50.0,
    day: date = date(2024, 1, 1),
    company: str | None = None,
    deal_type: str | None = None,
    remarks: str = "-",
) -> DealRecord:
    """Build a deal record with sensible defaults."""
    return DealRecord(
        date=day,
        symbol=symbol,
        company_name=company if company is not None else f"{symbol} Ltd",
        client_name=client,
        side=side,
        quantity=quantity,
        price=price,
        remarks=remarks,
        deal_type=deal_type,
    )


@pytest.fixture
def deal_factory():
    """Expose make_deal to tests that prefer fixtures."""
    return make_deal


class FakeSource(DealSource):
    """Deal source serving canned feeds and recording requests."""

    def __init__(self, feeds: dict | None = None, failing: tuple = ()) -> None:
        self.feeds = feeds or {}
        self.failing = failing
        self.requests: list = []

    def fetch_deals(self, feed_type, from_date, to_date):
        self.requests.append((feed_type, from_date, to_date))
        if feed_type in self.failing:
            raise requests.ConnectionError(f"{feed_type} feed down")
        return self.feeds.get(feed_type, FeedResponse())
