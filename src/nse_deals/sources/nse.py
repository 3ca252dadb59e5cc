"""NSE India bulk/block deal feed implementation."""
from __future__ import annotations

import logging
from datetime import date
from typing import Iterable

import requests

from ..models import DealValidationError
from .base import FEED_TYPES, DealSource, FeedResponse
from .utils import FIELD_SYMBOL, format_api_date, parse_float, row_to_deal

LOGGER = logging.getLogger(__name__)

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/121.0.0.0 Safari/537.36"
)

PAGE_HEADERS = {
    "user-agent": USER_AGENT,
    "accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,image/apng,*/*;q=0.8",
    "accept-language": "en-US,en;q=0.9",
    "cache-control": "no-cache",
    "pragma": "no-cache",
    "sec-fetch-dest": "document",
    "sec-fetch-mode": "navigate",
    "sec-fetch-site": "same-origin",
}

API_HEADERS = {
    "user-agent": USER_AGENT,
    "accept": "application/json, text/plain, */*",
    "accept-language": "en-US,en;q=0.9",
    "x-requested-with": "XMLHttpRequest",
    "sec-fetch-dest": "empty",
    "sec-fetch-mode": "cors",
    "sec-fetch-site": "same-origin",
}

DEALS_PATH = "/api/historicalOR/bulk-block-short-deals"
QUOTE_PATH = "/api/quote-equity"
# Visiting a quote page hands out the extra cookies the API checks for.
COOKIE_WARMUP_PATH = "/get-quotes/equity?symbol=NIFTYBEES"


class NseDealsSource(DealSource):
    """Client for the exchange's historical bulk and block deal API."""

    BASE_URL = "https://www.nseindia.com"

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float = 30,
        session: requests.Session | None = None,
        fetch_market_caps: bool = False,
    ) -> None:
        self.base_url = (base_url or self.BASE_URL).rstrip("/")
        self.timeout = timeout
        self.fetch_market_caps = fetch_market_caps
        self.session = session or requests.Session()
        self._cookies_ready = False

    def _bootstrap_cookies(self) -> None:
        """Collect the session cookies the API refuses to work without."""

        if self._cookies_ready:
            return
        LOGGER.debug("Bootstrapping NSE session cookies")
        response = self.session.get(self.base_url, headers=PAGE_HEADERS, timeout=self.timeout)
        response.raise_for_status()
        try:
            self.session.get(
                self.base_url + COOKIE_WARMUP_PATH, headers=PAGE_HEADERS, timeout=self.timeout
            )
        except requests.RequestException as exc:
            LOGGER.warning("Failed to fetch quote page cookies: %s", exc)
        self._cookies_ready = True

    def _get_json(self, path: str, params: dict[str, str]) -> dict:
        headers = dict(API_HEADERS, referer=self.base_url + "/")
        response = self.session.get(
            self.base_url + path, params=params, headers=headers, timeout=self.timeout
        )
        response.raise_for_status()
        return response.json()

    def fetch_deals(self, feed_type: str, from_date: date, to_date: date) -> FeedResponse:
        if feed_type not in FEED_TYPES:
            raise ValueError(f"Unsupported feed type: {feed_type}")

        self._bootstrap_cookies()
        LOGGER.debug("Requesting %s from %s to %s", feed_type, from_date, to_date)
        payload = self._get_json(
            DEALS_PATH,
            {
                "optionType": feed_type,
                "from": format_api_date(from_date),
                "to": format_api_date(to_date),
            },
        )
        rows = payload.get("data") or []

        deals = []
        for row in rows:
            try:
                deals.append(row_to_deal(row))
            except DealValidationError as exc:
                LOGGER.warning("Skipping malformed %s row: %s", feed_type, exc)
        LOGGER.info("Fetched %d %s (%d rows rejected)", len(deals), feed_type, len(rows) - len(deals))

        market_cap = {}
        if self.fetch_market_caps:
            market_cap = self.fetch_market_cap_map(row.get(FIELD_SYMBOL) for row in rows)
        return FeedResponse(deals=deals, market_cap=market_cap)

    def fetch_market_cap(self, symbol: str) -> float:
        """Return the symbol's total market cap in crores, 0 when unavailable."""

        try:
            payload = self._get_json(QUOTE_PATH, {"symbol": symbol, "section": "trade_info"})
        except (requests.RequestException, ValueError) as exc:
            LOGGER.warning("Failed to fetch market cap for %s: %s", symbol, exc)
            return 0.0
        trade_info = (payload.get("marketDeptOrderBook") or {}).get("tradeInfo") or {}
        return parse_float(trade_info.get("totalMarketCap")) or 0.0

    def fetch_market_cap_map(self, symbols: Iterable[str | None]) -> dict[str, float]:
        self._bootstrap_cookies()
        unique = sorted({symbol for symbol in symbols if symbol})
        return {symbol: self.fetch_market_cap(symbol) for symbol in unique}


__all__ = ["NseDealsSource"]
