"""Market cap and price lookup backed by a public spreadsheet."""
from __future__ import annotations

import csv
import io
import json
import logging
import re
from typing import Optional, Sequence

import requests

from .utils import parse_float

LOGGER = logging.getLogger(__name__)

DEFAULT_SHEET_ID = "1GgVqoQ96kED7U_6oHDKTxesQtva5a-vobZDjfYdRau8"

CSV_URL_TEMPLATE = "https://docs.google.com/spreadsheets/d/{sheet_id}/export?format=csv&gid=0"
GVIZ_URL_TEMPLATE = "https://docs.google.com/spreadsheets/d/{sheet_id}/gviz/tq?tqx=out:json"

GVIZ_WRAPPER = re.compile(r"setResponse\((.*)\);?\s*$", re.DOTALL)

StockData = tuple[dict[str, float], dict[str, float]]


def _column_indexes(labels: Sequence[str]) -> tuple[int, int, int]:
    """Locate the symbol, market cap and price columns (-1 when absent)."""

    lowered = [label.strip().lower() for label in labels]
    symbol_idx = next((i for i, h in enumerate(lowered) if "symbol" in h), -1)
    mcap_idx = next((i for i, h in enumerate(lowered) if "market" in h and "cap" in h), -1)
    price_idx = next((i for i, h in enumerate(lowered) if "price" in h), -1)
    return symbol_idx, mcap_idx, price_idx


def _collect(rows: Sequence[Sequence[object]], symbol_idx: int, mcap_idx: int, price_idx: int) -> StockData:
    market_cap: dict[str, float] = {}
    price: dict[str, float] = {}

    def cell(row: Sequence[object], idx: int) -> object:
        return row[idx] if 0 <= idx < len(row) else None

    for row in rows:
        symbol = str(cell(row, symbol_idx) or "").strip().strip('"')
        if not symbol:
            continue
        for idx, target in ((mcap_idx, market_cap), (price_idx, price)):
            if idx == -1:
                continue
            try:
                value = parse_float(cell(row, idx))
            except ValueError:
                value = None
            if value is not None:
                target[symbol] = value
    return market_cap, price


def parse_sheet_csv(text: str) -> Optional[StockData]:
    """Parse the sheet's CSV export. Returns None when the columns are missing."""

    rows = [row for row in csv.reader(io.StringIO(text)) if any(cell.strip() for cell in row)]
    if not rows:
        return None
    symbol_idx, mcap_idx, price_idx = _column_indexes(rows[0])
    if symbol_idx == -1 or mcap_idx == -1:
        return None
    return _collect(rows[1:], symbol_idx, mcap_idx, price_idx)


def parse_sheet_gviz(text: str) -> Optional[StockData]:
    """Parse the visualization API response, which wraps JSON in ``setResponse(...)``."""

    match = GVIZ_WRAPPER.search(text)
    payload = json.loads(match.group(1) if match else text)
    table = payload.get("table") or {}
    labels = [str((col or {}).get("label") or "") for col in table.get("cols") or []]
    symbol_idx, mcap_idx, price_idx = _column_indexes(labels)
    if symbol_idx == -1 or mcap_idx == -1:
        return None
    rows = [[(cell or {}).get("v") for cell in (row.get("c") or [])] for row in table.get("rows") or []]
    return _collect(rows, symbol_idx, mcap_idx, price_idx)


class StockSheetSource:
    """Loads symbol -> market cap and symbol -> price maps.

    The CSV export is tried first and the visualization endpoint second;
    when both fail the maps are empty.
    """

    def __init__(
        self,
        sheet_id: str = DEFAULT_SHEET_ID,
        timeout: float = 30,
        session: requests.Session | None = None,
    ) -> None:
        self.sheet_id = sheet_id
        self.timeout = timeout
        self.session = session or requests.Session()

    def _get_text(self, url: str) -> str:
        response = self.session.get(url, timeout=self.timeout)
        response.raise_for_status()
        return response.text

    def fetch(self) -> StockData:
        transports = (
            ("csv", CSV_URL_TEMPLATE, parse_sheet_csv),
            ("gviz", GVIZ_URL_TEMPLATE, parse_sheet_gviz),
        )
        for name, template, parse in transports:
            try:
                result = parse(self._get_text(template.format(sheet_id=self.sheet_id)))
            except (requests.RequestException, ValueError) as exc:
                LOGGER.warning("Stock sheet %s lookup failed: %s", name, exc)
                continue
            if result is not None:
                LOGGER.info("Loaded %d market caps from stock sheet (%s)", len(result[0]), name)
                return result
            LOGGER.warning("Stock sheet %s export has no symbol/market cap columns", name)
        return {}, {}


__all__ = ["DEFAULT_SHEET_ID", "StockSheetSource", "parse_sheet_csv", "parse_sheet_gviz"]
