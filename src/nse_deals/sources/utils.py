"""Parsing helpers that turn exchange feed rows into deal records."""
from __future__ import annotations

import csv
import io
import logging
import re
from datetime import date
from typing import Any, Mapping, Optional

from dateutil import parser

from ..models import DEFAULT_REMARKS, DealRecord, DealValidationError

LOGGER = logging.getLogger(__name__)

NON_DIGIT = re.compile(r"[^0-9.]")

# Wire field names used by the exchange's bulk/block deal endpoints.
FIELD_DATE = "BD_DT_DATE"
FIELD_SYMBOL = "BD_SYMBOL"
FIELD_COMPANY = "BD_SCRIP_NAME"
FIELD_CLIENT = "BD_CLIENT_NAME"
FIELD_SIDE = "BD_BUY_SELL"
FIELD_QUANTITY = "BD_QTY_TRD"
FIELD_PRICE = "BD_TP_WATP"
FIELD_REMARKS = "BD_REMARKS"

CSV_FIELDS = (
    FIELD_DATE,
    FIELD_SYMBOL,
    FIELD_COMPANY,
    FIELD_CLIENT,
    FIELD_SIDE,
    FIELD_QUANTITY,
    FIELD_PRICE,
    FIELD_REMARKS,
)


def parse_float(value: Any) -> Optional[float]:
    """Parse a human readable price/float value such as ``"1,234.50"``."""

    if value is None or value == "":
        return None
    if isinstance(value, (int, float)):
        return float(value)
    cleaned = str(value).strip().replace(",", "").replace("%", "")
    try:
        return float(cleaned)
    except ValueError:
        cleaned = NON_DIGIT.sub("", cleaned)
        return float(cleaned) if cleaned.strip(".") else None


def parse_int(value: Any) -> Optional[int]:
    """Parse a share count such as ``"1,00,000"`` or ``"1000.00"``.

    Returns None for non-numeric text. Counts with a fractional part or a
    minus sign raise :class:`DealValidationError`.
    """

    if value is None or value == "":
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        try:
            number = float(str(value).strip().replace(",", ""))
        except ValueError:
            return None
    if number < 0 or not number.is_integer():
        raise DealValidationError(f"Quantity must be a whole non-negative number, got {value!r}")
    return int(number)


def parse_date(value: Any) -> Optional[date]:
    """Parse a date string using dateutil, day first (``02-Jan-2024``, ``02-01-2024``)."""

    if isinstance(value, date):
        return value
    if not value:
        return None
    return parser.parse(str(value), dayfirst=True).date()


def format_api_date(value: date) -> str:
    """Render a date the way the exchange API expects it (DD-MM-YYYY)."""

    return value.strftime("%d-%m-%Y")


def _required(row: Mapping[str, Any], field: str) -> Any:
    value = row.get(field)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise DealValidationError(f"Deal row is missing {field}: {dict(row)!r}")
    return value


def row_to_deal(row: Mapping[str, Any], deal_type: Optional[str] = None) -> DealRecord:
    """Map one raw ``BD_*`` feed row onto a :class:`DealRecord`."""

    raw_date = _required(row, FIELD_DATE)
    try:
        deal_date = parse_date(raw_date)
    except (ValueError, OverflowError) as exc:
        raise DealValidationError(f"Unparseable deal date {raw_date!r}") from exc

    quantity = parse_int(_required(row, FIELD_QUANTITY))
    price = parse_float(_required(row, FIELD_PRICE))
    if quantity is None or price is None:
        raise DealValidationError(
            f"Non-numeric quantity/price {row.get(FIELD_QUANTITY)!r}/{row.get(FIELD_PRICE)!r}"
        )

    remarks = row.get(FIELD_REMARKS)
    return DealRecord(
        date=deal_date,
        symbol=str(_required(row, FIELD_SYMBOL)).strip(),
        company_name=str(row.get(FIELD_COMPANY) or "").strip(),
        client_name=str(_required(row, FIELD_CLIENT)).strip(),
        side=str(_required(row, FIELD_SIDE)).strip().upper(),
        quantity=quantity,
        price=price,
        remarks=str(remarks).strip() if remarks and str(remarks).strip() else DEFAULT_REMARKS,
        deal_type=deal_type,
    )


def parse_deals_csv(text: str, deal_type: Optional[str] = None) -> list[DealRecord]:
    """Parse the exchange's CSV export of bulk/block deals.

    The header row is skipped and columns are read positionally. Rows with
    fewer than seven columns are ignored and malformed rows are skipped
    with a warning.
    """

    reader = csv.reader(io.StringIO(text.strip()))
    next(reader, None)
    deals = []
    for line_no, fields in enumerate(reader, start=2):
        if len(fields) < 7:
            continue
        row = dict(zip(CSV_FIELDS, (value.strip() for value in fields)))
        try:
            deals.append(row_to_deal(row, deal_type))
        except DealValidationError as exc:
            LOGGER.warning("Skipping malformed CSV line %d: %s", line_no, exc)
    return deals


__all__ = [
    "parse_float",
    "parse_int",
    "parse_date",
    "format_api_date",
    "row_to_deal",
    "parse_deals_csv",
    "CSV_FIELDS",
]
