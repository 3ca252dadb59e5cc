"""Filter preferences shared by the dashboard pages and the CLI."""
from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date
from typing import Optional

DEAL_TYPE_OPTIONS = {
    "bulk_deals": "Bulk Deals",
    "block_deals": "Block Deals",
    "both": "Both",
}

# Preset label -> days looked back from today.
DATE_FILTERS = {
    "1D": 1,
    "1W": 7,
    "1M": 30,
    "3M": 90,
    "6M": 180,
    "1Y": 365,
}
CUSTOM_DATE_FILTER = "Custom"


@dataclass(frozen=True)
class FilterPreferences:
    """Deal type, date window and intraday toggle chosen by the user."""

    hide_intraday: bool = True
    deal_type: str = "both"
    date_filter: str = "1W"
    from_date: Optional[date] = None
    to_date: Optional[date] = None

    def __post_init__(self) -> None:
        if self.deal_type not in DEAL_TYPE_OPTIONS:
            raise ValueError(f"Unknown deal type: {self.deal_type}")
        if self.date_filter not in DATE_FILTERS and self.date_filter != CUSTOM_DATE_FILTER:
            raise ValueError(f"Unknown date filter: {self.date_filter}")

    def merged(self, **overrides: object) -> "FilterPreferences":
        """Return a copy with every non-None override applied."""

        changes = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **changes) if changes else self


__all__ = ["DEAL_TYPE_OPTIONS", "DATE_FILTERS", "CUSTOM_DATE_FILTER", "FilterPreferences"]
