"""Sorting and free-text filtering for rollup tables."""
from __future__ import annotations

import locale
from typing import Any, Iterable, Optional, Sequence, TypeVar

T = TypeVar("T")

SORT_DIRECTIONS = ("asc", "desc")

_MISSING = object()


def _field(group: Any, name: str, default: Any = None) -> Any:
    if isinstance(group, dict):
        return group.get(name, default)
    return getattr(group, name, default)


def _sort_key(value: Any, field: str) -> Any:
    if isinstance(value, str):
        # Casefolded: the C locale collates by raw code point.
        return locale.strxfrm(value.casefold())
    if value is None:
        return 0.0
    if hasattr(value, "toordinal"):
        return value.toordinal()
    if isinstance(value, (int, float)):
        return float(value)
    raise ValueError(f"Cannot sort on {field}: {type(value).__name__} values are not comparable")


def sort_groups(groups: Iterable[T], field: str, direction: str = "desc") -> list[T]:
    """Return ``groups`` ordered by ``field``.

    Strings compare case-insensitively with the current locale's collation,
    dates chronologically and numbers numerically. Groups with equal keys
    keep their relative order in both directions. Fields holding lists or
    other non-scalar values raise ``ValueError``.
    """

    if direction not in SORT_DIRECTIONS:
        raise ValueError(f"Sort direction must be one of {SORT_DIRECTIONS}, got {direction!r}")

    def key(group: Any) -> Any:
        value = _field(group, field, _MISSING)
        if value is _MISSING:
            raise ValueError(f"Unknown sort field: {field}")
        return _sort_key(value, field)

    return sorted(groups, key=key, reverse=direction == "desc")


def _client_names(group: Any) -> list[str]:
    name = _field(group, "client_name")
    if name is not None:
        return [name]
    return [deal.client_name for deal in _field(group, "deals", ())]


def _stock_names(group: Any) -> list[str]:
    names = [_field(group, "symbol"), _field(group, "company_name")]
    for stock in _field(group, "stock_data", ()):
        names.extend((_field(stock, "symbol"), _field(stock, "company_name")))
    return [name for name in names if name]


def _matches(query: str, candidates: Sequence[str]) -> bool:
    needle = query.lower()
    return any(needle in candidate.lower() for candidate in candidates)


def filter_by_substring(
    groups: Iterable[T],
    client_query: Optional[str] = None,
    stock_query: Optional[str] = None,
) -> list[T]:
    """Keep groups matching every non-blank query, case-insensitively.

    ``stock_query`` matches the symbol or the company name. Groups without a
    client name are matched on the clients of their deals, and client groups
    are matched on the symbols they traded.
    """

    client_query = (client_query or "").strip()
    stock_query = (stock_query or "").strip()
    filtered = list(groups)
    if client_query:
        filtered = [group for group in filtered if _matches(client_query, _client_names(group))]
    if stock_query:
        filtered = [group for group in filtered if _matches(stock_query, _stock_names(group))]
    return filtered


__all__ = ["SORT_DIRECTIONS", "sort_groups", "filter_by_substring"]
