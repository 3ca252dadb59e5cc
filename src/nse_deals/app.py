"""FastAPI application exposing the bulk/block deal dashboards."""
from __future__ import annotations

import logging
from dataclasses import asdict
from datetime import date
from pathlib import Path
from typing import Any, Optional

from fastapi import FastAPI, HTTPException, Query, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.templating import Jinja2Templates

from .analytics import (
    aggregate_by_client,
    aggregate_by_client_stock,
    aggregate_by_date_symbol,
    aggregate_by_symbol,
    aggregate_clients_for_symbol,
)
from .config import Settings
from .formatting import format_date, format_market_cap, format_number, format_price
from .logging_utils import configure_logging
from .pipeline import DateRange, DealsResult, load_deals, resolve_date_range
from .preferences import CUSTOM_DATE_FILTER, DATE_FILTERS, DEAL_TYPE_OPTIONS, FilterPreferences
from .sorting import SORT_DIRECTIONS, filter_by_substring, sort_groups
from .sources import create_sources

configure_logging()

LOGGER = logging.getLogger(__name__)

settings = Settings.load()
source, sheet = create_sources(settings)
templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent / "templates"))
templates.env.filters.update(
    number=format_number,
    market_cap=format_market_cap,
    price=format_price,
    day=format_date,
)

API_VIEWS = ("deals", "symbol", "client", "client-stock", "date")

app = FastAPI(title="NSE Bulk & Block Deals", default_response_class=HTMLResponse)


def _preferences(
    deal_type: Optional[str],
    date_filter: Optional[str],
    from_date: Optional[date],
    to_date: Optional[date],
    hide_intraday: Optional[bool],
) -> FilterPreferences:
    if date_filter is None and (from_date or to_date):
        date_filter = CUSTOM_DATE_FILTER
    try:
        return settings.preferences.merged(
            deal_type=deal_type,
            date_filter=date_filter,
            from_date=from_date,
            to_date=to_date,
            hide_intraday=hide_intraday,
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


def _load(preferences: FilterPreferences) -> tuple[DateRange, DealsResult]:
    try:
        date_range = resolve_date_range(
            preferences.date_filter, preferences.from_date, preferences.to_date
        )
        result = load_deals(
            source,
            preferences.deal_type,
            date_range.from_date,
            date_range.to_date,
            hide_intraday=preferences.hide_intraday,
            rule=settings.intraday_rule,
            sheet=sheet,
        )
    except ValueError as exc:
        LOGGER.warning("Rejected deals request: %s", exc)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return date_range, result


def _sorted(groups: list, sort: Optional[str], direction: str) -> list:
    if direction not in SORT_DIRECTIONS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=f"Unknown sort direction: {direction}"
        )
    if not sort:
        return groups
    try:
        return sort_groups(groups, sort, direction)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


def _page_context(
    request: Request,
    preferences: FilterPreferences,
    date_range: DateRange,
    result: DealsResult,
    **extra: Any,
) -> dict[str, Any]:
    return {
        "request": request,
        "preferences": preferences,
        "date_range": date_range,
        "intraday_stats": result.intraday_stats,
        "dedup_stats": result.dedup_stats,
        "deal_type_options": DEAL_TYPE_OPTIONS,
        "date_filters": [*DATE_FILTERS, CUSTOM_DATE_FILTER],
        **extra,
    }


@app.get("/health", response_class=JSONResponse)
async def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/", response_class=HTMLResponse)
def symbol_analytics(
    request: Request,
    deal_type: Optional[str] = None,
    date_filter: Optional[str] = None,
    from_date: Optional[date] = Query(None, alias="from"),
    to_date: Optional[date] = Query(None, alias="to"),
    hide_intraday: Optional[bool] = None,
    sort: str = "total_value_bought",
    direction: str = "desc",
    stock: Optional[str] = None,
) -> HTMLResponse:
    LOGGER.debug("Rendering symbol analytics view")
    preferences = _preferences(deal_type, date_filter, from_date, to_date, hide_intraday)
    date_range, result = _load(preferences)
    groups = aggregate_by_symbol(result.deals, result.market_cap, result.price)
    groups = _sorted(filter_by_substring(groups, stock_query=stock), sort, direction)
    return templates.TemplateResponse(
        request,
        "symbols.html",
        _page_context(
            request, preferences, date_range, result,
            groups=groups, sort=sort, direction=direction, stock=stock or "",
        ),
    )


@app.get("/clients", response_class=HTMLResponse)
def client_analytics(
    request: Request,
    deal_type: Optional[str] = None,
    date_filter: Optional[str] = None,
    from_date: Optional[date] = Query(None, alias="from"),
    to_date: Optional[date] = Query(None, alias="to"),
    hide_intraday: Optional[bool] = None,
    sort: Optional[str] = None,
    direction: str = "desc",
    client: Optional[str] = None,
    stock: Optional[str] = None,
) -> HTMLResponse:
    LOGGER.debug("Rendering client analytics view")
    preferences = _preferences(deal_type, date_filter, from_date, to_date, hide_intraday)
    date_range, result = _load(preferences)
    groups = filter_by_substring(aggregate_by_client(result.deals), client, stock)
    return templates.TemplateResponse(
        request,
        "clients.html",
        _page_context(
            request, preferences, date_range, result,
            groups=_sorted(groups, sort, direction), sort=sort, direction=direction,
            client=client or "", stock=stock or "",
        ),
    )


@app.get("/client-stocks", response_class=HTMLResponse)
def client_stock_analytics(
    request: Request,
    deal_type: Optional[str] = None,
    date_filter: Optional[str] = None,
    from_date: Optional[date] = Query(None, alias="from"),
    to_date: Optional[date] = Query(None, alias="to"),
    hide_intraday: Optional[bool] = None,
    sort: Optional[str] = None,
    direction: str = "desc",
    client: Optional[str] = None,
    stock: Optional[str] = None,
) -> HTMLResponse:
    LOGGER.debug("Rendering client/stock analytics view")
    preferences = _preferences(deal_type, date_filter, from_date, to_date, hide_intraday)
    date_range, result = _load(preferences)
    groups = aggregate_by_client_stock(result.deals, result.market_cap, result.price)
    groups = filter_by_substring(groups, client, stock)
    return templates.TemplateResponse(
        request,
        "client_stocks.html",
        _page_context(
            request, preferences, date_range, result,
            groups=_sorted(groups, sort, direction), sort=sort, direction=direction,
            client=client or "", stock=stock or "",
        ),
    )


@app.get("/deals", response_class=HTMLResponse)
def deal_list(
    request: Request,
    deal_type: Optional[str] = None,
    date_filter: Optional[str] = None,
    from_date: Optional[date] = Query(None, alias="from"),
    to_date: Optional[date] = Query(None, alias="to"),
    hide_intraday: Optional[bool] = None,
    sort: Optional[str] = None,
    direction: str = "desc",
    client: Optional[str] = None,
    stock: Optional[str] = None,
) -> HTMLResponse:
    LOGGER.debug("Rendering deal list view")
    preferences = _preferences(deal_type, date_filter, from_date, to_date, hide_intraday)
    date_range, result = _load(preferences)
    deals = filter_by_substring(result.deals, client, stock)
    return templates.TemplateResponse(
        request,
        "deals.html",
        _page_context(
            request, preferences, date_range, result,
            deals=_sorted(deals, sort, direction), market_cap=result.market_cap, price=result.price,
            sort=sort, direction=direction, client=client or "", stock=stock or "",
        ),
    )


@app.get("/symbols/{symbol}", response_class=HTMLResponse)
def symbol_detail(
    request: Request,
    symbol: str,
    deal_type: Optional[str] = None,
    date_filter: Optional[str] = None,
    from_date: Optional[date] = Query(None, alias="from"),
    to_date: Optional[date] = Query(None, alias="to"),
    hide_intraday: Optional[bool] = None,
) -> HTMLResponse:
    LOGGER.debug("Rendering detail view for %s", symbol)
    preferences = _preferences(deal_type, date_filter, from_date, to_date, hide_intraday)
    date_range, result = _load(preferences)
    return templates.TemplateResponse(
        request,
        "symbol_detail.html",
        _page_context(
            request, preferences, date_range, result,
            symbol=symbol,
            dates=aggregate_by_date_symbol(result.deals, symbol),
            clients=aggregate_clients_for_symbol(result.deals, symbol),
        ),
    )


@app.get("/api/deals", response_class=JSONResponse)
def deals_api(
    view: str = "symbol",
    symbol: Optional[str] = None,
    deal_type: Optional[str] = None,
    date_filter: Optional[str] = None,
    from_date: Optional[date] = Query(None, alias="from"),
    to_date: Optional[date] = Query(None, alias="to"),
    hide_intraday: Optional[bool] = None,
    sort: Optional[str] = None,
    direction: str = "desc",
    client: Optional[str] = None,
    stock: Optional[str] = None,
) -> JSONResponse:
    if view not in API_VIEWS:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Unknown view: {view}")
    if view == "date" and not symbol:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="The date view needs a symbol")

    preferences = _preferences(deal_type, date_filter, from_date, to_date, hide_intraday)
    date_range, result = _load(preferences)
    if view == "deals":
        groups = list(result.deals)
    elif view == "symbol":
        groups = aggregate_by_symbol(result.deals, result.market_cap, result.price)
    elif view == "client":
        groups = aggregate_by_client(result.deals)
    elif view == "client-stock":
        groups = aggregate_by_client_stock(result.deals, result.market_cap, result.price)
    else:
        groups = aggregate_by_date_symbol(result.deals, symbol)
    groups = _sorted(filter_by_substring(groups, client, stock), sort, direction)

    payload = {
        "from": date_range.from_date,
        "to": date_range.to_date,
        "deal_type": preferences.deal_type,
        "hide_intraday": preferences.hide_intraday,
        "intraday_stats": asdict(result.intraday_stats),
        "dedup_stats": asdict(result.dedup_stats) if result.dedup_stats else None,
        "groups": [asdict(group) for group in groups],
    }
    if view == "deals":
        # Raw deals carry no side data of their own.
        payload["market_cap"] = result.market_cap
        payload["price"] = result.price
    return JSONResponse(jsonable_encoder(payload))


__all__ = ["app"]
