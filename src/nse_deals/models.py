"""Domain models representing disclosed bulk and block deals."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Optional


class DealValidationError(ValueError):
    """Raised when a deal record violates the record invariants."""


class Side:
    BUY = "BUY"
    SELL = "SELL"

    ALL = frozenset({BUY, SELL})


class DealType:
    BULK = "BULK"
    BLOCK = "BLOCK"
    BOTH = "BOTH"

    ALL = frozenset({BULK, BLOCK, BOTH})


DEFAULT_REMARKS = "-"


@dataclass(frozen=True, slots=True)
class DealRecord:
    """Represents one disclosed trade."""

    date: date
    symbol: str
    company_name: str
    client_name: str
    side: str  # "BUY" or "SELL"
    quantity: int
    price: float
    remarks: str = DEFAULT_REMARKS
    deal_type: Optional[str] = None  # "BULK", "BLOCK" or "BOTH"

    def __post_init__(self) -> None:
        if not isinstance(self.date, date):
            raise DealValidationError(f"Deal date must be a date, got {self.date!r}")
        if not self.symbol:
            raise DealValidationError("Deal symbol must not be empty")
        if self.side not in Side.ALL:
            raise DealValidationError(f"Unknown deal side: {self.side!r}")
        if self.quantity < 0:
            raise DealValidationError(f"Negative quantity {self.quantity} for {self.symbol}")
        if self.price < 0:
            raise DealValidationError(f"Negative price {self.price} for {self.symbol}")
        if self.deal_type is not None and self.deal_type not in DealType.ALL:
            raise DealValidationError(f"Unknown deal type: {self.deal_type!r}")

    @property
    def value(self) -> float:
        """Traded value of the deal (quantity times price)."""

        return self.quantity * self.price

    @property
    def is_buy(self) -> bool:
        return self.side == Side.BUY

    @property
    def dedup_key(self) -> tuple:
        return (self.date, self.symbol, self.client_name, self.quantity, self.price, self.side)


@dataclass(slots=True)
class DedupStats:
    total: int = 0
    duplicates: int = 0
    unique: int = 0


@dataclass(slots=True)
class DeduplicationResult:
    deals: list[DealRecord]
    stats: DedupStats


@dataclass(slots=True)
class IntradayStats:
    """Counts shown next to the hide-intraday toggle."""

    total: int = 0
    intraday: int = 0
    filtered: int = 0


@dataclass(slots=True)
class SymbolGroup:
    """Deals aggregated per symbol."""

    symbol: str
    company_name: str
    total_bought: int = 0
    total_sold: int = 0
    total_value_bought: float = 0.0
    total_value_sold: float = 0.0
    net_position: int = 0
    net_value: float = 0.0
    deal_count: int = 0
    unique_clients: int = 0
    avg_deal_size: float = 0.0
    avg_buy_price: float = 0.0
    avg_sell_price: float = 0.0
    min_price: float = 0.0
    max_price: float = 0.0
    market_cap: float = 0.0
    price: float = 0.0
    ask_price: float = 0.0
    deals: list[DealRecord] = field(default_factory=list)


@dataclass(slots=True)
class ClientStockSummary:
    """One symbol inside a client's portfolio of deals."""

    symbol: str
    company_name: str
    total_shares: int = 0  # net position (bought - sold)
    total_bought: int = 0
    total_sold: int = 0
    total_value_bought: float = 0.0
    total_value_sold: float = 0.0
    net_value: float = 0.0
    deal_count: int = 0
    avg_buy_price: float = 0.0
    avg_sell_price: float = 0.0
    deals: list[DealRecord] = field(default_factory=list)


@dataclass(slots=True)
class ClientGroup:
    """Deals aggregated per client, broken down by symbol."""

    client_name: str
    total_bought: int = 0
    total_sold: int = 0
    total_value_bought: float = 0.0
    total_value_sold: float = 0.0
    net_position: int = 0
    net_value: float = 0.0
    unique_stocks: int = 0
    total_deals: int = 0
    avg_buy_price: float = 0.0
    avg_sell_price: float = 0.0
    stock_data: list[ClientStockSummary] = field(default_factory=list)

    @property
    def deal_count(self) -> int:
        return self.total_deals


@dataclass(slots=True)
class ClientStockGroup:
    """Deals aggregated per (client, symbol) pair."""

    client_name: str
    symbol: str
    company_name: str
    total_shares: int = 0
    total_bought: int = 0
    total_sold: int = 0
    total_value_bought: float = 0.0
    total_value_sold: float = 0.0
    net_position: int = 0
    net_value: float = 0.0
    deal_count: int = 0
    avg_buy_price: float = 0.0
    avg_sell_price: float = 0.0
    weighted_avg_price: float = 0.0
    first_deal_date: Optional[date] = None
    last_deal_date: Optional[date] = None
    market_cap: float = 0.0
    price: float = 0.0
    deals: list[DealRecord] = field(default_factory=list)


@dataclass(slots=True)
class DateGroup:
    """One symbol's deals aggregated per trade date."""

    date: date
    symbol: str
    company_name: str
    total_bought: int = 0
    total_sold: int = 0
    total_value_bought: float = 0.0
    total_value_sold: float = 0.0
    net_position: int = 0
    net_value: float = 0.0
    deal_count: int = 0
    unique_clients: int = 0
    avg_buy_price: float = 0.0
    avg_sell_price: float = 0.0
    deals: list[DealRecord] = field(default_factory=list)


@dataclass(slots=True)
class SymbolClientGroup:
    """One symbol's deals aggregated per client."""

    client_name: str
    symbol: str
    company_name: str
    net_shares: int = 0
    total_value: float = 0.0
    deal_count: int = 0
    avg_price: float = 0.0
    deals: list[DealRecord] = field(default_factory=list)


__all__ = [
    "DealValidationError",
    "Side",
    "DealType",
    "DEFAULT_REMARKS",
    "DealRecord",
    "DedupStats",
    "DeduplicationResult",
    "IntradayStats",
    "SymbolGroup",
    "ClientStockSummary",
    "ClientGroup",
    "ClientStockGroup",
    "DateGroup",
    "SymbolClientGroup",
]
