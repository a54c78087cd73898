"""
Domain entities returned by the quote, search and history operations.
Zero external dependencies: pure Python dataclasses only.
"""

from dataclasses import dataclass, fields
from datetime import date
from typing import Any, Optional

# Attribute name -> key used in the serialized payload.
_QUOTE_PAYLOAD_KEYS: dict[str, str] = {
    "symbol": "symbol",
    "name": "name",
    "exchange": "exchange",
    "currency": "currency",
    "price": "price",
    "change": "change",
    "change_percent": "changePercent",
    "volume": "volume",
    "market_cap": "marketCap",
    "fifty_two_week_low": "fiftyTwoWeekLow",
    "fifty_two_week_high": "fiftyTwoWeekHigh",
    "average_daily_volume_3_month": "averageDailyVolume3Month",
    "trailing_pe": "trailingPE",
    "forward_pe": "forwardPE",
    "dividend_yield": "dividendYield",
    "eps_trailing_twelve_months": "epsTrailingTwelveMonths",
    "eps_forward": "epsForward",
    "book_value": "bookValue",
    "price_to_book": "priceToBook",
    "market_state": "marketState",
    "quote_type": "quoteType",
}


@dataclass(frozen=True)
class StockQuote:
    symbol: str
    name: Optional[str] = None
    exchange: Optional[str] = None
    currency: Optional[str] = None
    price: Optional[float] = None
    change: Optional[float] = None
    change_percent: Optional[float] = None
    volume: Optional[int] = None
    market_cap: Optional[int] = None
    fifty_two_week_low: Optional[float] = None
    fifty_two_week_high: Optional[float] = None
    average_daily_volume_3_month: Optional[int] = None
    trailing_pe: Optional[float] = None
    forward_pe: Optional[float] = None
    dividend_yield: Optional[float] = None
    eps_trailing_twelve_months: Optional[float] = None
    eps_forward: Optional[float] = None
    book_value: Optional[float] = None
    price_to_book: Optional[float] = None
    market_state: Optional[str] = None
    quote_type: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize with camelCase keys; attributes without a value are left out."""
        payload: dict[str, Any] = {}
        for field in fields(self):
            value = getattr(self, field.name)
            if value is not None:
                payload[_QUOTE_PAYLOAD_KEYS[field.name]] = value
        return payload


@dataclass(frozen=True)
class SearchResult:
    symbol: str
    name: str
    exchange: str


@dataclass(frozen=True)
class HistoricalPoint:
    date: str
    close: float
    high: float
    low: float
    volume: int


@dataclass(frozen=True)
class DateRange:
    """Validated, inclusive range of calendar days."""

    from_date: date
    to_date: date
