"""
Narrow records produced by the upstream market data adapter.
They carry only the fields the service reads; any other upstream attribute is
dropped inside the adapter and never forwarded.
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional


@dataclass(frozen=True)
class RawQuote:
    symbol: Optional[str] = None
    short_name: Optional[str] = None
    long_name: Optional[str] = None
    exchange: Optional[str] = None
    currency: Optional[str] = None
    regular_market_price: Optional[float] = None
    regular_market_change: Optional[float] = None
    regular_market_change_percent: Optional[float] = None
    regular_market_volume: Optional[int] = None
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


@dataclass(frozen=True)
class RawSearchMatch:
    symbol: Optional[str] = None
    short_name: Optional[str] = None
    long_name: Optional[str] = None
    exchange: Optional[str] = None


@dataclass(frozen=True)
class RawBar:
    date: date
    close: Optional[float] = None
    high: Optional[float] = None
    low: Optional[float] = None
    volume: Optional[int] = None
