"""
Mapping from narrow upstream records to the stable output entities.
Incomplete upstream records are rejected here (None), never emitted partially.
"""

from typing import Optional

from stockquotes_mcp.domain.entities.stock_quote import HistoricalPoint, SearchResult, StockQuote
from stockquotes_mcp.domain.entities.upstream_records import RawBar, RawQuote, RawSearchMatch

PRICE_DECIMALS = 2


def map_quote(raw: RawQuote, fallback_symbol: str) -> StockQuote:
    return StockQuote(
        symbol=raw.symbol or fallback_symbol,
        name=raw.short_name or raw.long_name,
        exchange=raw.exchange,
        currency=raw.currency,
        price=raw.regular_market_price,
        change=raw.regular_market_change,
        change_percent=raw.regular_market_change_percent,
        volume=raw.regular_market_volume,
        market_cap=raw.market_cap,
        fifty_two_week_low=raw.fifty_two_week_low,
        fifty_two_week_high=raw.fifty_two_week_high,
        average_daily_volume_3_month=raw.average_daily_volume_3_month,
        trailing_pe=raw.trailing_pe,
        forward_pe=raw.forward_pe,
        dividend_yield=raw.dividend_yield,
        eps_trailing_twelve_months=raw.eps_trailing_twelve_months,
        eps_forward=raw.eps_forward,
        book_value=raw.book_value,
        price_to_book=raw.price_to_book,
        market_state=raw.market_state,
        quote_type=raw.quote_type,
    )


def map_search_match(raw: RawSearchMatch) -> Optional[SearchResult]:
    name = raw.short_name or raw.long_name
    if not (raw.symbol and raw.exchange and name):
        return None
    return SearchResult(symbol=raw.symbol, name=name, exchange=raw.exchange)


def map_bar(raw: RawBar) -> Optional[HistoricalPoint]:
    if raw.close is None or raw.high is None or raw.low is None or raw.volume is None:
        return None
    return HistoricalPoint(
        date=raw.date.isoformat(),
        close=round(raw.close, PRICE_DECIMALS),
        high=round(raw.high, PRICE_DECIMALS),
        low=round(raw.low, PRICE_DECIMALS),
        volume=raw.volume,
    )
