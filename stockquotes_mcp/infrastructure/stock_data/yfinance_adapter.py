"""
Infrastructure adapter: yfinance → IMarketDataClient.

All yfinance-specific details (Ticker.info, Tickers, Search, history()) are
confined here; the rest of the codebase depends only on IMarketDataClient.
yfinance is blocking, so every call runs in a worker thread and is bounded by
the configured timeout. A timed-out worker thread cannot be stopped and may
still be running when the next call starts, so after a timeout the guarantee
of at most one upstream call in flight no longer holds. Upstream payloads are
narrowed to RawQuote, RawSearchMatch and RawBar before they leave this module.
Every RawQuote carries a symbol, the requested one when Yahoo omits it.
"""

import asyncio
import math
from datetime import date
from typing import Any, Callable, Optional, Sequence, Union

import structlog
import yfinance as yf

from stockquotes_mcp.domain.entities.upstream_records import RawBar, RawQuote, RawSearchMatch
from stockquotes_mcp.domain.errors import UpstreamTimeoutError
from stockquotes_mcp.domain.ports.market_data_port import IMarketDataClient

logger = structlog.get_logger(__name__)

# Ticker.info key → RawQuote attribute
_QUOTE_FIELDS = {
    "symbol": "symbol",
    "shortName": "short_name",
    "longName": "long_name",
    "exchange": "exchange",
    "currency": "currency",
    "regularMarketPrice": "regular_market_price",
    "regularMarketChange": "regular_market_change",
    "regularMarketChangePercent": "regular_market_change_percent",
    "regularMarketVolume": "regular_market_volume",
    "marketCap": "market_cap",
    "fiftyTwoWeekLow": "fifty_two_week_low",
    "fiftyTwoWeekHigh": "fifty_two_week_high",
    "averageDailyVolume3Month": "average_daily_volume_3_month",
    "trailingPE": "trailing_pe",
    "forwardPE": "forward_pe",
    "dividendYield": "dividend_yield",
    "epsTrailingTwelveMonths": "eps_trailing_twelve_months",
    "epsForward": "eps_forward",
    "bookValue": "book_value",
    "priceToBook": "price_to_book",
    "marketState": "market_state",
    "quoteType": "quote_type",
}

# An info payload without any of these describes no listed instrument.
_IDENTITY_KEYS = ("symbol", "shortName", "longName", "regularMarketPrice")


class YFinanceMarketDataClient(IMarketDataClient):
    """Fetches quotes, search matches and daily bars from Yahoo Finance."""

    DEFAULT_TIMEOUT_SECONDS: float = 30.0
    DEFAULT_SEARCH_MAX_RESULTS: int = 10

    def __init__(
        self,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        search_max_results: int = DEFAULT_SEARCH_MAX_RESULTS,
    ) -> None:
        self._timeout_seconds = timeout_seconds
        self._search_max_results = search_max_results

    async def quote(
        self,
        symbols: Union[str, Sequence[str]],
        fields: Optional[Sequence[str]] = None,
    ) -> Union[RawQuote, list[RawQuote], None]:
        if isinstance(symbols, str):
            info = await self._call("quote", _fetch_info, symbols)
            return _to_raw_quote(info, fields, symbols)

        infos = await self._call("quote", _fetch_infos, list(symbols))
        quotes = [_to_raw_quote(info, fields, symbol) for symbol, info in infos]
        return [q for q in quotes if q is not None]

    async def search(self, query: str) -> list[RawSearchMatch]:
        matches = await self._call("search", _fetch_search, query, self._search_max_results)
        return [
            RawSearchMatch(
                symbol=match.get("symbol"),
                short_name=match.get("shortname"),
                long_name=match.get("longname"),
                exchange=match.get("exchange"),
            )
            for match in matches or []
        ]

    async def chart(self, symbol: str, start: date, end: date) -> list[RawBar]:
        history = await self._call("chart", _fetch_history, symbol, start, end)
        if history is None or history.empty:
            return []
        return [
            RawBar(
                date=timestamp.date(),
                close=_number(row.get("Close")),
                high=_number(row.get("High")),
                low=_number(row.get("Low")),
                volume=_integer(row.get("Volume")),
            )
            for timestamp, row in history.iterrows()
        ]

    async def _call(self, operation: str, fn: Callable[..., Any], *args: Any) -> Any:
        logger.debug("upstream_request", operation=operation, args=args)
        call = asyncio.to_thread(fn, *args)
        if not self._timeout_seconds:
            return await call
        try:
            return await asyncio.wait_for(call, timeout=self._timeout_seconds)
        except asyncio.TimeoutError as exc:
            logger.warning(
                "upstream_timeout", operation=operation, timeout_seconds=self._timeout_seconds
            )
            raise UpstreamTimeoutError(
                f"Upstream {operation} call timed out after {self._timeout_seconds:g} seconds"
            ) from exc


# ---------------------------------------------------------------------------
# Blocking yfinance calls (run in a worker thread)
# ---------------------------------------------------------------------------
def _fetch_info(symbol: str) -> dict:
    return yf.Ticker(symbol).info or {}


def _fetch_infos(symbols: list[str]) -> list[tuple[str, dict]]:
    tickers = yf.Tickers(" ".join(symbols)).tickers
    return [(s, tickers[s].info or {}) for s in symbols if s in tickers]


def _fetch_search(query: str, max_results: int) -> list[dict]:
    return yf.Search(query, max_results=max_results, news_count=0).quotes


def _fetch_history(symbol: str, start: date, end: date):
    return yf.Ticker(symbol).history(
        start=start.isoformat(),
        end=end.isoformat(),
        interval="1d",
        auto_adjust=False,
        raise_errors=True,
    )


# ---------------------------------------------------------------------------
# Narrowing helpers
# ---------------------------------------------------------------------------
def _to_raw_quote(
    info: dict, fields: Optional[Sequence[str]], requested_symbol: str
) -> Optional[RawQuote]:
    if not any(info.get(key) is not None for key in _IDENTITY_KEYS):
        return None
    selected = set(fields) if fields else None
    values = {
        attribute: _clean(info.get(key))
        for key, attribute in _QUOTE_FIELDS.items()
        if selected is None or key in selected
    }
    values["symbol"] = info.get("symbol") or requested_symbol
    return RawQuote(**values)


def _clean(value: Any) -> Any:
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value


def _number(value: Any) -> Optional[float]:
    if value is None:
        return None
    number = float(value)
    return number if math.isfinite(number) else None


def _integer(value: Any) -> Optional[int]:
    number = _number(value)
    return int(number) if number is not None else None
