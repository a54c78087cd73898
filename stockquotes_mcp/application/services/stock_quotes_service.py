"""
Application service: quote, search and history retrieval.

Business decisions owned here:
  - Input normalization and validation (before any cache or upstream access).
  - Cache keys and freshness: quotes 5 minutes, search 30 minutes, history never.
  - Failure classification: NotFound / RateLimited / Validation / pass-through.
  - Mapping of narrow upstream records into the stable output entities.

The upstream client, the response cache and the call serializer are injected;
no yfinance or cachetools import appears here.
"""

import asyncio
from datetime import date, timedelta
from typing import Awaitable, Callable, Iterator, Optional, Sequence, TypeVar

import structlog

from stockquotes_mcp.application.services.call_serializer import CallSerializer
from stockquotes_mcp.application.services.record_mapping import map_bar, map_quote, map_search_match
from stockquotes_mcp.application.services.request_validation import (
    normalize_fields,
    normalize_query,
    normalize_ticker,
    normalize_tickers,
    parse_date_range,
    quote_cache_key,
    quotes_cache_key,
    search_cache_key,
)
from stockquotes_mcp.domain.entities.stock_quote import HistoricalPoint, SearchResult, StockQuote
from stockquotes_mcp.domain.entities.upstream_records import RawQuote
from stockquotes_mcp.domain.errors import (
    NotFoundError,
    RateLimitError,
    StockQuotesError,
    ValidationError,
)
from stockquotes_mcp.domain.ports.market_data_port import IMarketDataClient
from stockquotes_mcp.domain.ports.response_cache_port import IResponseCache

logger = structlog.get_logger(__name__)

T = TypeVar("T")

_RATE_LIMIT_SIGNATURES = ("rate limit", "too many requests")
_NOT_FOUND_SIGNATURES = ("no definition", "not found", "delisted")


def classify_upstream_error(exc: Exception, not_found_message: str) -> Optional[StockQuotesError]:
    """Map a raw upstream failure onto the error taxonomy.

    Returns None when the failure matches no known signature and must propagate
    unchanged.
    """
    text = str(exc).lower()
    if any(signature in text for signature in _RATE_LIMIT_SIGNATURES):
        return RateLimitError()
    if any(signature in text for signature in _NOT_FOUND_SIGNATURES):
        return NotFoundError(not_found_message)
    return None


def _attribute_quotes(records: Sequence[RawQuote], symbols: Sequence[str]) -> Iterator[StockQuote]:
    # Position identifies a record only when every requested ticker came back.
    aligned = len(records) == len(symbols)
    for index, record in enumerate(records):
        if record.symbol is None and not aligned:
            logger.warning("unattributed_quote_dropped", position=index, requested=list(symbols))
            continue
        yield map_quote(record, symbols[index] if aligned else record.symbol)


def _consume_outcome(task: "asyncio.Task") -> None:
    # A detached call whose caller went away still has its exception retrieved.
    if not task.cancelled():
        task.exception()


class StockQuotesService:
    QUOTE_TTL_SECONDS: int = 300
    SEARCH_TTL_SECONDS: int = 1800

    def __init__(
        self,
        client: IMarketDataClient,
        cache: IResponseCache,
        serializer: Optional[CallSerializer] = None,
        *,
        clock: Callable[[], date] = date.today,
        quote_ttl_seconds: float = QUOTE_TTL_SECONDS,
        search_ttl_seconds: float = SEARCH_TTL_SECONDS,
    ) -> None:
        self._client = client
        self._cache = cache
        self._serializer = serializer or CallSerializer()
        self._clock = clock
        self._quote_ttl = quote_ttl_seconds
        self._search_ttl = search_ttl_seconds

    async def get_quote(self, ticker: str, fields: Optional[Sequence[str]] = None) -> StockQuote:
        """Fetch the current quote for *ticker*.

        Args:
            ticker: Ticker symbol; trimmed and upper-cased.
            fields: Optional upstream attribute names to restrict the lookup to.
                    ``"name"`` stands for both ``shortName`` and ``longName``.

        Raises:
            ValidationError: malformed ticker or fields.
            NotFoundError:   the upstream provider has no such ticker.
            RateLimitError:  the upstream provider is throttling us.
        """
        symbol = normalize_ticker(ticker)
        upstream_fields = normalize_fields(fields)
        key = quote_cache_key(symbol, upstream_fields)

        cached = self._cache.get(key)
        if cached is not None:
            logger.debug("cache_hit", key=key)
            return cached

        not_found = f"Stock ticker '{symbol}' not found"

        async def fetch() -> StockQuote:
            raw = await self._client.quote(symbol, fields=upstream_fields)
            if isinstance(raw, list):
                raw = raw[0] if raw else None
            if raw is None:
                raise NotFoundError(not_found)
            quote = map_quote(raw, symbol)
            self._cache.set(key, quote, self._quote_ttl)
            return quote

        return await self._call_upstream(fetch, not_found)

    async def get_quotes(
        self, tickers: Sequence[str], fields: Optional[Sequence[str]] = None
    ) -> list[StockQuote]:
        """Fetch several quotes with a single upstream call, in upstream order."""
        symbols = normalize_tickers(tickers)
        upstream_fields = normalize_fields(fields)
        key = quotes_cache_key(symbols, upstream_fields)

        cached = self._cache.get(key)
        if cached is not None:
            logger.debug("cache_hit", key=key)
            return list(cached)

        not_found = f"Stock tickers '{', '.join(symbols)}' not found"

        async def fetch() -> tuple[StockQuote, ...]:
            raw = await self._client.quote(symbols, fields=upstream_fields)
            records = raw if isinstance(raw, list) else [raw] if raw is not None else []
            if not records:
                raise NotFoundError(not_found)
            quotes = tuple(_attribute_quotes(records, symbols))
            if not quotes:
                raise NotFoundError(not_found)
            self._cache.set(key, quotes, self._quote_ttl)
            return quotes

        return list(await self._call_upstream(fetch, not_found))

    async def get_multiple_quotes(self, tickers: Sequence[str]) -> dict[str, StockQuote]:
        """Best-effort lookup: tickers that fail are logged and left out."""
        symbols: list[str] = []
        for ticker in tickers:
            try:
                symbol = normalize_ticker(ticker)
            except ValidationError as exc:
                logger.warning("quote_lookup_failed", ticker=ticker, error=str(exc))
                continue
            if symbol not in symbols:
                symbols.append(symbol)

        outcomes = await asyncio.gather(
            *(self.get_quote(symbol) for symbol in symbols), return_exceptions=True
        )

        quotes: dict[str, StockQuote] = {}
        for symbol, outcome in zip(symbols, outcomes):
            if isinstance(outcome, asyncio.CancelledError):
                raise outcome
            if isinstance(outcome, Exception):
                logger.warning("quote_lookup_failed", ticker=symbol, error=str(outcome))
                continue
            quotes[symbol] = outcome
        return quotes

    async def search(self, query: str) -> list[SearchResult]:
        """Search instruments by company name or ticker."""
        term = normalize_query(query)
        key = search_cache_key(term)

        cached = self._cache.get(key)
        if cached is not None:
            logger.debug("cache_hit", key=key)
            return list(cached)

        async def fetch() -> tuple[SearchResult, ...]:
            matches = await self._client.search(term)
            results = tuple(
                result for result in map(map_search_match, matches or []) if result is not None
            )
            self._cache.set(key, results, self._search_ttl)
            return results

        return list(await self._call_upstream(fetch, f"No instruments found for '{term}'"))

    async def get_historical_data(
        self, ticker: str, from_date: str, to_date: str
    ) -> list[HistoricalPoint]:
        """Daily close/high/low/volume between two inclusive ``YYYY-MM-DD`` dates.

        Raises:
            ValidationError: invalid range; raised before any upstream call.
            NotFoundError:   any upstream failure for this ticker and range.
        """
        symbol = normalize_ticker(ticker)
        date_range = parse_date_range(from_date, to_date, self._clock())
        # The upstream range end is exclusive.
        upstream_end = date_range.to_date + timedelta(days=1)

        try:
            bars = await self._detached(
                lambda: self._client.chart(symbol, date_range.from_date, upstream_end)
            )
        except ValidationError:
            raise
        except Exception as exc:
            logger.error(
                "historical_data_failed",
                ticker=symbol,
                from_date=from_date,
                to_date=to_date,
                error=str(exc),
            )
            raise NotFoundError(
                f"Could not fetch historical data for {symbol} from {from_date} to {to_date}. "
                "Please check the ticker and date range."
            ) from exc

        return [point for point in map(map_bar, bars or []) if point is not None]

    async def _detached(self, task: Callable[[], Awaitable[T]]) -> T:
        """Run *task* through the serializer; cancelling the caller leaves it running."""
        upstream = self._serializer.enqueue(task)
        upstream.add_done_callback(_consume_outcome)
        return await asyncio.shield(upstream)

    async def _call_upstream(self, task: Callable[[], Awaitable[T]], not_found_message: str) -> T:
        try:
            return await self._detached(task)
        except StockQuotesError:
            raise
        except Exception as exc:
            classified = classify_upstream_error(exc, not_found_message)
            logger.warning(
                "upstream_call_failed",
                error=str(exc),
                error_type=type(exc).__name__,
                classified_as=classified.code if classified else None,
            )
            if classified is None:
                raise
            raise classified from exc
