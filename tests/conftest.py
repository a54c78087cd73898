import asyncio
import logging
from datetime import date
from typing import Optional, Sequence, Union

import pytest
import structlog

from stockquotes_mcp.application.services.call_serializer import CallSerializer
from stockquotes_mcp.application.services.stock_quotes_service import StockQuotesService
from stockquotes_mcp.domain.entities.upstream_records import RawBar, RawQuote, RawSearchMatch
from stockquotes_mcp.domain.ports.market_data_port import IMarketDataClient
from stockquotes_mcp.infrastructure.caching.ttl_response_cache import TTLResponseCache

TODAY = date(2024, 6, 15)


class FakeTimer:
    """Monotonic clock advanced by hand."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeMarketDataClient(IMarketDataClient):
    """Recording in-memory upstream.

    ``calls`` lists every upstream call as ``(operation, args)``; ``events``
    records start/end markers so tests can check that calls never overlap.
    """

    def __init__(self) -> None:
        self.quotes: dict[str, RawQuote] = {}
        self.search_matches: list[RawSearchMatch] = []
        self.bars: list[RawBar] = []
        self.errors: dict[str, Exception] = {}
        self.delay = 0.0
        self.calls: list[tuple] = []
        self.events: list[tuple[str, str]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def _begin(self, operation: str, *args) -> None:
        self.calls.append((operation, args))
        self.events.append(("start", operation))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        await asyncio.sleep(self.delay)

    def _end(self, operation: str) -> None:
        self.in_flight -= 1
        self.events.append(("end", operation))

    def _raise_for(self, key: str) -> None:
        if key in self.errors:
            raise self.errors[key]

    async def quote(
        self,
        symbols: Union[str, Sequence[str]],
        fields: Optional[Sequence[str]] = None,
    ) -> Union[RawQuote, list[RawQuote], None]:
        await self._begin("quote", symbols, fields)
        try:
            if isinstance(symbols, str):
                self._raise_for(symbols)
                return self.quotes.get(symbols)
            for symbol in symbols:
                self._raise_for(symbol)
            return [self.quotes[s] for s in symbols if s in self.quotes]
        finally:
            self._end("quote")

    async def search(self, query: str) -> list[RawSearchMatch]:
        await self._begin("search", query)
        try:
            self._raise_for(f"search:{query}")
            return list(self.search_matches)
        finally:
            self._end("search")

    async def chart(self, symbol: str, start: date, end: date) -> list[RawBar]:
        await self._begin("chart", symbol, start, end)
        try:
            self._raise_for(f"chart:{symbol}")
            return list(self.bars)
        finally:
            self._end("chart")

    def count(self, operation: str) -> int:
        return sum(1 for op, _ in self.calls if op == operation)


@pytest.fixture(autouse=True)
def _reset_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    structlog.reset_defaults()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def fake_client() -> FakeMarketDataClient:
    client = FakeMarketDataClient()
    client.quotes = {
        "AAPL": RawQuote(
            symbol="AAPL",
            short_name="Apple Inc.",
            long_name="Apple Inc.",
            exchange="NMS",
            currency="USD",
            regular_market_price=189.84,
            regular_market_change=1.25,
            regular_market_change_percent=0.66,
            regular_market_volume=52_000_000,
            market_cap=2_950_000_000_000,
        ),
        "MSFT": RawQuote(
            symbol="MSFT",
            long_name="Microsoft Corporation",
            exchange="NMS",
            currency="USD",
            regular_market_price=420.55,
        ),
    }
    return client


@pytest.fixture
def fake_timer() -> FakeTimer:
    return FakeTimer()


@pytest.fixture
def response_cache(fake_timer) -> TTLResponseCache:
    return TTLResponseCache(max_size=64, timer=fake_timer)


@pytest.fixture
def service(fake_client, response_cache) -> StockQuotesService:
    return StockQuotesService(fake_client, response_cache, CallSerializer(), clock=lambda: TODAY)
