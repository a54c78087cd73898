"""
MCP tool registrations: Infrastructure entrypoint.

The FastMCP decorator is an MCP-SDK infrastructure concern and must NOT appear
in the application or domain layers. This module binds each StockQuotesService
operation to an MCP tool with a typed argument schema. Errors are not
reinterpreted here: an exception raised by the service becomes an ``isError``
tool result carrying the exception message.
"""

import dataclasses
from typing import Annotated, Any, Optional

import structlog
from mcp.server.fastmcp import FastMCP
from mcp.server.lowlevel import Server
from pydantic import Field

from stockquotes_mcp.application.services.stock_quotes_service import StockQuotesService

logger = structlog.get_logger(__name__)

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"

Ticker = Annotated[
    str,
    Field(min_length=1, max_length=10, description="Stock ticker symbol (e.g. AAPL, MSFT)"),
]
QuoteFields = Annotated[
    Optional[list[str]],
    Field(
        description=(
            "Optional list of specific fields to return, e.g. regularMarketPrice, "
            "marketCap, currency, exchange. 'name' selects shortName and longName."
        ),
    ),
]
IsoDate = Annotated[str, Field(pattern=DATE_PATTERN, description="Date in YYYY-MM-DD format")]


def build_mcp_server(name: str, version: str, service: StockQuotesService) -> FastMCP:
    """Create a FastMCP server named *name* with every stock tool registered."""
    server = FastMCP(name)
    lowlevel_server(server).version = version
    register_tools(server, service)
    return server


def lowlevel_server(server: FastMCP) -> Server:
    """The low-level MCP server behind *server*.

    FastMCP has no public accessor for it; this is the only place that reaches in.
    """
    return server._mcp_server


def register_tools(server: FastMCP, service: StockQuotesService) -> None:
    """Register the four stock tools on *server*, backed by *service*.

    Args:
        server:  FastMCP instance; tools are registered exactly once per instance.
        service: StockQuotesService shared by every tool.
    """

    @server.tool(
        name="get_stock_quote",
        title="Get Stock Quote",
        description=(
            "Get the current stock quote for a ticker symbol, including price, change, "
            "volume, market cap and valuation ratios."
        ),
    )
    async def get_stock_quote(ticker: Ticker, fields: QuoteFields = None) -> dict[str, Any]:
        logger.info("tool_invoked", tool="get_stock_quote", ticker=ticker)
        quote = await service.get_quote(ticker, fields)
        return quote.to_dict()

    @server.tool(
        name="get_stock_quotes",
        title="Get Multiple Stock Quotes",
        description="Get current stock quotes for several ticker symbols in one request.",
    )
    async def get_stock_quotes(
        tickers: Annotated[
            list[str],
            Field(min_length=1, description="List of stock ticker symbols (e.g. ['AAPL', 'MSFT'])"),
        ],
        fields: QuoteFields = None,
    ) -> list[dict[str, Any]]:
        logger.info("tool_invoked", tool="get_stock_quotes", tickers=tickers)
        quotes = await service.get_quotes(tickers, fields)
        return [quote.to_dict() for quote in quotes]

    @server.tool(
        name="search_stocks",
        title="Search Stocks",
        description=(
            "Search for stocks by company name or ticker symbol. "
            "Returns matching results with symbol, name, and exchange information."
        ),
    )
    async def search_stocks(
        query: Annotated[
            str, Field(min_length=1, description="Company name or ticker symbol to search for")
        ],
    ) -> dict[str, Any]:
        logger.info("tool_invoked", tool="search_stocks", query=query)
        results = await service.search(query)
        return {"results": [dataclasses.asdict(result) for result in results]}

    @server.tool(
        name="get_historical_data",
        title="Get Historical Stock Data",
        description=(
            "Get daily closing prices, highs, lows and volumes for a ticker between two "
            "dates (inclusive, at most 5 years apart)."
        ),
    )
    async def get_historical_data(
        ticker: Ticker,
        fromDate: IsoDate,  # noqa: N803
        toDate: IsoDate,  # noqa: N803
    ) -> dict[str, Any]:
        logger.info(
            "tool_invoked", tool="get_historical_data", ticker=ticker, from_date=fromDate, to_date=toDate
        )
        points = await service.get_historical_data(ticker, fromDate, toDate)
        return {"closingPrices": [dataclasses.asdict(point) for point in points]}
