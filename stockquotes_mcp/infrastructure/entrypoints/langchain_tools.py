"""
LangChain @tool wrappers: Infrastructure entrypoint.

Exposes the same StockQuotesService operations as the MCP tools, for agents
that run in-process (e.g. a LangGraph ReAct agent) instead of over MCP.
The @tool decorator is a LangChain infrastructure concern and must NOT appear
in the application or domain layers.
"""

import dataclasses
from typing import Optional

from langchain_core.tools import tool

from stockquotes_mcp.application.services.stock_quotes_service import StockQuotesService


def create_tools(service: StockQuotesService) -> list:
    """Build and return the four LangChain tools bound to *service*.

    Args:
        service: StockQuotesService implementation shared by all tools.

    Returns:
        List of four async @tool callables ready to be bound to a chat model.
    """

    @tool
    async def retrieve_stock_quote(ticker: str, fields: Optional[list[str]] = None) -> dict:
        """Retrieve the current stock quote for a given ticker symbol.

        Args:
            ticker: Stock ticker symbol (e.g. 'AMZN', 'AAPL', 'GOOGL').
            fields: Optional list of upstream fields to return (e.g.
                    ['regularMarketPrice', 'marketCap']). 'name' selects the
                    company name.

        Returns:
            Dictionary with keys such as symbol, name, exchange, currency,
            price, change, changePercent, volume, marketCap.
            Returns {'error': '<message>'} if the symbol is invalid or data
            is unavailable.
        """
        try:
            quote = await service.get_quote(ticker, fields)
            return quote.to_dict()
        except Exception as exc:
            return {"error": str(exc)}

    @tool
    async def retrieve_stock_quotes(tickers: list[str], fields: Optional[list[str]] = None) -> dict:
        """Retrieve current stock quotes for several ticker symbols at once.

        Args:
            tickers: List of stock ticker symbols (e.g. ['AAPL', 'MSFT']).
            fields:  Optional list of upstream fields to return.

        Returns:
            Dictionary with key 'result': a list of quote dictionaries.
            Returns {'error': '<message>'} on failure.
        """
        try:
            quotes = await service.get_quotes(tickers, fields)
            return {"result": [quote.to_dict() for quote in quotes]}
        except Exception as exc:
            return {"error": str(exc)}

    @tool
    async def search_stocks(query: str) -> dict:
        """Search for stocks by company name or ticker symbol.

        Args:
            query: Company name or ticker fragment (e.g. 'Apple', 'MSF').

        Returns:
            Dictionary with key 'results': a list of {symbol, name, exchange}.
            Returns {'error': '<message>'} on failure.
        """
        try:
            results = await service.search(query)
            return {"results": [dataclasses.asdict(result) for result in results]}
        except Exception as exc:
            return {"error": str(exc)}

    @tool
    async def retrieve_historical_data(ticker: str, from_date: str, to_date: str) -> dict:
        """Retrieve daily close/high/low/volume for a ticker between two dates.

        Args:
            ticker:    Stock ticker symbol (e.g. 'AMZN').
            from_date: Start date in YYYY-MM-DD format (not in the future).
            to_date:   End date in YYYY-MM-DD format, inclusive. At most five
                       years after from_date.

        Returns:
            Dictionary with key 'closingPrices': a list of
            {date, close, high, low, volume} dicts in chronological order.
            Returns {'error': '<message>'} if the range is invalid or data
            is unavailable.
        """
        try:
            points = await service.get_historical_data(ticker, from_date, to_date)
            return {"closingPrices": [dataclasses.asdict(point) for point in points]}
        except Exception as exc:
            return {"error": str(exc)}

    return [
        retrieve_stock_quote,
        retrieve_stock_quotes,
        search_stocks,
        retrieve_historical_data,
    ]
