from datetime import date

import pytest
from mcp.shared.memory import create_connected_server_and_client_session

from stockquotes_mcp.domain.entities.upstream_records import RawBar, RawSearchMatch
from stockquotes_mcp.infrastructure.entrypoints.tool_registry import build_mcp_server, lowlevel_server


@pytest.fixture
def mcp_server(service):
    return build_mcp_server("stock-quotes-server", "1.0.4", service)


def test_server_advertises_its_name_and_version(mcp_server):
    options = lowlevel_server(mcp_server).create_initialization_options()

    assert options.server_name == "stock-quotes-server"
    assert options.server_version == "1.0.4"


@pytest.mark.asyncio
async def test_lists_the_four_tools(mcp_server):
    async with create_connected_server_and_client_session(lowlevel_server(mcp_server)) as client:
        tools = (await client.list_tools()).tools

    assert {tool.name for tool in tools} == {
        "get_stock_quote",
        "get_stock_quotes",
        "search_stocks",
        "get_historical_data",
    }
    by_name = {tool.name: tool for tool in tools}
    assert by_name["get_stock_quote"].title == "Get Stock Quote"
    assert by_name["get_stock_quote"].inputSchema["required"] == ["ticker"]
    assert set(by_name["get_historical_data"].inputSchema["required"]) == {"ticker", "fromDate", "toDate"}


@pytest.mark.asyncio
async def test_get_stock_quote_returns_structured_quote(mcp_server):
    async with create_connected_server_and_client_session(lowlevel_server(mcp_server)) as client:
        result = await client.call_tool("get_stock_quote", {"ticker": "aapl", "fields": ["name"]})

    assert not result.isError
    assert result.structuredContent["symbol"] == "AAPL"
    assert result.structuredContent["name"] == "Apple Inc."
    assert '"symbol"' in result.content[0].text


@pytest.mark.asyncio
async def test_get_stock_quotes_wraps_list_in_result(mcp_server):
    async with create_connected_server_and_client_session(lowlevel_server(mcp_server)) as client:
        result = await client.call_tool("get_stock_quotes", {"tickers": ["AAPL", "MSFT"]})

    assert not result.isError
    assert [q["symbol"] for q in result.structuredContent["result"]] == ["AAPL", "MSFT"]


@pytest.mark.asyncio
async def test_search_stocks(mcp_server, fake_client):
    fake_client.search_matches = [RawSearchMatch(symbol="AAPL", short_name="Apple Inc.", exchange="NMS")]

    async with create_connected_server_and_client_session(lowlevel_server(mcp_server)) as client:
        result = await client.call_tool("search_stocks", {"query": "apple"})

    assert result.structuredContent == {
        "results": [{"symbol": "AAPL", "name": "Apple Inc.", "exchange": "NMS"}]
    }


@pytest.mark.asyncio
async def test_get_historical_data(mcp_server, fake_client):
    fake_client.bars = [RawBar(date=date(2024, 1, 2), close=185.6449, high=188.4401, low=183.8849, volume=1)]

    async with create_connected_server_and_client_session(lowlevel_server(mcp_server)) as client:
        result = await client.call_tool(
            "get_historical_data", {"ticker": "AAPL", "fromDate": "2024-01-02", "toDate": "2024-01-02"}
        )

    assert result.structuredContent == {
        "closingPrices": [{"date": "2024-01-02", "close": 185.64, "high": 188.44, "low": 183.88, "volume": 1}]
    }


@pytest.mark.asyncio
async def test_service_errors_become_error_results(mcp_server):
    async with create_connected_server_and_client_session(lowlevel_server(mcp_server)) as client:
        result = await client.call_tool("get_stock_quote", {"ticker": "NOPE"})

    assert result.isError
    assert "Stock ticker 'NOPE' not found" in result.content[0].text


@pytest.mark.asyncio
async def test_schema_violations_are_rejected(mcp_server, fake_client):
    async with create_connected_server_and_client_session(lowlevel_server(mcp_server)) as client:
        too_long = await client.call_tool("get_stock_quote", {"ticker": "ABCDEFGHIJK"})
        bad_date = await client.call_tool(
            "get_historical_data", {"ticker": "AAPL", "fromDate": "01/02/2024", "toDate": "2024-01-04"}
        )

    assert too_long.isError
    assert bad_date.isError
    assert fake_client.calls == []


@pytest.mark.asyncio
async def test_inverted_range_is_reported(mcp_server, fake_client):
    async with create_connected_server_and_client_session(lowlevel_server(mcp_server)) as client:
        result = await client.call_tool(
            "get_historical_data", {"ticker": "AAPL", "fromDate": "2024-01-10", "toDate": "2024-01-01"}
        )

    assert result.isError
    assert "must be on or before" in result.content[0].text
    assert fake_client.calls == []
