from unittest.mock import AsyncMock

import pytest

from stockquotes_mcp.infrastructure.config.settings import ServerSettings
from stockquotes_mcp.infrastructure.transports.factory import TransportFactory
from stockquotes_mcp.infrastructure.transports.http_transport import HttpTransportStrategy
from stockquotes_mcp.infrastructure.transports.stdio_transport import StdioTransportStrategy


def test_factory_builds_stdio(service):
    transport = TransportFactory.create("stdio", ServerSettings(), service)

    assert isinstance(transport, StdioTransportStrategy)
    assert transport.transport_type == "stdio"


def test_factory_builds_http_from_settings(service):
    settings = ServerSettings(transport="http", http_host="127.0.0.1", http_port=8080)

    transport = TransportFactory.create("HTTP", settings, service)

    assert isinstance(transport, HttpTransportStrategy)
    assert (transport.host, transport.port) == ("127.0.0.1", 8080)


def test_factory_rejects_unknown_transport(service):
    with pytest.raises(ValueError, match="Unsupported transport type: carrier-pigeon"):
        TransportFactory.create("carrier-pigeon", ServerSettings(), service)


@pytest.mark.asyncio
async def test_stdio_registers_tools_once_and_serves(service):
    transport = StdioTransportStrategy("stock-quotes-server", "1.0.4", service)
    tools = await transport.server.list_tools()
    assert len(tools) == 4

    transport.server.run_stdio_async = AsyncMock()
    await transport.connect()
    transport.server.run_stdio_async.assert_awaited_once()

    await transport.close()
    await transport.close()
