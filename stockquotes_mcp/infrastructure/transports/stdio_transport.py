"""
Stdio transport: one MCP server instance for the whole process, tools
registered once, protocol frames on stdin/stdout.
"""

import structlog
from mcp.server.fastmcp import FastMCP

from stockquotes_mcp.application.services.stock_quotes_service import StockQuotesService
from stockquotes_mcp.infrastructure.entrypoints.tool_registry import build_mcp_server
from stockquotes_mcp.infrastructure.transports.base import TransportStrategy

logger = structlog.get_logger(__name__)


class StdioTransportStrategy(TransportStrategy):
    def __init__(self, name: str, version: str, service: StockQuotesService) -> None:
        self._name = name
        self._server = build_mcp_server(name, version, service)
        self._closed = False

    @property
    def transport_type(self) -> str:
        return "stdio"

    @property
    def server(self) -> FastMCP:
        return self._server

    async def connect(self) -> None:
        logger.info("stdio_transport_listening", server=self._name)
        await self._server.run_stdio_async()
        logger.info("stdio_transport_disconnected", server=self._name)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        logger.info("stdio_transport_closed", server=self._name)
