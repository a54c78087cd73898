"""
Composition Root: wires the upstream adapter, cache, serializer and service,
then hands the service to the configured transport.
"""

from typing import Optional

import structlog

from stockquotes_mcp.application.services.call_serializer import CallSerializer
from stockquotes_mcp.application.services.stock_quotes_service import StockQuotesService
from stockquotes_mcp.infrastructure.caching.ttl_response_cache import TTLResponseCache
from stockquotes_mcp.infrastructure.config.settings import ServerSettings
from stockquotes_mcp.infrastructure.stock_data.yfinance_adapter import YFinanceMarketDataClient
from stockquotes_mcp.infrastructure.transports.base import TransportStrategy
from stockquotes_mcp.infrastructure.transports.factory import TransportFactory

logger = structlog.get_logger(__name__)


def build_service(settings: ServerSettings) -> StockQuotesService:
    """Wire the production StockQuotesService from *settings*."""
    client = YFinanceMarketDataClient(
        timeout_seconds=settings.upstream_timeout_seconds,
        search_max_results=settings.search_max_results,
    )
    return StockQuotesService(
        client,
        TTLResponseCache(max_size=settings.cache_max_size),
        CallSerializer(),
        quote_ttl_seconds=settings.quote_ttl_seconds,
        search_ttl_seconds=settings.search_ttl_seconds,
    )


class StockQuotesServer:
    """One running MCP server: a service plus the transport exposing it."""

    def __init__(self, settings: ServerSettings, service: Optional[StockQuotesService] = None) -> None:
        self.settings = settings
        self.service = service or build_service(settings)
        self.transport: TransportStrategy = TransportFactory.create(
            settings.transport, settings, self.service
        )

    async def start(self) -> None:
        logger.info(
            "server_starting",
            name=self.settings.name,
            version=self.settings.version,
            transport=self.transport.transport_type,
            host=self.settings.http_host if self.transport.transport_type == "http" else None,
            port=self.settings.http_port if self.transport.transport_type == "http" else None,
        )
        await self.transport.connect()

    async def close(self) -> None:
        await self.transport.close()
        logger.info("server_stopped", transport=self.transport.transport_type)


def create_server(
    settings: ServerSettings, service: Optional[StockQuotesService] = None
) -> StockQuotesServer:
    return StockQuotesServer(settings, service)
