"""
Selects the transport strategy for a transport identifier.
"""

from stockquotes_mcp.application.services.stock_quotes_service import StockQuotesService
from stockquotes_mcp.infrastructure.config.settings import ServerSettings
from stockquotes_mcp.infrastructure.transports.base import TransportStrategy
from stockquotes_mcp.infrastructure.transports.http_transport import HttpTransportStrategy
from stockquotes_mcp.infrastructure.transports.stdio_transport import StdioTransportStrategy


class TransportFactory:
    @staticmethod
    def create(
        transport_type: str, settings: ServerSettings, service: StockQuotesService
    ) -> TransportStrategy:
        """Build the strategy for *transport_type*.

        Raises:
            ValueError: unknown transport type.
        """
        kind = transport_type.strip().lower()
        if kind == "stdio":
            return StdioTransportStrategy(settings.name, settings.version, service)
        if kind == "http":
            return HttpTransportStrategy(
                settings.name,
                settings.version,
                service,
                host=settings.http_host,
                port=settings.http_port,
                rate_limit_max_requests=settings.rate_limit_max_requests,
                rate_limit_window_seconds=settings.rate_limit_window_seconds,
            )
        raise ValueError(f"Unsupported transport type: {transport_type}")
