"""
HTTP transport: stateless Streamable HTTP MCP endpoint on FastAPI + uvicorn.

Routes:
    POST   /mcp     JSON-RPC over MCP Streamable HTTP, JSON responses, no sessions.
                    Every request gets a fresh MCP server with fresh tool
                    registration; the StockQuotesService (cache, serializer)
                    is shared.
    GET    /mcp     405, JSON-RPC error -32000.
    DELETE /mcp     405, JSON-RPC error -32000.
    GET    /health  {"status": "healthy", "name": ..., "version": ...}
"""

import socket
from typing import Any, Optional

import structlog
import uvicorn
from fastapi import FastAPI
from fastapi.responses import JSONResponse
from mcp.server.streamable_http_manager import StreamableHTTPSessionManager
from starlette.types import Message, Receive, Scope, Send

from stockquotes_mcp.application.services.stock_quotes_service import StockQuotesService
from stockquotes_mcp.infrastructure.entrypoints.tool_registry import (
    build_mcp_server,
    lowlevel_server,
)
from stockquotes_mcp.infrastructure.http.middleware import (
    RateLimitMiddleware,
    SecurityHeadersMiddleware,
)
from stockquotes_mcp.infrastructure.transports.base import TransportStrategy

logger = structlog.get_logger(__name__)

METHOD_NOT_ALLOWED_CODE = -32000
INTERNAL_ERROR_CODE = -32603


def jsonrpc_error(code: int, message: str, status_code: int) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"jsonrpc": "2.0", "error": {"code": code, "message": message}, "id": None},
    )


class StatelessMCPEndpoint:
    """Raw ASGI endpoint serving one MCP request with a throwaway server instance."""

    def __init__(self, name: str, version: str, service: StockQuotesService) -> None:
        self._name = name
        self._version = version
        self._service = service

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        response_started = False

        async def tracking_send(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            server = build_mcp_server(self._name, self._version, self._service)
            manager = StreamableHTTPSessionManager(
                app=lowlevel_server(server), json_response=True, stateless=True
            )
            async with manager.run():
                await manager.handle_request(scope, receive, tracking_send)
        except Exception:
            logger.exception("mcp_request_failed")
            if not response_started:
                response = jsonrpc_error(INTERNAL_ERROR_CODE, "Internal server error", 500)
                await response(scope, receive, send)


class HttpTransportStrategy(TransportStrategy):
    def __init__(
        self,
        name: str,
        version: str,
        service: StockQuotesService,
        host: str = "0.0.0.0",
        port: int = 3000,
        rate_limit_max_requests: int = 100,
        rate_limit_window_seconds: float = 900.0,
    ) -> None:
        self._name = name
        self._version = version
        self._host = host
        self._port = port
        self._uvicorn: Optional[uvicorn.Server] = None
        self.app = self._create_app(service, rate_limit_max_requests, rate_limit_window_seconds)

    @property
    def transport_type(self) -> str:
        return "http"

    @property
    def host(self) -> str:
        return self._host

    @property
    def port(self) -> int:
        return self._port

    def _create_app(
        self, service: StockQuotesService, max_requests: int, window_seconds: float
    ) -> FastAPI:
        app = FastAPI(title="Stock Quotes MCP Server", version=self._version)
        app.add_middleware(
            RateLimitMiddleware, max_requests=max_requests, window_seconds=window_seconds
        )
        # Added last so it also wraps the rate limiter's 429 responses.
        app.add_middleware(SecurityHeadersMiddleware)

        app.add_route(
            "/mcp",
            StatelessMCPEndpoint(self._name, self._version, service),
            methods=["POST"],
            include_in_schema=False,
        )

        @app.get("/mcp", include_in_schema=False)
        async def mcp_get() -> JSONResponse:
            return jsonrpc_error(METHOD_NOT_ALLOWED_CODE, "Method not allowed.", 405)

        @app.delete("/mcp", include_in_schema=False)
        async def mcp_delete() -> JSONResponse:
            return jsonrpc_error(METHOD_NOT_ALLOWED_CODE, "Method not allowed.", 405)

        @app.get("/health")
        async def health() -> dict[str, Any]:
            return {"status": "healthy", "name": self._name, "version": self._version}

        return app

    async def connect(self) -> None:
        sock = self._bind()
        config = uvicorn.Config(self.app, log_config=None, lifespan="off")
        self._uvicorn = uvicorn.Server(config)
        logger.info(
            "http_transport_listening",
            url=f"http://{self._host}:{self._port}/mcp",
            host=self._host,
            port=self._port,
        )
        try:
            await self._uvicorn.serve(sockets=[sock])
        finally:
            sock.close()

    async def close(self) -> None:
        if self._uvicorn is not None:
            self._uvicorn.should_exit = True
            logger.info("http_transport_closed", host=self._host, port=self._port)

    def _bind(self) -> socket.socket:
        family = socket.AF_INET6 if ":" in self._host else socket.AF_INET
        sock = socket.socket(family, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            sock.bind((self._host, self._port))
        except OSError as exc:
            sock.close()
            logger.error("http_bind_failed", host=self._host, port=self._port, error=str(exc))
            raise RuntimeError(f"Failed to start HTTP server: {exc}") from exc
        sock.set_inheritable(True)
        return sock
