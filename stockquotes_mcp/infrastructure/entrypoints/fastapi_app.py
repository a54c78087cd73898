"""
FastAPI entry point: run the HTTP transport under an external ASGI server.

This module is a Composition Root for deployments that start uvicorn (or
another ASGI server) themselves instead of going through the CLI. Settings come
from the environment exactly as for the CLI.

Run locally:
    uvicorn stockquotes_mcp.infrastructure.entrypoints.fastapi_app:app --port 3000
"""

from stockquotes_mcp.infrastructure.config.settings import load_settings
from stockquotes_mcp.infrastructure.entrypoints.server import build_service
from stockquotes_mcp.infrastructure.logging.structlog_config import configure_logging
from stockquotes_mcp.infrastructure.transports.http_transport import HttpTransportStrategy

# ---------------------------------------------------------------------------
# Composition Root: wire all dependencies once at startup
# ---------------------------------------------------------------------------
_settings = load_settings()
configure_logging(_settings.log_level, _settings.json_logs)

_service = build_service(_settings)
_transport = HttpTransportStrategy(
    _settings.name,
    _settings.version,
    _service,
    host=_settings.http_host,
    port=_settings.http_port,
    rate_limit_max_requests=_settings.rate_limit_max_requests,
    rate_limit_window_seconds=_settings.rate_limit_window_seconds,
)

app = _transport.app
