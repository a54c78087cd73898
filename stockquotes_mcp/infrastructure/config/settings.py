"""
Runtime configuration, read from the environment (and a local .env file).

Every knob has a default, so an empty environment yields a working stdio
server. Invalid values fail fast with a ValueError naming the variable.
"""

import os
from dataclasses import dataclass, replace
from typing import Any, Mapping, Optional

from dotenv import load_dotenv

SERVER_NAME = "stock-quotes-server"
SERVER_VERSION = "1.0.4"
PRODUCT_NAME = "StockQuotes.MCP"

TRANSPORTS = ("stdio", "http")


@dataclass(frozen=True)
class ServerSettings:
    name: str = SERVER_NAME
    version: str = SERVER_VERSION
    transport: str = "stdio"
    http_host: str = "0.0.0.0"
    http_port: int = 3000
    log_level: str = "INFO"
    json_logs: bool = False
    upstream_timeout_seconds: float = 30.0
    quote_ttl_seconds: float = 300.0
    search_ttl_seconds: float = 1800.0
    cache_max_size: int = 1024
    search_max_results: int = 10
    rate_limit_max_requests: int = 100
    rate_limit_window_seconds: float = 900.0

    def __post_init__(self) -> None:
        if self.transport not in TRANSPORTS:
            raise ValueError(
                f"MCP_TRANSPORT must be one of {', '.join(TRANSPORTS)}, got {self.transport!r}"
            )
        if not 1 <= self.http_port <= 65535:
            raise ValueError(f"HTTP_PORT must be between 1 and 65535, got {self.http_port}")


def load_settings(environ: Optional[Mapping[str, str]] = None, **overrides: Any) -> ServerSettings:
    """Build ServerSettings from *environ* (default: os.environ after load_dotenv).

    Keyword overrides (e.g. from CLI flags) win over the environment; None
    values are ignored.
    """
    if environ is None:
        load_dotenv()
        environ = os.environ

    settings = ServerSettings(
        name=environ.get("MCP_SERVER_NAME", SERVER_NAME),
        transport=environ.get("MCP_TRANSPORT", "stdio").strip().lower(),
        http_host=environ.get("HTTP_HOST", "0.0.0.0"),
        http_port=_int(environ, "HTTP_PORT", _int(environ, "PORT", 3000)),
        log_level=environ.get("LOG_LEVEL", "INFO").upper(),
        json_logs=environ.get("ENVIRONMENT", "").lower() == "production",
        upstream_timeout_seconds=_float(environ, "UPSTREAM_TIMEOUT_SECONDS", 30.0),
        quote_ttl_seconds=_float(environ, "QUOTE_CACHE_TTL_SECONDS", 300.0),
        search_ttl_seconds=_float(environ, "SEARCH_CACHE_TTL_SECONDS", 1800.0),
        cache_max_size=_int(environ, "CACHE_MAX_SIZE", 1024),
        search_max_results=_int(environ, "SEARCH_MAX_RESULTS", 10),
        rate_limit_max_requests=_int(environ, "RATE_LIMIT_MAX_REQUESTS", 100),
        rate_limit_window_seconds=_float(environ, "RATE_LIMIT_WINDOW_SECONDS", 900.0),
    )
    explicit = {key: value for key, value in overrides.items() if value is not None}
    return replace(settings, **explicit) if explicit else settings


def _int(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc
    if value < 0:
        raise ValueError(f"{name} must not be negative, got {value}")
    return value


def _float(environ: Mapping[str, str], name: str, default: float) -> float:
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc
    if value < 0:
        raise ValueError(f"{name} must not be negative, got {value}")
    return value
