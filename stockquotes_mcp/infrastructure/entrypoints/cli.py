"""StockQuotes.MCP command line: start the MCP server on stdio or HTTP.

Usage:
    stockquotes-mcp                              # stdio transport
    stockquotes-mcp --transport http             # HTTP transport on 0.0.0.0:3000
    stockquotes-mcp -t http --http-port 8080 --http-host localhost

Environment:
    MCP_TRANSPORT, HTTP_HOST, HTTP_PORT    Defaults for the options below.
    LOG_LEVEL                              Log threshold (default INFO).
    ENVIRONMENT=production                 JSON log lines on stderr.
"""

import asyncio
import contextlib
import signal
from enum import Enum
from typing import Optional

import structlog
import typer

from stockquotes_mcp.infrastructure.config.settings import (
    PRODUCT_NAME,
    SERVER_VERSION,
    load_settings,
)
from stockquotes_mcp.infrastructure.entrypoints.server import StockQuotesServer, create_server
from stockquotes_mcp.infrastructure.logging.structlog_config import configure_logging

logger = structlog.get_logger(__name__)

app = typer.Typer(
    add_completion=False,
    help="MCP Stock Quotes Server",
    context_settings={"help_option_names": ["-h", "--help"]},
)


class Transport(str, Enum):
    stdio = "stdio"
    http = "http"


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"{PRODUCT_NAME} version {SERVER_VERSION}")
        raise typer.Exit()


@app.command()
def main(
    transport: Optional[Transport] = typer.Option(
        None,
        "--transport",
        "-t",
        case_sensitive=False,
        help="Transport type to use (default: stdio).",
    ),
    http_port: Optional[int] = typer.Option(
        None,
        "--http-port",
        "--httpPort",
        min=1,
        max=65535,
        help="HTTP port for the HTTP transport (default: 3000).",
    ),
    http_host: Optional[str] = typer.Option(
        None,
        "--http-host",
        "--httpHost",
        help="HTTP host to bind to (default: 0.0.0.0).",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        callback=_version_callback,
        is_eager=True,
        help="Show version information and exit.",
    ),
) -> None:
    """Start the MCP Stock Quotes Server."""
    try:
        settings = load_settings(
            transport=transport.value if transport else None,
            http_port=http_port,
            http_host=http_host,
        )
    except ValueError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    configure_logging(settings.log_level, settings.json_logs)
    logger.info("server_bootstrap", transport=settings.transport)

    try:
        server = create_server(settings)
        asyncio.run(_serve(server))
    except Exception as exc:
        logger.error("server_start_failed", error=str(exc), error_type=type(exc).__name__)
        raise typer.Exit(code=1) from exc


async def _serve(server: StockQuotesServer) -> None:
    loop = asyncio.get_running_loop()
    main_task = asyncio.current_task()
    for sig in (signal.SIGINT, signal.SIGTERM):
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(sig, main_task.cancel)

    try:
        await server.start()
    except asyncio.CancelledError:
        logger.info("server_shutting_down")
    finally:
        await server.close()


if __name__ == "__main__":
    app()
