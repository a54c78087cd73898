import pytest
from typer.testing import CliRunner

from stockquotes_mcp.infrastructure.entrypoints import cli

runner = CliRunner()


class FakeServer:
    def __init__(self, settings, fail=False):
        self.settings = settings
        self.fail = fail
        self.started = False
        self.closed = False

    async def start(self):
        if self.fail:
            raise RuntimeError("Failed to start HTTP server: address in use")
        self.started = True

    async def close(self):
        self.closed = True


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("MCP_TRANSPORT", "HTTP_PORT", "PORT", "HTTP_HOST", "LOG_LEVEL", "ENVIRONMENT"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(cli, "configure_logging", lambda *args, **kwargs: None)


@pytest.fixture
def servers(monkeypatch):
    created = []

    def fake_create_server(settings):
        server = FakeServer(settings)
        created.append(server)
        return server

    monkeypatch.setattr(cli, "create_server", fake_create_server)
    return created


@pytest.mark.parametrize("flag", ["--version", "-v"])
def test_version(flag):
    result = runner.invoke(cli.app, [flag])

    assert result.exit_code == 0
    assert result.output.strip() == "StockQuotes.MCP version 1.0.4"


def test_help_lists_options():
    result = runner.invoke(cli.app, ["-h"])

    assert result.exit_code == 0
    assert "--transport" in result.output
    assert "--http-port" in result.output


def test_defaults_to_stdio(servers):
    result = runner.invoke(cli.app, [])

    assert result.exit_code == 0
    assert servers[0].settings.transport == "stdio"
    assert servers[0].started and servers[0].closed


def test_http_options(servers):
    result = runner.invoke(cli.app, ["-t", "http", "--http-port", "8080", "--http-host", "localhost"])

    assert result.exit_code == 0
    settings = servers[0].settings
    assert (settings.transport, settings.http_port, settings.http_host) == ("http", 8080, "localhost")


@pytest.mark.parametrize("args", [["--http-port", "0"], ["--http-port", "65536"], ["-t", "carrier-pigeon"]])
def test_invalid_options_are_rejected(servers, args):
    result = runner.invoke(cli.app, args)

    assert result.exit_code != 0
    assert servers == []


def test_startup_failure_exits_with_status_one(monkeypatch):
    monkeypatch.setattr(cli, "create_server", lambda settings: FakeServer(settings, fail=True))

    result = runner.invoke(cli.app, ["-t", "http"])

    assert result.exit_code == 1
