import json

import structlog

from stockquotes_mcp.infrastructure.logging.structlog_config import configure_logging


def test_json_logs_go_to_stderr(capsys):
    configure_logging("INFO", json_output=True)

    structlog.get_logger("test").info("quote_served", ticker="AAPL")

    captured = capsys.readouterr()
    assert captured.out == ""
    record = json.loads(captured.err.strip().splitlines()[-1])
    assert record["event"] == "quote_served"
    assert record["ticker"] == "AAPL"
    assert record["level"] == "info"
    assert record["service"] == "stockquotes-mcp"
    assert "timestamp" in record


def test_level_filters_lower_events(capsys):
    configure_logging("WARNING", json_output=True)

    structlog.get_logger("test").info("hidden")
    structlog.get_logger("test").warning("shown")

    err = capsys.readouterr().err
    assert "hidden" not in err
    assert "shown" in err
