import json
import logging

import pytest
import structlog
from structlog.testing import capture_logs

from bin_manager.logging import (
    CompactJSONRenderer,
    add_timestamp,
    configure_logging,
    drop_ignored_loggers,
    get_logger,
)


@pytest.fixture(autouse=True)
def reset_structlog():
    yield
    structlog.reset_defaults()
    logging.getLogger("bin_manager").setLevel(logging.NOTSET)


def test_compact_json_renderer():
    """Test single-line JSON rendering"""
    output = CompactJSONRenderer()(None, "info", {
        "timestamp": "2024-01-01T00:00:00",
        "level": "info",
        "event": "binary_ready",
        "line": 10,
        "path": "/tmp/tool",
    })

    assert "\n" not in output
    assert json.loads(output) == {
        "ts": "2024-01-01T00:00:00",
        "lvl": "info",
        "msg": "binary_ready",
        "line": 10,
        "data": {"path": "/tmp/tool"},
    }


def test_compact_json_renderer_without_data():
    output = CompactJSONRenderer()(None, "info", {"event": "hello"})
    assert "data" not in json.loads(output)


def test_add_timestamp():
    event = add_timestamp(None, "info", {"event": "x"})
    assert "timestamp" in event

    kept = add_timestamp(None, "info", {"event": "x", "timestamp": "fixed"})
    assert kept["timestamp"] == "fixed"


def test_drop_ignored_loggers():
    event = {"event": "x"}
    assert drop_ignored_loggers(logging.getLogger("bin_manager.fetcher"), "info", event) is event

    with pytest.raises(structlog.DropEvent):
        drop_ignored_loggers(logging.getLogger("aiohttp.client"), "info", event)


def test_configure_logging_json():
    configure_logging("DEBUG", json_output=True)

    config = structlog.get_config()
    assert isinstance(config["processors"][-1], CompactJSONRenderer)
    assert logging.getLogger("bin_manager").level == logging.DEBUG


def test_configure_logging_console():
    configure_logging("WARNING", json_output=False)

    config = structlog.get_config()
    assert isinstance(config["processors"][-1], structlog.dev.ConsoleRenderer)


def test_configure_logging_rejects_unknown_level():
    with pytest.raises(ValueError):
        configure_logging("chatty")


def test_get_logger_binds_events():
    with capture_logs() as logs:
        get_logger("bin_manager.test").info("source_fetched", uri="http://foo.com")

    assert logs == [{"event": "source_fetched", "uri": "http://foo.com", "log_level": "info"}]


def test_configure_logging_reads_level_from_env(monkeypatch):
    monkeypatch.setenv("BIN_MANAGER_LOG_LEVEL", "debug")

    configure_logging(json_output=True)

    assert logging.getLogger("bin_manager").level == logging.DEBUG


def test_get_logger_writes_through_stdlib_logger():
    logger = get_logger("bin_manager.fetcher")

    assert logger.bind()._logger is logging.getLogger("bin_manager.fetcher")
