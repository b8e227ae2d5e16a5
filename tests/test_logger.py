"""Tests for logging setup."""

import json
import logging

import pytest
import structlog
from pythonjsonlogger import jsonlogger

from nextcloud_exporter import logger as logger_module
from nextcloud_exporter.config import ExporterConfig
from nextcloud_exporter.logger import ExporterLogger, get_logger, setup_logging


@pytest.fixture(autouse=True)
def restore_logging(monkeypatch):
    """Drop handlers and the default logger added by a test."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    monkeypatch.setattr(logger_module, "_default_logger", None)
    yield
    for handler in root.handlers[:]:
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()


def file_handlers(path):
    return [h for h in logging.getLogger().handlers
            if isinstance(h, logging.FileHandler) and h.baseFilename == str(path)]


def test_json_renderer_by_default():
    ExporterLogger(ExporterConfig())

    assert isinstance(structlog.get_config()["processors"][-1],
                      structlog.processors.JSONRenderer)


def test_standard_format_uses_console_renderer():
    ExporterLogger(ExporterConfig(log_format="standard"))

    assert isinstance(structlog.get_config()["processors"][-1],
                      structlog.dev.ConsoleRenderer)


def test_log_file_gets_json_formatter(tmp_path):
    log_file = tmp_path / "exporter.log"

    exporter_logger = ExporterLogger(ExporterConfig(log_file=str(log_file)))
    exporter_logger.get_logger("test").warning("scrape failed", cause="auth")
    for handler in file_handlers(log_file):
        handler.flush()

    handlers = file_handlers(log_file)
    assert len(handlers) == 1
    assert isinstance(handlers[0].formatter, jsonlogger.JsonFormatter)
    record = json.loads(log_file.read_text().splitlines()[-1])
    assert "scrape failed" in record["message"]
    assert record["levelname"] == "WARNING"


def test_log_file_standard_format(tmp_path):
    log_file = tmp_path / "exporter.log"

    ExporterLogger(ExporterConfig(log_file=str(log_file), log_format="standard"))

    handlers = file_handlers(log_file)
    assert len(handlers) == 1
    assert not isinstance(handlers[0].formatter, jsonlogger.JsonFormatter)


def test_log_file_handler_added_once(tmp_path):
    log_file = tmp_path / "exporter.log"
    config = ExporterConfig(log_file=str(log_file))

    ExporterLogger(config)
    ExporterLogger(config)
    setup_logging(config)

    assert len(file_handlers(log_file)) == 1


def test_setup_logging_sets_default():
    configured = setup_logging(ExporterConfig(log_format="standard"))

    assert logger_module._default_logger is configured
    get_logger("collector")
    assert logger_module._default_logger is configured


def test_get_logger_creates_default():
    get_logger()

    assert isinstance(logger_module._default_logger, ExporterLogger)
