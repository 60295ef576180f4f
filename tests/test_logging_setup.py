import json
import logging

from remote_config.common.logging_setup import (
    JsonFormatter,
    get_service_logger,
    reconfigure_service_loggers,
    setup_logging,
)


def test_setup_logging_does_not_stack_handlers():
    setup_logging("tests.stacking", "DEBUG", json_format=False)
    logger = setup_logging("tests.stacking", "WARNING", json_format=True)

    assert len(logger.handlers) == 1
    assert logger.level == logging.WARNING
    assert isinstance(logger.handlers[0].formatter, JsonFormatter)
    assert logger.propagate is False


def test_unknown_level_falls_back_to_info():
    logger = setup_logging("tests.level", "chatty")

    assert logger.level == logging.INFO


def test_json_formatter_carries_component_and_extras():
    record = logging.LogRecord(
        "remote_config.config.provider", logging.INFO, __file__, 1,
        "resolved %s", ("config",), None,
    )
    record.service = "config.provider"
    record.etag = '"abc"'

    data = json.loads(JsonFormatter().format(record))

    assert data["message"] == "resolved config"
    assert data["service"] == "config.provider"
    assert data["level"] == "INFO"
    assert data["etag"] == '"abc"'


def test_service_logger_reads_environment(monkeypatch):
    monkeypatch.setenv("REMOTE_CONFIG_LOG_LEVEL", "ERROR")
    monkeypatch.setenv("REMOTE_CONFIG_LOG_FORMAT", "text")

    adapter = get_service_logger("tests.env")

    assert adapter.logger.level == logging.ERROR
    assert not isinstance(adapter.logger.handlers[0].formatter, JsonFormatter)
    assert adapter.process("hi", {}) == ("hi", {"extra": {"service": "tests.env"}})


def test_reconfigure_applies_to_existing_loggers():
    setup_logging("tests.reconfigure", "INFO")

    reconfigure_service_loggers("DEBUG", json_format=True)

    assert logging.getLogger("remote_config.tests.reconfigure").level == logging.DEBUG
