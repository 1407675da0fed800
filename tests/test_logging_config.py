import json
import logging

from financial_health.logging_config import JsonFormatter, configure_logging


def test_configure_logging_from_env(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("LOG_JSON", "1")
    configure_logging()
    configure_logging()
    logger = logging.getLogger("financial_health")
    assert logger.level == logging.DEBUG
    assert len(logger.handlers) == 1
    assert isinstance(logger.handlers[0].formatter, JsonFormatter)
    assert not logger.propagate


def test_json_formatter_single_line():
    record = logging.LogRecord("financial_health.engine", logging.INFO, __file__, 1, "score %s", (42,), None)
    payload = json.loads(JsonFormatter().format(record))
    assert payload["level"] == "INFO"
    assert payload["logger"] == "financial_health.engine"
    assert payload["message"] == "score 42"
