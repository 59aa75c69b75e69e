"""Tests for candle_forecaster.utils.logging.configure_logging."""

from __future__ import annotations

import json
import logging

from candle_forecaster.config import LoggingConfig
from candle_forecaster.utils.logging import configure_logging


def test_plain_format_goes_to_stdout(capsys):
    configure_logging(LoggingConfig(level="INFO"))
    logging.getLogger("candle_forecaster.test").info("hello %s", "world")
    out = capsys.readouterr().out
    assert "[INFO] candle_forecaster.test: hello world" in out


def test_level_filters_debug(capsys):
    configure_logging(LoggingConfig(level="WARNING"))
    logging.getLogger("candle_forecaster.test").info("quiet")
    assert "quiet" not in capsys.readouterr().out


def test_level_override_wins(capsys):
    configure_logging(LoggingConfig(level="WARNING"), level_override="DEBUG")
    logging.getLogger("candle_forecaster.test").debug("loud")
    assert "loud" in capsys.readouterr().out


def test_json_format_includes_extras(capsys):
    configure_logging(LoggingConfig(json_format=True))
    logging.getLogger("candle_forecaster.test").info("batch done", extra={"cadence": "hours"})
    line = capsys.readouterr().out.strip().splitlines()[-1]
    payload = json.loads(line)
    assert payload["msg"] == "batch done"
    assert payload["level"] == "INFO"
    assert payload["cadence"] == "hours"
    assert payload["ts"].endswith("Z")


def test_log_file_created(tmp_path):
    log_file = tmp_path / "logs" / "run.log"
    configure_logging(LoggingConfig(log_file=str(log_file)))
    logging.getLogger("candle_forecaster.test").warning("to disk")
    for handler in logging.getLogger().handlers:
        handler.flush()
    assert "to disk" in log_file.read_text(encoding="utf-8")


def test_http_stack_quietened():
    configure_logging(LoggingConfig(level="DEBUG"))
    assert logging.getLogger("httpx").level == logging.WARNING
