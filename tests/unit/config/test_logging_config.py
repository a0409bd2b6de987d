"""Tests for onboarding/logging_config.py"""

import json
import logging

import pytest

from onboarding.logging_config import NOISY_LOGGERS, flow_context, setup_logging


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


class TestSetupLogging:
    def test_level_from_argument(self):
        setup_logging(level="DEBUG")
        assert logging.getLogger().level == logging.DEBUG

    def test_level_from_environment(self, monkeypatch):
        monkeypatch.setenv("ONBOARDING_LOG_LEVEL", "WARNING")
        setup_logging()
        assert logging.getLogger().level == logging.WARNING

    def test_unknown_level_falls_back_to_info(self):
        setup_logging(level="chatty")
        assert logging.getLogger().level == logging.INFO

    def test_single_handler(self):
        setup_logging()
        setup_logging()
        assert len(logging.getLogger().handlers) == 1

    def test_noisy_loggers_quieted(self):
        setup_logging(level="DEBUG")
        for name in NOISY_LOGGERS:
            assert logging.getLogger(name).level == logging.WARNING

    def test_json_lines_carry_flow_context(self, capsys):
        setup_logging(level="INFO", json_output=True)

        with flow_context("app-1"):
            logging.getLogger("onboarding.test").info("handled action")

        line = capsys.readouterr().err.strip().splitlines()[-1]
        record = json.loads(line)
        assert record["event"] == "handled action"
        assert record["context"] == "app-1"
        assert record["level"] == "info"
