"""
Tests for structured logging and configuration
"""

import io
import json
import logging

from bank_ledger.config import LedgerConfig, reload_config, get_config
from bank_ledger.logging_config import JSONFormatter, setup_logging, log_action


class TestJSONLogging:
    """Test JSON log formatting"""

    def _capture(self, name, fmt="json"):
        logger = setup_logging("INFO", logger_name=name, fmt=fmt)
        stream = io.StringIO()
        logger.handlers[0].setStream(stream)
        return logger, stream

    def test_log_action_fields(self):
        logger, stream = self._capture("bank_ledger_test.json")

        log_action(logger, "info", "Holding bofa set to 100",
                   operation="init", key="alice_bofa", extra={"amount": 100})

        entry = json.loads(stream.getvalue())
        assert entry["level"] == "INFO"
        assert entry["message"] == "Holding bofa set to 100"
        assert entry["operation"] == "init"
        assert entry["key"] == "alice_bofa"
        assert entry["extra"] == {"amount": 100}
        assert "timestamp" in entry

    def test_none_fields_dropped(self):
        record = logging.LogRecord("bank_ledger", logging.INFO, __file__, 1, "hello", (), None)
        entry = json.loads(JSONFormatter().format(record))
        assert "operation" not in entry
        assert "key" not in entry

    def test_level_filtering(self):
        logger, stream = self._capture("bank_ledger_test.level")
        logger.setLevel(logging.WARNING)

        log_action(logger, "info", "ignored")
        assert stream.getvalue() == ""

    def test_text_format(self):
        logger, stream = self._capture("bank_ledger_test.text", fmt="text")
        logger.info("plain line")
        assert "INFO" in stream.getvalue()
        assert "plain line" in stream.getvalue()


class TestConfig:
    """Test environment-based configuration"""

    def test_defaults(self):
        config = LedgerConfig()
        assert config.storage_backend == "memory"
        assert config.escape_keys is True
        assert config.strict_methods is True
        assert config.atomic_initialize is False

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("BANK_LEDGER_STRICT_METHODS", "false")
        monkeypatch.setenv("BANK_LEDGER_STORAGE_BACKEND", "sqlite")

        config = reload_config()
        assert config.strict_methods is False
        assert config.storage_backend == "sqlite"
        assert get_config() is config

        monkeypatch.delenv("BANK_LEDGER_STRICT_METHODS")
        monkeypatch.delenv("BANK_LEDGER_STORAGE_BACKEND")
        reload_config()
