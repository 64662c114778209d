"""
Tests for structured JSON logging configuration.
"""

import json
import logging

import pytest

from nftledger.core import logging_config
from nftledger.core.logging_config import (
    CustomJsonFormatter,
    configure_module_logging,
    get_module_category,
    set_category_level,
    setup_logging,
)


class TestJsonFormatter:
    def test_record_fields(self):
        formatter = CustomJsonFormatter(environment="test", service_name="nftledger")
        record = logging.LogRecord(
            name="nftledger.core.contracts.psp34",
            level=logging.INFO,
            pathname=__file__,
            lineno=10,
            msg="PSP34 mint",
            args=(),
            exc_info=None,
        )
        record.event = "psp34.mint"
        record.token_id = 7

        payload = json.loads(formatter.format(record))
        assert payload["message"] == "PSP34 mint"
        assert payload["event"] == "psp34.mint"
        assert payload["token_id"] == 7
        assert payload["environment"] == "test"
        assert payload["service"] == "nftledger"
        assert payload["level"] == "info"
        assert payload["timestamp"]
        assert payload["source"]["line"] == 10


class TestSetupLogging:
    def test_file_handler_writes_json(self, tmp_path):
        log_file = tmp_path / "logs" / "ledger.json"
        logger = setup_logging(
            name="nftledger.test_file",
            log_file=str(log_file),
            level="INFO",
            environment="test",
            enable_console=False,
        )
        logger.info("Token minted", extra={"event": "psp34.mint", "token_id": 1})
        for handler in logger.handlers:
            handler.flush()

        line = log_file.read_text().strip().splitlines()[-1]
        payload = json.loads(line)
        assert payload["event"] == "psp34.mint"
        assert payload["service"] == "nftledger"

        for handler in logger.handlers:
            handler.close()

    def test_handlers_not_duplicated(self):
        logger = setup_logging(name="nftledger.test_dupes", level="DEBUG", log_file=None)
        logger = setup_logging(name="nftledger.test_dupes", level="DEBUG", log_file=None)
        assert len(logger.handlers) == 1
        assert logger.level == logging.DEBUG


class TestModuleLevels:
    def test_category_lookup(self):
        assert get_module_category("nftledger.core.contracts.psp34") == "psp34"
        assert get_module_category("nftledger.core.events") == "events"
        assert get_module_category("somewhere.else") is None

    def test_configure_module_logging(self):
        logger = configure_module_logging("nftledger.core.events")
        assert logger.level == logging.WARNING
        logger = configure_module_logging("nftledger.core.events", override_level="debug")
        assert logger.level == logging.DEBUG
        logger = configure_module_logging("unrelated.module")
        assert logger.level == logging.INFO

    def test_set_category_level(self, monkeypatch):
        monkeypatch.setitem(logging_config.LOG_LEVELS, "metrics", "INFO")
        set_category_level("metrics", "error")
        assert logging_config.LOG_LEVELS["metrics"] == "ERROR"
        with pytest.raises(ValueError):
            set_category_level("unknown", "INFO")
