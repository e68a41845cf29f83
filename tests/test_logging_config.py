"""
Tests for structured logging
"""

import json
import logging

from mybank.logging_config import (
    JSONFormatter, correlation_id_var, log_action, setup_logging
)


class ListHandler(logging.Handler):
    """Collects formatted records"""

    def __init__(self):
        super().__init__()
        self.setFormatter(JSONFormatter())
        self.lines = []

    def emit(self, record):
        self.lines.append(self.format(record))


class TestStructuredLogging:
    """Test JSON records and the action helper"""

    def setup_method(self):
        """Set up test fixtures"""
        self.logger = logging.getLogger("mybank.tests.logging")
        self.logger.setLevel(logging.DEBUG)
        self.logger.propagate = False
        self.handler = ListHandler()
        self.logger.addHandler(self.handler)

    def teardown_method(self):
        self.logger.removeHandler(self.handler)

    def test_log_action_fields(self):
        log_action(
            self.logger, "info", "Deposit applied",
            action="deposit", resource="account:1/100",
            extra={"amount": "50"}
        )
        entry = json.loads(self.handler.lines[0])
        assert entry["level"] == "INFO"
        assert entry["message"] == "Deposit applied"
        assert entry["action"] == "deposit"
        assert entry["resource"] == "account:1/100"
        assert entry["extra"] == {"amount": "50"}
        assert "correlation_id" not in entry

    def test_correlation_id_from_context(self):
        token = correlation_id_var.set("req-123")
        try:
            self.logger.warning("inside request")
        finally:
            correlation_id_var.reset(token)
        entry = json.loads(self.handler.lines[0])
        assert entry["correlation_id"] == "req-123"

    def test_explicit_correlation_id_wins(self):
        token = correlation_id_var.set("req-123")
        try:
            log_action(self.logger, "error", "failed", correlation_id="job-9")
        finally:
            correlation_id_var.reset(token)
        assert json.loads(self.handler.lines[0])["correlation_id"] == "job-9"

    def test_disabled_level_is_skipped(self):
        self.logger.setLevel(logging.WARNING)
        log_action(self.logger, "info", "quiet")
        assert self.handler.lines == []

    def test_exception_included(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            self.logger.exception("crashed")
        entry = json.loads(self.handler.lines[0])
        assert "RuntimeError: boom" in entry["exception"]


class TestSetupLogging:
    """Test handler configuration"""

    def test_setup_replaces_handlers(self):
        logger = setup_logging("DEBUG", "json", logger_name="mybank.tests.setup")
        logger = setup_logging("WARNING", "text", logger_name="mybank.tests.setup")
        assert len(logger.handlers) == 1
        assert logger.level == logging.WARNING
        assert not isinstance(logger.handlers[0].formatter, JSONFormatter)
        assert logger.propagate is False

    def test_file_output(self, tmp_path):
        log_file = tmp_path / "mybank.log"
        logger = setup_logging("INFO", "json", str(log_file), logger_name="mybank.tests.file")
        log_action(logger, "info", "to file", action="seed")
        for handler in logger.handlers:
            handler.flush()
            handler.close()
        entry = json.loads(log_file.read_text(encoding="utf-8").strip())
        assert entry["action"] == "seed"
        logger.handlers.clear()
