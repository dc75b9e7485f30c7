"""
Tests for the codereview logger, JSON formatter and per-thread context.
"""

import json
import logging
import logging.handlers
import sys
import threading

from codereview.infrastructure.logging import (
    CodeReviewLogger,
    LogContext,
    get_logger,
    logging_context,
)
from codereview.infrastructure.logging.logger import JSONFormatter


def read_records(path):
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines() if line]


class TestCodeReviewLogger:
    """Test suite for CodeReviewLogger."""

    def test_singleton(self):
        first = CodeReviewLogger.get_instance(level="DEBUG")
        second = CodeReviewLogger.get_instance(level="ERROR")

        assert first is second
        assert second.level == "DEBUG"

    def test_reset_creates_new_instance(self):
        first = CodeReviewLogger.get_instance()
        CodeReviewLogger.reset()

        assert CodeReviewLogger.get_instance() is not first

    def test_console_handler_level(self):
        logger = CodeReviewLogger.get_instance(level="warning")

        handlers = logger.logger.handlers
        assert len(handlers) == 1
        assert handlers[0].level == logging.WARNING
        assert logger.logger.propagate is False

    def test_no_console(self):
        logger = CodeReviewLogger.get_instance(console=False)

        assert logger.logger.handlers == []

    def test_json_file_output(self, tmp_path):
        log_file = tmp_path / "logs" / "codereview.log"
        logger = CodeReviewLogger.get_instance(
            level="ERROR", log_file=log_file, console=False, rotation="none"
        )

        logger.debug("Rule loaded", extra={"rule_id": "long-line"})

        records = read_records(log_file)
        assert len(records) == 1
        record = records[0]
        assert record["message"] == "Rule loaded"
        assert record["level"] == "DEBUG"
        assert record["logger"] == "codereview"
        assert record["rule_id"] == "long-line"
        assert {"timestamp", "module", "function", "line", "thread"} <= set(record)

    def test_daily_rotation_handler(self, tmp_path):
        logger = CodeReviewLogger.get_instance(log_file=tmp_path / "review.log", console=False)

        handler = logger.logger.handlers[0]
        assert isinstance(handler, logging.handlers.TimedRotatingFileHandler)
        assert handler.backupCount == 30

    def test_context_is_merged(self, tmp_path):
        log_file = tmp_path / "codereview.log"
        logger = CodeReviewLogger.get_instance(log_file=log_file, console=False, rotation="none")

        with logging_context(session_id="session-1", file_path="a.py"):
            logger.info("File reviewed", extra={"file_path": "b.py", "issues": 2})
        logger.info("Outside")

        inside, outside = read_records(log_file)
        assert inside["session_id"] == "session-1"
        # Explicit extra wins over context
        assert inside["file_path"] == "b.py"
        assert inside["issues"] == 2
        assert "session_id" not in outside

    def test_get_logger_is_child(self):
        assert get_logger("git").name == "codereview.git"


class TestJSONFormatter:
    """Test suite for JSONFormatter."""

    def test_exception_info(self):
        try:
            raise ValueError("bad value")
        except ValueError:
            record = logging.LogRecord(
                "codereview", logging.ERROR, __file__, 10, "Failed", None, sys.exc_info()
            )

        payload = json.loads(JSONFormatter().format(record))

        assert payload["exception"]["type"] == "ValueError"
        assert payload["exception"]["message"] == "bad value"
        assert "Traceback" in payload["exception"]["traceback"]

    def test_non_serializable_extra_is_stringified(self, tmp_path):
        record = logging.LogRecord("codereview", logging.INFO, __file__, 1, "Saved", None, None)
        record.path = tmp_path

        payload = json.loads(JSONFormatter().format(record))

        assert payload["path"] == str(tmp_path)


class TestLogContext:
    """Test suite for LogContext and logging_context."""

    def test_nested_context_restores_values(self):
        with logging_context(session_id="outer"):
            with logging_context(session_id="inner", file_path="a.py"):
                assert LogContext.get("session_id") == "inner"
                assert LogContext.get("file_path") == "a.py"
            assert LogContext.get("session_id") == "outer"
            assert LogContext.get("file_path") is None
        assert LogContext.get_context() == {}

    def test_context_restored_after_exception(self):
        try:
            with logging_context(rule_id="long-line"):
                raise RuntimeError("rule failed")
        except RuntimeError:
            pass

        assert LogContext.get("rule_id") is None

    def test_get_context_returns_copy(self):
        LogContext.set("tags", ["a"])

        LogContext.get_context()["tags"].append("b")

        assert LogContext.get("tags") == ["a"]

    def test_context_is_thread_local(self):
        seen = {}

        def worker():
            seen["before"] = LogContext.get_context()
            LogContext.set("file_path", "worker.py")
            seen["after"] = LogContext.get("file_path")

        with logging_context(session_id="main-thread"):
            thread = threading.Thread(target=worker)
            thread.start()
            thread.join()
            assert LogContext.get("file_path") is None

        assert seen == {"before": {}, "after": "worker.py"}

    def test_remove_and_clear(self):
        LogContext.update({"a": 1, "b": 2})
        LogContext.remove("a", "missing")

        assert LogContext.get_context() == {"b": 2}
        LogContext.clear()
        assert LogContext.get_context() == {}
