"""logging_config モジュールのテスト"""

import json
import logging
import sys
from datetime import date
from unittest.mock import patch

import pytest
from keepaneye.logging_config import (
    CloudLoggingFormatter,
    is_cloud_environment,
    setup_logging,
)


def _make_record(message: str = "test message", level: int = logging.INFO, exc_info=None):
    return logging.LogRecord(
        name="keepaneye.services.generator",
        level=level,
        pathname="",
        lineno=0,
        msg=message,
        args=(),
        exc_info=exc_info,
    )


class TestCloudLoggingFormatter:
    """CloudLoggingFormatter の単体テスト"""

    @pytest.mark.parametrize(
        "level, severity",
        [
            (logging.DEBUG, "DEBUG"),
            (logging.INFO, "INFO"),
            (logging.WARNING, "WARNING"),
            (logging.ERROR, "ERROR"),
            (logging.CRITICAL, "CRITICAL"),
        ],
    )
    def test_severity_mapping(self, level, severity):
        parsed = json.loads(CloudLoggingFormatter().format(_make_record(level=level)))
        assert parsed["severity"] == severity

    def test_required_fields_present(self):
        parsed = json.loads(CloudLoggingFormatter().format(_make_record("hello")))
        assert parsed["message"] == "hello"
        assert parsed["logger"] == "keepaneye.services.generator"
        assert "timestamp" in parsed
        assert "exception" not in parsed

    def test_exception_info_included(self):
        try:
            raise ValueError("test error")
        except ValueError:
            exc_info = sys.exc_info()

        parsed = json.loads(CloudLoggingFormatter().format(_make_record(exc_info=exc_info)))

        assert "ValueError" in parsed["exception"]
        assert "test error" in parsed["exception"]

    def test_extra_fields_are_flattened(self):
        """extra_fields の値がトップレベルに展開され、date も文字列化されること"""
        record = _make_record()
        record.extra_fields = {"child_id": "child-1", "day": date(2026, 10, 19)}

        parsed = json.loads(CloudLoggingFormatter().format(record))

        assert parsed["child_id"] == "child-1"
        assert parsed["day"] == "2026-10-19"

    def test_japanese_message_is_not_escaped(self):
        output = CloudLoggingFormatter().format(_make_record("ミルクの予定を生成しました"))
        assert "ミルクの予定を生成しました" in output


class TestSetupLogging:
    """setup_logging() の動作テスト"""

    def test_uses_json_formatter_in_cloud_run(self):
        with patch.dict("os.environ", {"K_SERVICE": "keepaneye-api"}, clear=False):
            assert is_cloud_environment() is True
            setup_logging()

        root_logger = logging.getLogger()
        assert len(root_logger.handlers) == 1
        assert isinstance(root_logger.handlers[0].formatter, CloudLoggingFormatter)

    def test_uses_text_formatter_in_local_env(self):
        env_without_cloud = {
            k: v
            for k, v in __import__("os").environ.items()
            if k not in ("K_SERVICE", "CLOUD_RUN_JOB")
        }
        with patch.dict("os.environ", env_without_cloud, clear=True):
            assert is_cloud_environment() is False
            setup_logging()

        root_logger = logging.getLogger()
        assert not isinstance(root_logger.handlers[0].formatter, CloudLoggingFormatter)

    def test_log_level_from_env(self):
        with patch.dict("os.environ", {"LOG_LEVEL": "DEBUG"}, clear=False):
            setup_logging()
        assert logging.getLogger().level == logging.DEBUG

    def test_explicit_level_overrides_env(self):
        with patch.dict("os.environ", {"LOG_LEVEL": "DEBUG"}, clear=False):
            setup_logging("warning")
        assert logging.getLogger().level == logging.WARNING

    def test_handlers_not_duplicated(self):
        setup_logging()
        setup_logging()
        assert len(logging.getLogger().handlers) == 1
