# tests/common/test_logger.py
"""
Unit тесты для модуля логирования (yaatrabuddy/common/logger.py).
"""

import json
import logging
from unittest.mock import MagicMock, patch

import pytest

from yaatrabuddy.common.constants import TypeMsg
from yaatrabuddy.common.logger import (
    ColoredFormatter,
    JsonFormatter,
    _get_caller_info,
    get_logger,
    log_error,
    log_info,
    setup_logging,
)


def make_record(level: int = logging.INFO, msg: str = "Test message") -> logging.LogRecord:
    return logging.LogRecord(
        name="test_logger",
        level=level,
        pathname="test.py",
        lineno=10,
        msg=msg,
        args=(),
        exc_info=None,
    )


class TestJsonFormatter:
    """Тесты для JsonFormatter."""

    def test_format_basic_record(self) -> None:
        data = json.loads(JsonFormatter().format(make_record()))

        assert data["level"] == "INFO"
        assert data["message"] == "Test message"
        assert data["line"] == 10
        assert data["timestamp"].endswith("Z")

    def test_format_with_extra_data(self) -> None:
        record = make_record(logging.WARNING, "Заказ не найден")
        record.extra_data = {"ride_id": "r-1"}

        data = json.loads(JsonFormatter().format(record))

        assert data["message"] == "Заказ не найден"
        assert data["extra"] == {"ride_id": "r-1"}

    def test_format_with_exception(self) -> None:
        try:
            raise ValueError("boom")
        except ValueError:
            import sys
            record = make_record(logging.ERROR)
            record.exc_info = sys.exc_info()

        data = json.loads(JsonFormatter().format(record))

        assert "ValueError: boom" in data["exception"]


class TestColoredFormatter:
    """Тесты для ColoredFormatter."""

    def test_level_color(self) -> None:
        result = ColoredFormatter().format(make_record(logging.ERROR, "fail"))

        assert "\033[31m[ERROR]" in result
        assert result.endswith("fail")

    def test_caller_info(self) -> None:
        record = make_record()
        record.extra_data = {
            "caller_function": "signup",
            "caller_module": "yaatrabuddy.services.auth.service",
            "caller_file": "service.py",
            "caller_line": 42,
        }

        result = ColoredFormatter().format(record)

        assert "yaatrabuddy.services.auth.service.signup() service.py:42" in result


class TestGetLogger:
    def test_cached_per_name(self) -> None:
        assert get_logger("yaatrabuddy.test_cache") is get_logger("yaatrabuddy.test_cache")

    def test_single_console_handler(self) -> None:
        logger = get_logger("yaatrabuddy.test_handlers")
        get_logger("yaatrabuddy.test_handlers")

        assert len(logger.handlers) == 1
        assert logger.propagate is False

    def test_setup_is_idempotent(self) -> None:
        setup_logging()
        handlers = list(get_logger().handlers)
        setup_logging()

        assert get_logger().handlers == handlers


class TestLogHelpers:
    """Тесты для log_info / log_warning / log_error."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "type_msg, method",
        [
            (TypeMsg.DEBUG, "debug"),
            (TypeMsg.INFO, "info"),
            (TypeMsg.WARNING, "warning"),
            (TypeMsg.ERROR, "error"),
            (TypeMsg.CRITICAL, "critical"),
        ],
    )
    async def test_level_routing(self, type_msg, method) -> None:
        logger = MagicMock()
        with patch("yaatrabuddy.common.logger.get_logger", return_value=logger):
            await log_info("сообщение", type_msg=type_msg)

        getattr(logger, method).assert_called_once()
        assert getattr(logger, method).call_args.args == ("сообщение",)

    @pytest.mark.asyncio
    async def test_extra_merged_with_caller(self) -> None:
        logger = MagicMock()
        with patch("yaatrabuddy.common.logger.get_logger", return_value=logger):
            await log_info("медленный запрос", type_msg=TypeMsg.WARNING, extra={"ms": 1200})

        extra_data = logger.warning.call_args.kwargs["extra"]["extra_data"]
        assert extra_data["ms"] == 1200
        assert extra_data["caller_function"] == "test_extra_merged_with_caller"

    @pytest.mark.asyncio
    async def test_log_error_exc_info(self) -> None:
        logger = MagicMock()
        with patch("yaatrabuddy.common.logger.get_logger", return_value=logger):
            await log_error("сбой", exc_info=True)

        assert logger.error.call_args.kwargs["exc_info"] is True

    def test_caller_info_keys(self) -> None:
        def wrapper() -> dict:
            return _get_caller_info()

        info = wrapper()

        assert info["caller_function"] == "test_caller_info_keys"
        assert info["caller_file"] == "test_logger.py"
