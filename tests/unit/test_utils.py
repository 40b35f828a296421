"""Test utils module functionality."""

import logging
from collections.abc import Iterator

import pytest
import structlog

from lifeos.utils.error_handler import handle_errors, safe_with_default
from lifeos.utils.logger import get_logger, setup_logging
from lifeos.utils.mixins import LoggerMixin


@pytest.fixture(autouse=True)
def _reset_logging_state() -> Iterator[None]:
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()
    try:
        yield
    finally:
        for handler in list(root_logger.handlers):
            root_logger.removeHandler(handler)
            handler.close()
        structlog.reset_defaults()


class TestLogger:
    """Test logging functionality."""

    def test_setup_logging_writes_plain_message_to_file(self, tmp_path):
        """Log file output uses the raw message format."""
        setup_logging()

        test_message = "logging format check"
        logging.getLogger("format-check").info(test_message)

        root_logger = logging.getLogger()
        file_handlers = [
            handler
            for handler in root_logger.handlers
            if isinstance(handler, logging.FileHandler)
        ]
        assert file_handlers, "FileHandler is not configured"
        for handler in file_handlers:
            handler.flush()

        log_file = tmp_path / "logs" / "optimizer.log"
        assert log_file.exists()
        lines = log_file.read_text(encoding="utf-8").splitlines()
        assert lines[-1].endswith(test_message)

    def test_get_logger_returns_logger(self):
        logger = get_logger("test")
        assert hasattr(logger, "info")
        assert hasattr(logger, "warning")


class TestLoggerMixin:
    def test_logger_named_after_class(self):
        class PlanningService(LoggerMixin):
            pass

        logger = PlanningService().logger
        assert logger is not None
        assert hasattr(logger, "debug")


class TestErrorHandler:
    def test_sync_default(self):
        @safe_with_default("parse value", -1)
        def parse(value: str) -> int:
            return int(value)

        assert parse("7") == 7
        assert parse("seven") == -1

    @pytest.mark.asyncio
    async def test_async_default(self):
        @safe_with_default("fetch text", None)
        async def fetch() -> str:
            raise RuntimeError("offline")

        assert await fetch() is None

    @pytest.mark.asyncio
    async def test_reraise(self):
        @handle_errors("apply change", reraise=True)
        async def apply() -> None:
            raise ValueError("bad input")

        with pytest.raises(ValueError, match="bad input"):
            await apply()
