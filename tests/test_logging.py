"""Tests for structured logging helpers."""

import logging
from unittest.mock import MagicMock

import pytest
import structlog

from ffs.logging import configure_logging, log_operation


class TestLogOperation:
    def test_completed(self):
        logger = MagicMock()
        bound = logger.bind.return_value

        with log_operation(logger, "vdi_create", sr="sr1") as oplog:
            assert oplog is bound

        logger.bind.assert_called_once_with(operation="vdi_create", sr="sr1")
        event, = bound.info.call_args.args
        assert event == "vdi_create.completed"
        assert "duration_ms" in bound.info.call_args.kwargs

    def test_failed_reraises(self):
        logger = MagicMock()
        bound = logger.bind.return_value

        with pytest.raises(KeyError):
            with log_operation(logger, "vdi_destroy"):
                raise KeyError("gone")

        assert bound.error.call_args.args == ("vdi_destroy.failed",)
        assert bound.error.call_args.kwargs["error_type"] == "KeyError"
        bound.info.assert_not_called()


class TestConfigureLogging:
    @pytest.fixture(autouse=True)
    def reset_logging(self):
        yield
        structlog.reset_defaults()
        logging.getLogger().handlers.clear()

    @pytest.mark.parametrize("level,expected", [
        ("debug", logging.DEBUG),
        ("WARNING", logging.WARNING),
    ])
    def test_sets_root_level(self, level, expected):
        configure_logging(level=level)
        assert logging.getLogger().level == expected

    @pytest.mark.parametrize("level", ["loud", "basic_format", ""])
    def test_unknown_level(self, level):
        with pytest.raises(ValueError, match="Invalid log level"):
            configure_logging(level=level)
