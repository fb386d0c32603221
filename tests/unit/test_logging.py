# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for logging configuration."""

import json
import logging

import pytest

from coursehub.core.config import Settings
from coursehub.utils.logging import HANDLER_NAME, bind_context, clear_context, setup_logging


@pytest.fixture(autouse=True)
def restore_logging():
    """Remove the installed handler and bound context after each test."""
    root = logging.getLogger()
    level = root.level
    yield
    clear_context()
    for handler in [h for h in root.handlers if h.get_name() == HANDLER_NAME]:
        root.removeHandler(handler)
    root.setLevel(level)


def _json_lines(output: str) -> list[dict]:
    return [json.loads(line) for line in output.splitlines() if line.startswith("{")]


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_stdlib_records_carry_bound_context(self, capsys) -> None:
        """Test module loggers emit JSON with the request context outside development."""
        setup_logging(Settings(environment="staging", log_level="INFO"))
        bind_context(request_id="req-123", user_id="a1")

        logging.getLogger("coursehub.domains.aggregation.fetch").warning(
            "Source %s failed: %s", "students", "boom"
        )

        lines = _json_lines(capsys.readouterr().out)
        assert len(lines) == 1
        assert lines[0]["event"] == "Source students failed: boom"
        assert lines[0]["request_id"] == "req-123"
        assert lines[0]["user_id"] == "a1"
        assert lines[0]["level"] == "warning"
        assert lines[0]["logger"] == "coursehub.domains.aggregation.fetch"

    def test_cleared_context_is_not_logged(self, capsys) -> None:
        """Test values do not leak past clear_context()."""
        setup_logging(Settings(environment="staging", log_level="INFO"))
        bind_context(request_id="req-1")
        clear_context()

        logging.getLogger("coursehub.api").info("done")

        lines = _json_lines(capsys.readouterr().out)
        assert lines[0]["event"] == "done"
        assert "request_id" not in lines[0]

    def test_repeated_setup_keeps_one_handler(self) -> None:
        """Test calling setup twice does not duplicate output."""
        settings = Settings(environment="staging")
        setup_logging(settings)
        setup_logging(settings)

        installed = [h for h in logging.getLogger().handlers if h.get_name() == HANDLER_NAME]
        assert len(installed) == 1

    def test_level_filters_records(self, capsys) -> None:
        """Test records below the configured level are dropped."""
        setup_logging(Settings(environment="staging", log_level="WARNING"))

        logging.getLogger("coursehub.api").info("hidden")

        assert _json_lines(capsys.readouterr().out) == []
