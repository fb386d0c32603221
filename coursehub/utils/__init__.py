# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Utility functions and helpers for CourseHub Views.

This package contains cross-cutting utilities:
- logging: Structured logging with structlog
- datetime: Timezone-aware datetime operations
"""

from coursehub.utils.datetime import (
    coerce_datetime,
    date_key,
    ensure_utc,
    format_iso,
    parse_iso,
    utc_now,
)
from coursehub.utils.logging import bind_context, clear_context, setup_logging

__all__ = [
    # Logging
    "setup_logging",
    "bind_context",
    "clear_context",
    # Datetime
    "utc_now",
    "ensure_utc",
    "parse_iso",
    "coerce_datetime",
    "date_key",
    "format_iso",
]
