# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""DateTime utilities for CourseHub Views.

Upstream services serialize dates as ISO 8601 strings, usually with a
trailing "Z". Everything here returns timezone-aware UTC datetimes so naive
and aware values never mix.

Usage:
------
    from coursehub.utils.datetime import parse_iso, date_key

    due = parse_iso("2025-03-01T23:59:00.000Z")
    date_key("2025-03-01T08:00:00Z")  # "2025-03-01"
"""

from datetime import date, datetime, timezone
from typing import Any


def utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Ensure a datetime is timezone-aware UTC.

    Args:
        dt: A datetime object (naive or aware) or None.

    Returns:
        Timezone-aware UTC datetime or None.

    Note:
        - If dt is None, returns None
        - If dt is naive, assumes UTC and adds tzinfo
        - If dt is aware, converts to UTC
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc)


def parse_iso(iso_string: str | None) -> datetime | None:
    """Parse an ISO 8601 datetime string.

    Args:
        iso_string: ISO 8601 formatted string.

    Returns:
        Timezone-aware UTC datetime or None.

    Raises:
        ValueError: If the string is not ISO 8601.
    """
    if iso_string is None:
        return None

    dt = datetime.fromisoformat(iso_string.replace("Z", "+00:00"))
    return ensure_utc(dt)


def coerce_datetime(value: Any) -> datetime | None:
    """Best-effort conversion of an upstream date field.

    Accepts datetimes, dates and ISO strings; anything unparseable is None.
    """
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, str) and value:
        try:
            return parse_iso(value)
        except ValueError:
            return None
    return None


def date_key(value: Any) -> str | None:
    """Get the UTC calendar date of a date field as "YYYY-MM-DD"."""
    dt = coerce_datetime(value)
    return dt.date().isoformat() if dt is not None else None


def format_iso(dt: datetime | None) -> str | None:
    """Format a datetime as ISO 8601 string.

    Args:
        dt: Datetime to format.

    Returns:
        ISO 8601 formatted string or None.
    """
    if dt is None:
        return None

    return ensure_utc(dt).isoformat()
