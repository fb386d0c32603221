# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Attendance marks.

A mark exists per (section, date, student). A roster member with no explicit
mark on a session that was otherwise recorded is absent.
"""

from collections.abc import Mapping
from enum import Enum
from typing import Any

from coursehub.domains.aggregation.references import canonical_id


class AttendanceMark(str, Enum):
    """Attendance status of one student on one session."""

    PRESENT = "present"
    LATE = "late"
    EXCUSED = "excused"
    ABSENT = "absent"


DEFAULT_MARK = AttendanceMark.ABSENT

# Marks that count as attended when computing a rate.
ATTENDED_MARKS = frozenset({AttendanceMark.PRESENT, AttendanceMark.LATE})


def parse_mark(value: Any) -> AttendanceMark:
    """Parse a raw mark, falling back to the default for missing/unknown values."""
    try:
        return AttendanceMark(value)
    except ValueError:
        return DEFAULT_MARK


def session_marks(session: Mapping[str, Any]) -> dict[str, AttendanceMark]:
    """Get student id -> mark for one recorded session.

    Each entry of session["records"] holds a studentId (bare or populated)
    and a status. A later entry for the same student replaces an earlier one.
    """
    marks: dict[str, AttendanceMark] = {}
    for entry in session.get("records") or ():
        student_id = canonical_id(entry.get("studentId"))
        if student_id is None:
            continue
        marks[student_id] = parse_mark(entry.get("status"))
    return marks


def mark_for(session: Mapping[str, Any], student_id: str) -> AttendanceMark:
    return session_marks(session).get(student_id, DEFAULT_MARK)
