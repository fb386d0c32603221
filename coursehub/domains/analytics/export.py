# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""CSV export of the enrollment report."""

import csv
import io
from collections.abc import Iterable

from coursehub.domains.aggregation.joins import UNKNOWN_LABEL, CompositeView, Unknown, display
from coursehub.domains.aggregation.references import canonical_id
from coursehub.utils.datetime import date_key

ENROLLMENT_CSV_COLUMNS = (
    "Student ID",
    "Student Name",
    "Email",
    "Course Code",
    "Course Name",
    "Section",
    "Enrollment Date",
    "Status",
)


def _student_name(view: CompositeView) -> str:
    student = view.get("student")
    if student is None or isinstance(student, Unknown):
        return UNKNOWN_LABEL
    name = " ".join(p for p in (student.get("firstName"), student.get("lastName")) if p)
    return name or UNKNOWN_LABEL


def enrollment_row(view: CompositeView) -> list[str]:
    """Render one enrollment view joined with student, course and section.

    Student ID is the enrollment's own reference, so a row whose student
    could not be resolved still names the student it points at.
    """
    student = view.get("student", Unknown(None, "students"))
    course = view.get("course", Unknown(None, "courses"))
    section = view.get("section", Unknown(None, "sections"))
    return [
        canonical_id(view.record.get("studentId")) or UNKNOWN_LABEL,
        _student_name(view),
        str(display(student, "email", default="")),
        str(display(course, "courseCode")),
        str(display(course, "courseName")),
        str(display(section, "sectionName")),
        date_key(view.record.get("enrollmentDate") or view.record.get("createdAt")) or "",
        str(view.record.get("status") or ""),
    ]


def enrollments_to_csv(views: Iterable[CompositeView]) -> str:
    """Export enrollment views as CSV text with a header row.

    Every field is quoted, so names with commas survive a round trip through
    spreadsheet tools.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(ENROLLMENT_CSV_COLUMNS)
    for view in views:
        writer.writerow(enrollment_row(view))
    return buffer.getvalue()
