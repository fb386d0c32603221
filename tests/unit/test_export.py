# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the enrollment CSV export."""

import csv
import io

from coursehub.domains.aggregation.joins import JoinEngine, JoinSpec
from coursehub.domains.analytics import ENROLLMENT_CSV_COLUMNS, enrollments_to_csv

JOINS = [
    JoinSpec("students", key="studentId", field="student"),
    JoinSpec("courses", key="courseId", field="course"),
    JoinSpec("sections", key="sectionId", field="section"),
]


def _rows(text: str) -> list[list[str]]:
    return list(csv.reader(io.StringIO(text)))


class TestEnrollmentCsv:
    """Tests for enrollments_to_csv()."""

    def test_header_and_rows(self) -> None:
        """Test a fully resolved enrollment."""
        engine = JoinEngine({
            "enrollments": [{
                "_id": "e1", "studentId": "u1", "courseId": "c1", "sectionId": "s1",
                "status": "enrolled", "enrollmentDate": "2025-01-15T08:00:00Z",
            }],
            "students": [{"_id": "u1", "studentId": "2024-0001", "firstName": "Ana", "lastName": "Cruz, Jr.", "email": "ana@campus.edu"}],
            "courses": [{"_id": "c1", "courseCode": "CS101", "courseName": "Intro"}],
            "sections": [{"_id": "s1", "sectionName": "A"}],
        })

        rows = _rows(enrollments_to_csv(engine.assemble("enrollments", joins=JOINS)))

        assert rows[0] == list(ENROLLMENT_CSV_COLUMNS)
        assert rows[1] == [
            "u1", "Ana Cruz, Jr.", "ana@campus.edu", "CS101", "Intro", "A", "2025-01-15", "enrolled",
        ]

    def test_unknown_sides_render_placeholder(self) -> None:
        """Test missing student, course and section."""
        engine = JoinEngine(
            {"enrollments": [{"_id": "e1", "studentId": "u9", "courseId": "c9", "sectionId": "s9", "status": "dropped"}]},
            failed=["students", "courses", "sections"],
        )

        rows = _rows(enrollments_to_csv(engine.assemble("enrollments", joins=JOINS)))

        assert rows[1] == ["u9", "Unknown", "", "Unknown", "Unknown", "Unknown", "", "dropped"]

    def test_every_field_is_quoted(self) -> None:
        """Test quoting of the raw output."""
        text = enrollments_to_csv([])

        assert text.splitlines()[0].startswith('"Student ID","Student Name"')

    def test_student_id_from_populated_reference(self) -> None:
        """Test a populated studentId exports its identity."""
        engine = JoinEngine({
            "enrollments": [{"_id": "e1", "studentId": {"_id": "u2", "firstName": "Ben"}, "status": "active"}],
            "students": [],
            "courses": [],
            "sections": [],
        })

        rows = _rows(enrollments_to_csv(engine.assemble("enrollments", joins=JOINS)))

        assert rows[1][:2] == ["u2", "Ben"]
