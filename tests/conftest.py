# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

This module provides fixtures used across all test types:
- Unit tests
- Integration tests

Campus data mirrors a small LMS: 3 students, 2 instructors, 5 courses,
10 enrollments and 2 active announcements.
"""

from collections.abc import Callable
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from coursehub.infrastructure.gateway import ServiceGateway, UpstreamError
from coursehub.models import SessionContext


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test (HTTP surface)"
    )


# =============================================================================
# Session Fixtures
# =============================================================================


@pytest.fixture
def admin_session() -> SessionContext:
    """Provide an authenticated admin session."""
    return SessionContext(
        token="admin-token",
        user_id="a1",
        email="admin@campus.edu",
        role="admin",
        request_id="req-1",
    )


# =============================================================================
# Campus Data Fixtures
# =============================================================================


@pytest.fixture
def students() -> list[dict[str, Any]]:
    return [
        {"_id": "u1", "studentId": "2024-0001", "firstName": "Ana", "lastName": "Cruz", "email": "ana@campus.edu"},
        {"_id": "u2", "studentId": "2024-0002", "firstName": "Ben", "lastName": "Reyes", "email": "ben@campus.edu"},
        {"_id": "u3", "studentId": "2024-0003", "firstName": "Cara", "lastName": "Lim", "email": "cara@campus.edu"},
    ]


@pytest.fixture
def instructors() -> list[dict[str, Any]]:
    return [
        {"_id": "i1", "firstName": "Dan", "lastName": "Santos", "email": "dan@campus.edu"},
        {"_id": "i2", "firstName": "Eve", "lastName": "Tan", "email": "eve@campus.edu"},
    ]


@pytest.fixture
def courses() -> list[dict[str, Any]]:
    return [
        {"_id": f"c{n}", "courseCode": f"CS10{n}", "courseName": f"Course {n}"}
        for n in range(1, 6)
    ]


@pytest.fixture
def sections() -> dict[str, list[dict[str, Any]]]:
    """Sections per course id."""
    return {
        "c1": [
            {"_id": "s1", "courseId": "c1", "sectionName": "A", "instructorId": "i1", "enrolled": 3, "isActive": True},
            {"_id": "s2", "courseId": "c1", "sectionName": "B", "instructorId": "i2", "enrolled": 2, "isActive": False},
        ],
        "c2": [
            {"_id": "s3", "courseId": "c2", "sectionName": "A", "instructorId": {"_id": "i1", "firstName": "Dan"}, "enrolled": 4, "isActive": True},
        ],
        "c3": [],
        "c4": [],
        "c5": [],
    }


@pytest.fixture
def enrollments() -> list[dict[str, Any]]:
    statuses = ["enrolled", "active", "completed", "dropped", "withdrawn",
                "enrolled", "active", "completed", "enrolled", "enrolled"]
    student_ids = ["u1", "u2", "u3", "u1", "u2", "u3", "u1", "u2", "u3", "u1"]
    course_ids = ["c1", "c1", "c2", "c2", "c3", "c3", "c4", "c4", "c5", "c5"]
    return [
        {
            "_id": f"e{n}",
            "studentId": student_ids[n - 1],
            "courseId": course_ids[n - 1],
            "sectionId": "s1" if course_ids[n - 1] == "c1" else "s3",
            "status": statuses[n - 1],
            "enrollmentDate": "2025-01-15T08:00:00Z",
        }
        for n in range(1, 11)
    ]


@pytest.fixture
def announcements() -> list[dict[str, Any]]:
    return [
        {"_id": "n1", "title": "Welcome", "isActive": True},
        {"_id": "n2", "title": "Exams", "courseId": "c1", "isActive": True},
    ]


@pytest.fixture
def campus_routes(
    students, instructors, courses, sections, enrollments, announcements
) -> dict[str, Any]:
    """Gateway list() responses keyed by path."""
    routes: dict[str, Any] = {
        "/users/students": students,
        "/users/instructors": instructors,
        "/users/admins": [{"_id": "a1", "firstName": "Ada", "email": "admin@campus.edu"}],
        "/courses": courses,
        "/courses/enrollments": enrollments,
        "/content/announcements": announcements,
        "/payments": [],
    }
    for course_id, course_sections in sections.items():
        routes[f"/courses/{course_id}/sections"] = course_sections
    return routes


# =============================================================================
# Gateway Fixtures
# =============================================================================


@pytest.fixture
def make_gateway() -> Callable[..., MagicMock]:
    """Build a mocked ServiceGateway answering from path-keyed routes.

    A route value that is an exception is raised instead of returned. Paths
    without a route fail with a 404 UpstreamError.
    """

    def _make(
        routes: dict[str, Any] | None = None,
        records: dict[str, Any] | None = None,
    ) -> MagicMock:
        routes = routes or {}
        records = records or {}

        def _answer(table: dict[str, Any], path: str) -> Any:
            if path not in table:
                raise UpstreamError(f"GET {path} failed: Not Found", status_code=404)
            value = table[path]
            if isinstance(value, Exception):
                raise value
            return value

        async def _list(path, session=None, params=None):
            return _answer(routes, path)

        async def _get(path, session=None):
            return _answer(records, path)

        gateway = MagicMock(spec=ServiceGateway)
        gateway.list = AsyncMock(side_effect=_list)
        gateway.get = AsyncMock(side_effect=_get)
        gateway.request = AsyncMock(return_value={"success": True, "data": {"_id": "new1"}})
        gateway.create = AsyncMock(return_value={"success": True})
        gateway.close = AsyncMock()
        gateway.base_url = "http://gateway.test/api"
        return gateway

    return _make
