# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Source catalog: where each named collection lives behind the gateway.

Top-level sources are fetched in one batch. Child sources are scoped to a
parent record (sections of a course, lessons of a module) and can only be
fetched once the parents are known.

Write routes map a resource name to its collection and item paths. Paths
may carry placeholders filled from a scope dict, e.g. sections live under
/courses/{courseId}/sections.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from coursehub.domains.aggregation.exceptions import AggregationInputError
from coursehub.domains.aggregation.fetch import NamedTask
from coursehub.infrastructure.gateway.client import ServiceGateway
from coursehub.models.session import SessionContext


@dataclass(frozen=True)
class TopLevelSource:
    """A collection fetched without a parent."""

    path: str
    params: Mapping[str, Any] | None = None


@dataclass(frozen=True)
class ChildSource:
    """A collection fetched once per parent record.

    Attributes:
        parent: Source the parent records come from.
        path: Path template with an {id} placeholder for the parent id.
        parent_key: Reference field on each child pointing at its parent.
    """

    parent: str
    path: str
    parent_key: str


TOP_LEVEL_SOURCES: dict[str, TopLevelSource] = {
    "students": TopLevelSource("/users/students"),
    "instructors": TopLevelSource("/users/instructors"),
    "admins": TopLevelSource("/users/admins"),
    "courses": TopLevelSource("/courses"),
    "enrollments": TopLevelSource("/courses/enrollments"),
    "announcements": TopLevelSource("/content/announcements", {"isActive": "true"}),
    "all_announcements": TopLevelSource("/content/announcements"),
    "payments": TopLevelSource("/payments"),
}

CHILD_SOURCES: dict[str, ChildSource] = {
    "sections": ChildSource("courses", "/courses/{id}/sections", "courseId"),
    "modules": ChildSource("courses", "/content/courses/{id}/modules", "courseId"),
    "activities": ChildSource("courses", "/assessments/courses/{id}/activities", "courseId"),
    "attendance": ChildSource("courses", "/reports/attendance/course/{id}", "courseId"),
    "lessons": ChildSource("modules", "/content/modules/{id}/lessons", "moduleId"),
    "submissions": ChildSource("activities", "/assessments/activities/{id}/submissions", "activityId"),
}

KNOWN_SOURCES = frozenset(TOP_LEVEL_SOURCES) | frozenset(CHILD_SOURCES)


@dataclass(frozen=True)
class ResourceRoute:
    """Paths used by write passthroughs for one resource."""

    collection: str
    item: str


WRITE_ROUTES: dict[str, ResourceRoute] = {
    "students": ResourceRoute("/users/students", "/users/students/{id}"),
    "instructors": ResourceRoute("/users/instructors", "/users/instructors/{id}"),
    "admins": ResourceRoute("/users/admins", "/users/admins/{id}"),
    "courses": ResourceRoute("/courses", "/courses/{id}"),
    "sections": ResourceRoute("/courses/{courseId}/sections", "/courses/{courseId}/sections/{id}"),
    "enrollments": ResourceRoute("/courses/enrollments", "/courses/enrollments/{id}"),
    "announcements": ResourceRoute("/content/announcements", "/content/announcements/{id}"),
    "modules": ResourceRoute("/content/modules", "/content/modules/{id}"),
    "lessons": ResourceRoute("/content/lessons", "/content/lessons/{id}"),
    "activities": ResourceRoute(
        "/assessments/courses/{courseId}/activities", "/assessments/activities/{id}"
    ),
    "submissions": ResourceRoute(
        "/assessments/activities/{activityId}/submissions", "/assessments/submissions/{id}"
    ),
    "payments": ResourceRoute("/payments", "/payments/{id}"),
    "attendance": ResourceRoute(
        "/reports/courses/{courseId}/attendance", "/reports/attendance/{id}"
    ),
}


def fill_path(template: str, scope: Mapping[str, Any]) -> str:
    """Fill a path template.

    Raises:
        AggregationInputError: If a placeholder has no value in scope.
    """
    try:
        return template.format(**{k: str(v) for k, v in scope.items()})
    except KeyError as e:
        raise AggregationInputError(
            f"Path {template} needs '{e.args[0]}'", {"scope": sorted(scope)}
        ) from None


class CampusSources:
    """Named fetches bound to one gateway and one session.

    Example:
        sources = CampusSources(gateway, session)
        tasks = [sources.task("students"), sources.task("courses")]
        sections = await sources.fetch_children("sections", course_id)
    """

    def __init__(self, gateway: ServiceGateway, session: SessionContext) -> None:
        self.gateway = gateway
        self.session = session

    def task(self, source: str) -> NamedTask:
        """Build the batch task for a top-level source.

        Raises:
            AggregationInputError: If the source is not a top-level source.
        """
        spec = TOP_LEVEL_SOURCES.get(source)
        if spec is None:
            raise AggregationInputError(
                f"Unknown top-level source '{source}'",
                {"known": sorted(TOP_LEVEL_SOURCES)},
            )

        async def _fetch() -> list[dict[str, Any]]:
            params = dict(spec.params) if spec.params else None
            return await self.gateway.list(spec.path, self.session, params=params)

        return NamedTask(source, _fetch)

    async def fetch_children(
        self,
        source: str,
        parent_id: str,
        params: Mapping[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        """Fetch one parent's children for a child source."""
        spec = CHILD_SOURCES.get(source)
        if spec is None:
            raise AggregationInputError(
                f"Unknown child source '{source}'",
                {"known": sorted(CHILD_SOURCES)},
            )
        return await self.gateway.list(
            spec.path.format(id=parent_id),
            self.session,
            params=dict(params) if params else None,
        )

    async def student_enrollments(self, student_id: str) -> list[dict[str, Any]]:
        return await self.gateway.list(f"/courses/enrollments/student/{student_id}", self.session)

    async def student_submissions(self, student_id: str) -> list[dict[str, Any]]:
        return await self.gateway.list(f"/assessments/submissions/student/{student_id}", self.session)

    async def activity(self, activity_id: str) -> dict[str, Any]:
        return await self.gateway.get(f"/assessments/activities/{activity_id}", self.session)

    async def payment(self, payment_id: str) -> dict[str, Any]:
        return await self.gateway.get(f"/payments/{payment_id}", self.session)

    async def submission(self, submission_id: str) -> dict[str, Any]:
        return await self.gateway.get(f"/assessments/submissions/{submission_id}", self.session)
