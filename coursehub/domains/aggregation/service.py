# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Aggregation and write services.

AggregationService answers every read the admin, instructor and student
pages need. It fetches the sources a view reads in one concurrent batch,
fans out to child collections, assembles composite views through the join
engine and computes statistics over them. Read paths never raise for a
failed source: each view comes back annotated with a PolicyDecision and the
list of failures.

WriteService validates a write, dispatches it once to the owning service and
records an activity log entry. It never retries; after a successful write
the caller re-reads the view instead of patching it locally.

Example:
    service = AggregationService(gateway, session, settings.aggregation)
    view = await service.dashboard()
    view.decision.status          # ViewStatus.DEGRADED
    view.data["total_students"]   # 3

    writes = WriteService(gateway, session, ActivityLogger(gateway))
    await writes.create("enrollments", {"studentId": "u1", ...})
"""

import asyncio
import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from functools import partial
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from coursehub.core.config.settings import AggregationSettings
from coursehub.domains.aggregation.exceptions import (
    AggregationInputError,
    ValidationError,
)
from coursehub.domains.aggregation.fetch import (
    FanOutResult,
    Fulfilled,
    NamedTask,
    OutcomeSet,
    fan_out,
    gather_independent,
)
from coursehub.domains.aggregation.joins import (
    CompositeView,
    GroupSpec,
    JoinEngine,
    JoinSpec,
    JoinedSide,
    Unknown,
    group_by,
)
from coursehub.domains.aggregation.policy import PolicyDecision, ViewStatus, evaluate
from coursehub.domains.aggregation.references import (
    Resolved,
    canonical_id,
    normalize,
    record_id,
)
from coursehub.domains.analytics import (
    DASHBOARD_SOURCES,
    attendance_statistics,
    course_rollups,
    dashboard_counters,
    enrollment_summary,
    enrollments_to_csv,
    grade_line,
    grading_summary,
    instructor_rollups,
    payment_summary,
    student_grades,
    student_progress,
    student_rollups,
)
from coursehub.domains.lifecycle import (
    PAYMENT_LIFECYCLE,
    SUBMISSION_LIFECYCLE,
    SubmissionStatus,
    is_currently_taking,
    is_late,
    total_points,
    validate_score,
)
from coursehub.infrastructure.activity_log import ActivityLogger
from coursehub.infrastructure.gateway import (
    CHILD_SOURCES,
    KNOWN_SOURCES,
    TOP_LEVEL_SOURCES,
    WRITE_ROUTES,
    CampusSources,
    ResourceRoute,
    ServiceGateway,
    UpstreamError,
    fill_path,
)
from coursehub.models import (
    AttendanceRecordCreate,
    CourseCreate,
    EnrollmentCreate,
    EnrollmentUpdate,
    GradeSubmission,
    PaymentRequest,
    PaymentStatusUpdate,
    SessionContext,
    SubmissionCreate,
    UserCreate,
    WriteSchema,
)
from coursehub.utils.datetime import coerce_datetime, format_iso, utc_now

logger = logging.getLogger(__name__)


def _side_dict(side: JoinedSide) -> dict[str, Any]:
    return side.to_dict() if isinstance(side, Unknown) else dict(side)


def _by_order(records: Iterable[Mapping[str, Any]]) -> list[Mapping[str, Any]]:
    # Modules and lessons carry an optional "order"; unordered ones go last.
    return sorted(records, key=lambda r: (r.get("order") is None, r.get("order") or 0))


# ============================================================================
# Results
# ============================================================================


@dataclass
class SourceSnapshot:
    """Everything fetched for one assembly.

    Attributes:
        collections: Source name -> records, for sources that were fetched
            (child sources hold the records of every parent that succeeded).
        failed: Failed fetches. Whole sources by name, child fetches of a
            single parent as "child:parentId".
        failures: Failure entries reported to callers.
    """

    collections: dict[str, list[Mapping[str, Any]]] = field(default_factory=dict)
    failed: list[str] = field(default_factory=list)
    failures: list[dict[str, str]] = field(default_factory=list)

    def absorb(self, batch: OutcomeSet) -> None:
        """Add the outcomes of a top-level batch."""
        for outcome in batch:
            if isinstance(outcome, Fulfilled):
                self.collections[outcome.source] = list(outcome.data or ())
            else:
                self.failed.append(outcome.source)
                self.failures.append(outcome.to_dict())

    def absorb_children(self, result: FanOutResult) -> None:
        """Add the outcomes of a per-parent fan-out."""
        self.collections[result.child_source] = result.flatten()
        for parent_id in result.failed_parents:
            self.failed.append(f"{result.child_source}:{parent_id}")
        self.failures.extend(result.failures)

    def fail(self, source: str, reason: str) -> None:
        """Mark a source failed without fetching it."""
        self.failed.append(source)
        self.failures.append({"source": source, "error": reason})

    def rename(self, source: str, name: str) -> None:
        """Report a fetched source under another name, in data and failures alike."""
        if source in self.collections:
            self.collections[name] = self.collections.pop(source)
        self.failed = [name if n == source else n for n in self.failed]
        for entry in self.failures:
            if entry.get("source") == source:
                entry["source"] = name

    def data(self, source: str) -> list[Mapping[str, Any]]:
        return self.collections.get(source, [])

    def has_failed(self, source: str) -> bool:
        return source in self.failed

    def failed_parents(self, child_source: str) -> list[str]:
        prefix = f"{child_source}:"
        return [name[len(prefix):] for name in self.failed if name.startswith(prefix)]

    def engine(self) -> JoinEngine:
        return JoinEngine(
            self.collections,
            failed=[name for name in self.failed if ":" not in name],
        )

    def decide(self, required: Sequence[str], primary: str | None = None) -> PolicyDecision:
        return evaluate(required, self.failed, primary)


@dataclass
class AggregateResponse:
    """Raw collections for a list of requested sources.

    Attributes:
        views: Source name -> records, for each requested source that was
            fetched (a child source may be partial, see failures).
        failures: One entry per failed fetch, {"source", "error"}.
    """

    views: dict[str, list[Mapping[str, Any]]] = field(default_factory=dict)
    failures: list[dict[str, str]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "views": {name: [dict(r) for r in records] for name, records in self.views.items()},
            "failures": list(self.failures),
        }


@dataclass
class AssembledView:
    """A named page view with its completeness annotation."""

    name: str
    decision: PolicyDecision
    data: dict[str, Any] = field(default_factory=dict)
    failures: list[dict[str, str]] = field(default_factory=list)

    @property
    def status(self) -> ViewStatus:
        return self.decision.status

    def to_dict(self) -> dict[str, Any]:
        return {
            "view": self.name,
            **self.decision.to_dict(),
            "failures": list(self.failures),
            "data": self.data,
        }


# ============================================================================
# Read side
# ============================================================================

ENROLLMENT_JOINS = (
    JoinSpec("students", key="studentId", field="student"),
    JoinSpec("courses", key="courseId", field="course"),
    JoinSpec("sections", key="sectionId", field="section"),
)

USER_ROLES = (
    ("students", "student"),
    ("instructors", "instructor"),
    ("admins", "admin"),
)


class AggregationService:
    """Assembles page views from the LMS services.

    One instance serves one session; every fetch carries that session's
    credentials.

    Attributes:
        session: The acting user.
        sources: Source catalog bound to the gateway and session.
        settings: Concurrency and dashboard options.
    """

    def __init__(
        self,
        gateway: ServiceGateway,
        session: SessionContext,
        settings: AggregationSettings | None = None,
    ) -> None:
        self.session = session
        self.sources = CampusSources(gateway, session)
        self.settings = settings or AggregationSettings()

    @property
    def _limit(self) -> int:
        return self.settings.max_concurrency

    async def _batch(self, tasks: Sequence[NamedTask]) -> OutcomeSet:
        return OutcomeSet(await gather_independent(tasks, max_concurrency=self._limit))

    def _plan(self, sources: Sequence[str]) -> list[str]:
        """Validate requested sources and add the parents child sources need.

        Returns:
            Sources to fetch, parents before children.

        Raises:
            AggregationInputError: On a malformed request or unknown source.
        """
        if isinstance(sources, str | bytes) or not isinstance(sources, Sequence):
            raise AggregationInputError(
                "Sources must be a list of source names",
                {"received": type(sources).__name__},
            )

        ordered: list[str] = []

        def _add(name: str) -> None:
            if name in ordered:
                return
            child = CHILD_SOURCES.get(name)
            if child is not None:
                _add(child.parent)
            ordered.append(name)

        for name in sources:
            if not isinstance(name, str) or name not in KNOWN_SOURCES:
                raise AggregationInputError(
                    f"Unknown source {name!r}", {"known": sorted(KNOWN_SOURCES)}
                )
            _add(name)
        return ordered

    async def _fan_out(self, snapshot: SourceSnapshot, child_source: str) -> None:
        parent = CHILD_SOURCES[child_source].parent
        if snapshot.has_failed(parent):
            snapshot.fail(child_source, f"parent source '{parent}' unavailable")
            return
        result = await fan_out(
            snapshot.data(parent),
            child_source,
            partial(self.sources.fetch_children, child_source),
            max_concurrency=self._limit,
        )
        snapshot.absorb_children(result)

    async def load(self, sources: Sequence[str]) -> SourceSnapshot:
        """Fetch sources, resolving child sources through their parents.

        Top-level sources go out in one batch. Child sources then fan out
        level by level; children of the same parent level run concurrently.
        """
        plan = self._plan(sources)
        snapshot = SourceSnapshot()
        snapshot.absorb(await self._batch([self.sources.task(s) for s in plan if s in TOP_LEVEL_SOURCES]))

        pending = [s for s in plan if s in CHILD_SOURCES]
        while pending:
            ready = [s for s in pending if CHILD_SOURCES[s].parent not in pending]
            await asyncio.gather(*[self._fan_out(snapshot, s) for s in ready])
            pending = [s for s in pending if s not in ready]

        if snapshot.failed:
            logger.info("Loaded %s with failures: %s", ", ".join(plan), ", ".join(snapshot.failed))
        return snapshot

    async def aggregate(self, sources_needed: Sequence[str]) -> AggregateResponse:
        """Fetch raw collections for a list of source names.

        Never raises for a failed source; failures are listed in the
        response.

        Raises:
            AggregationInputError: If the request is malformed.
        """
        snapshot = await self.load(sources_needed)
        requested = list(dict.fromkeys(sources_needed))
        return AggregateResponse(
            views={s: snapshot.data(s) for s in requested if s in snapshot.collections},
            failures=snapshot.failures,
        )

    def _view(
        self,
        name: str,
        snapshot: SourceSnapshot,
        required: Sequence[str],
        data: dict[str, Any],
        primary: str | None = None,
    ) -> AssembledView:
        decision = snapshot.decide(required, primary)
        if not decision.is_complete:
            logger.warning(
                "View %s is %s, missing: %s",
                name,
                decision.status.value,
                ", ".join(decision.missing),
            )
        return AssembledView(name=name, decision=decision, data=data, failures=snapshot.failures)

    async def dashboard(self) -> AssembledView:
        """Admin dashboard counters."""
        announcements = (
            "all_announcements" if self.settings.include_inactive_announcements else "announcements"
        )
        snapshot = await self.load(["students", "instructors", "courses", "enrollments", announcements])
        snapshot.rename(announcements, "announcements")

        required = [source for source, _ in DASHBOARD_SOURCES]
        counters = dashboard_counters(
            snapshot.collections,
            snapshot.failed,
            active_only=not self.settings.include_inactive_announcements,
        )
        return self._view("dashboard", snapshot, required, counters.to_dict())

    def _enrollment_views(self, engine: JoinEngine) -> list[CompositeView]:
        return engine.assemble("enrollments", joins=ENROLLMENT_JOINS)

    async def reports(self) -> AssembledView:
        """Enrollment, course, student and instructor reports."""
        required = ["enrollments", "students", "instructors", "courses", "sections"]
        snapshot = await self.load(required)
        engine = snapshot.engine()

        enrollment_views = self._enrollment_views(engine)
        course_views = engine.assemble(
            "courses",
            groups=[GroupSpec("sections", "courseId"), GroupSpec("enrollments", "courseId")],
        )
        student_views = engine.assemble("students", groups=[GroupSpec("enrollments", "studentId")])
        instructor_views = engine.assemble(
            "instructors", groups=[GroupSpec("sections", "instructorId")]
        )

        data = {
            "enrollment_stats": enrollment_summary(enrollment_views).to_dict(),
            "courses": [
                r.to_dict()
                for r in course_rollups(course_views, snapshot.failed_parents("sections"))
            ],
            "students": [r.to_dict() for r in student_rollups(student_views)],
            "instructors": [r.to_dict() for r in instructor_rollups(instructor_views)],
            "enrollments": [v.to_dict() for v in enrollment_views],
        }
        return self._view("reports", snapshot, required, data, primary="enrollments")

    async def export_enrollments(self) -> AssembledView:
        """Enrollment report rendered as CSV text under data["csv"]."""
        required = ["enrollments", "students", "courses", "sections"]
        snapshot = await self.load(required)
        views = self._enrollment_views(snapshot.engine())
        data = {"csv": enrollments_to_csv(views), "rows": len(views)}
        return self._view("enrollment_export", snapshot, required, data, primary="enrollments")

    async def course_catalog(self) -> AssembledView:
        """Courses with their sections (and instructors) and enrollment counts."""
        required = ["courses", "sections", "enrollments", "instructors"]
        snapshot = await self.load(required)
        engine = snapshot.engine()

        section_rows = [
            v.to_dict()
            for v in engine.assemble(
                "sections", joins=[JoinSpec("instructors", key="instructorId", field="instructor")]
            )
        ]
        sections_by_course = group_by(section_rows, "courseId")
        course_views = engine.assemble(
            "courses",
            groups=[GroupSpec("sections", "courseId"), GroupSpec("enrollments", "courseId")],
        )
        rollups = course_rollups(course_views, snapshot.failed_parents("sections"))

        courses = []
        for view, rollup in zip(course_views, rollups, strict=True):
            row = dict(view.record)
            row["sections"] = list(sections_by_course.get(view.id, [])) if view.id else []
            row["stats"] = rollup.to_dict()
            courses.append(row)
        return self._view("courses", snapshot, required, {"courses": courses}, primary="courses")

    async def content_tree(self) -> AssembledView:
        """Courses, their modules and lessons, plus active announcements."""
        required = ["courses", "modules", "lessons", "announcements"]
        snapshot = await self.load(required)
        engine = snapshot.engine()

        module_rows = [
            {**view.to_dict(), "lessons": [dict(r) for r in _by_order(view.group("lessons"))]}
            for view in engine.assemble("modules", groups=[GroupSpec("lessons", "moduleId")])
        ]
        modules_by_course = group_by(module_rows, "courseId")
        courses = [
            {**view.to_dict(), "modules": _by_order(modules_by_course.get(view.id, []))}
            for view in engine.assemble("courses")
        ]
        announcements = [
            v.to_dict()
            for v in engine.assemble(
                "announcements", joins=[JoinSpec("courses", key="courseId", field="course")]
            )
        ]
        return self._view(
            "content",
            snapshot,
            required,
            {"courses": courses, "announcements": announcements},
            primary="courses",
        )

    async def section_attendance(self, section_id: str, course_id: str) -> AssembledView:
        """Attendance counts and rates for each student of a section."""
        required = ["attendance", "enrollments", "students"]
        snapshot = SourceSnapshot()
        snapshot.absorb(
            await self._batch(
                [
                    NamedTask(
                        "attendance",
                        partial(self.sources.fetch_children, "attendance", course_id),
                    ),
                    self.sources.task("enrollments"),
                    self.sources.task("students"),
                ]
            )
        )

        roster = None
        if not snapshot.has_failed("enrollments"):
            roster = [
                sid
                for e in snapshot.data("enrollments")
                if canonical_id(e.get("sectionId")) == section_id
                and is_currently_taking(e.get("status"))
                and (sid := canonical_id(e.get("studentId"))) is not None
            ]
        report = attendance_statistics(snapshot.data("attendance"), roster, section_id)

        engine = snapshot.engine()
        student_join = JoinSpec("students", key="studentId", field="student")
        rows = [
            {**stats.to_dict(), "student": _side_dict(engine.resolve(stats.student_id, student_join))}
            for stats in report.students
        ]
        data = {
            **report.to_dict(),
            "course_id": course_id,
            "students": rows,
            "roster_known": roster is not None,
        }
        return self._view("attendance", snapshot, required, data, primary="attendance")

    async def gradebook(self, course_id: str) -> AssembledView:
        """Submissions and grading statistics for one course."""
        required = ["activities", "submissions", "students", "enrollments"]
        snapshot = SourceSnapshot()
        snapshot.absorb(
            await self._batch(
                [
                    NamedTask(
                        "activities",
                        partial(self.sources.fetch_children, "activities", course_id),
                    ),
                    self.sources.task("students"),
                    self.sources.task("enrollments"),
                ]
            )
        )
        await self._fan_out(snapshot, "submissions")
        engine = snapshot.engine()

        submission_views = engine.assemble(
            "submissions",
            joins=[
                JoinSpec("activities", key="activityId", field="activity"),
                JoinSpec("students", key="studentId", field="student"),
            ],
        )
        course_enrollments = [
            e for e in snapshot.data("enrollments") if canonical_id(e.get("courseId")) == course_id
        ]
        submissions = [
            {**grade_line(view).to_dict(), "student": _side_dict(view.side("student"))}
            for view in submission_views
        ]
        data = {
            "course_id": course_id,
            "total_activities": len(snapshot.data("activities")),
            "enrollments": enrollment_summary(course_enrollments).to_dict(),
            "grading": grading_summary(submission_views).to_dict(),
            "students": [g.to_dict() for g in student_grades(submission_views)],
            "submissions": submissions,
        }
        return self._view("gradebook", snapshot, required, data, primary="submissions")

    async def payments_overview(self) -> AssembledView:
        """Payments joined with students, plus revenue and status counts."""
        required = ["payments", "students"]
        snapshot = await self.load(required)
        views = snapshot.engine().assemble(
            "payments", joins=[JoinSpec("students", key="studentId", field="student")]
        )
        data = {
            "summary": payment_summary(views).to_dict(),
            "payments": [v.to_dict() for v in views],
        }
        return self._view("payments", snapshot, required, data, primary="payments")

    async def student_progress(self, student_id: str) -> AssembledView:
        """Per-course progress of one student."""
        required = ["enrollments", "submissions", "courses", "activities"]
        snapshot = SourceSnapshot()
        snapshot.absorb(
            await self._batch(
                [
                    NamedTask("enrollments", partial(self.sources.student_enrollments, student_id)),
                    NamedTask("submissions", partial(self.sources.student_submissions, student_id)),
                    self.sources.task("courses"),
                ]
            )
        )

        # Activities carried inline on a submission need no fetch.
        activity_ids: list[dict[str, str]] = []
        for submission in snapshot.data("submissions"):
            ref = normalize(submission.get("activityId"))
            if ref is None or isinstance(ref, Resolved):
                continue
            if not any(a["_id"] == ref.id for a in activity_ids):
                activity_ids.append({"_id": ref.id})

        async def _activity(activity_id: str) -> list[dict[str, Any]]:
            return [await self.sources.activity(activity_id)]

        snapshot.absorb_children(
            await fan_out(activity_ids, "activities", _activity, max_concurrency=self._limit)
        )

        engine = snapshot.engine()
        enrollment_views = engine.assemble(
            "enrollments", joins=[JoinSpec("courses", key="courseId", field="course")]
        )
        submission_views = engine.assemble(
            "submissions", joins=[JoinSpec("activities", key="activityId", field="activity")]
        )
        progress = student_progress(enrollment_views, submission_views)
        data = {
            "student_id": student_id,
            "courses": [p.to_dict() for p in progress],
            "graded_activities": sum(p.completed_activities for p in progress),
        }
        return self._view("student_progress", snapshot, required, data, primary="enrollments")

    async def user_directory(self) -> AssembledView:
        """Students, instructors and admins in one list, tagged with role."""
        required = [source for source, _ in USER_ROLES]
        snapshot = await self.load(required)
        users = []
        counts = {}
        for source, role in USER_ROLES:
            records = snapshot.data(source)
            counts[role] = len(records)
            users.extend({**record, "role": role} for record in records)
        return self._view("users", snapshot, required, {"users": users, "counts": counts})


# ============================================================================
# Write side
# ============================================================================

CREATE_SCHEMAS: dict[str, type[WriteSchema]] = {
    "students": UserCreate,
    "instructors": UserCreate,
    "admins": UserCreate,
    "courses": CourseCreate,
    "enrollments": EnrollmentCreate,
    "payments": PaymentRequest,
    "submissions": SubmissionCreate,
    "attendance": AttendanceRecordCreate,
}

UPDATE_SCHEMAS: dict[str, type[WriteSchema]] = {
    "enrollments": EnrollmentUpdate,
}


def validate_payload(resource: str, schema: type[WriteSchema], data: Any) -> WriteSchema:
    """Validate a write payload against its schema.

    Raises:
        ValidationError: With one field error per problem found.
    """
    try:
        return schema.model_validate(data)
    except PydanticValidationError as e:
        errors = [
            f"{'.'.join(str(part) for part in err['loc']) or 'body'}: {err['msg']}"
            for err in e.errors()
        ]
        raise ValidationError(f"Invalid {resource} payload", field_errors=errors) from e


class WriteService:
    """Write passthroughs to the owning services.

    Each call validates its input, sends exactly one write and returns the
    upstream envelope unchanged. Upstream failures propagate as
    UpstreamError; nothing is retried.
    """

    def __init__(
        self,
        gateway: ServiceGateway,
        session: SessionContext,
        activity_log: ActivityLogger | None = None,
    ) -> None:
        self.gateway = gateway
        self.session = session
        self.sources = CampusSources(gateway, session)
        self.activity_log = activity_log

    def _route(self, resource: str) -> ResourceRoute:
        route = WRITE_ROUTES.get(resource)
        if route is None:
            raise AggregationInputError(
                f"Unknown resource '{resource}'", {"known": sorted(WRITE_ROUTES)}
            )
        return route

    def _payload(
        self,
        resource: str,
        data: Any,
        schemas: Mapping[str, type[WriteSchema]],
    ) -> dict[str, Any]:
        if not isinstance(data, Mapping):
            raise ValidationError(f"Invalid {resource} payload", field_errors=["body must be an object"])
        schema = schemas.get(resource)
        if schema is None:
            if not data:
                raise ValidationError(f"Empty {resource} payload", field_errors=["body is empty"])
            return dict(data)
        return validate_payload(resource, schema, data).to_payload()

    async def _send(
        self,
        method: str,
        path: str,
        payload: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        try:
            return await self.gateway.request(method, path, self.session, json=payload)
        except UpstreamError as e:
            logger.error("Write %s %s failed: %s", method, path, str(e))
            raise

    async def _log(
        self,
        action: str,
        action_type: str,
        resource: str,
        resource_id: str | None,
        details: str | None = None,
    ) -> None:
        if self.activity_log is None:
            return
        await self.activity_log.record(
            self.session,
            action=action,
            action_type=action_type,
            resource=resource,
            resource_id=resource_id,
            details=details,
        )

    async def create(
        self,
        resource: str,
        data: Mapping[str, Any],
        scope: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Create a record on its owning service.

        Args:
            resource: Resource name (see WRITE_ROUTES).
            data: Request body.
            scope: Extra path values, e.g. {"courseId": ...} for sections.
        """
        if resource == "submissions":
            return await self.submit(data)
        route = self._route(resource)
        payload = self._payload(resource, data, CREATE_SCHEMAS)
        path = fill_path(route.collection, {**payload, **(scope or {})})

        result = await self._send("POST", path, payload)
        created = result.get("data")
        await self._log(
            f"Created {resource}",
            "CREATE",
            resource,
            record_id(created) if isinstance(created, Mapping) else None,
        )
        return result

    async def update(
        self,
        resource: str,
        resource_id: str,
        data: Mapping[str, Any],
        scope: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Update a record on its owning service.

        Payment status changes and grades go through their lifecycle checks.
        """
        route = self._route(resource)
        if resource == "payments" and isinstance(data, Mapping) and "status" in data:
            return await self.update_payment_status(resource_id, data)
        if resource == "submissions" and isinstance(data, Mapping) and "score" in data:
            return await self.grade_submission(resource_id, data)

        payload = self._payload(resource, data, UPDATE_SCHEMAS)
        if not payload:
            raise ValidationError(f"Nothing to update on {resource}", field_errors=["body is empty"])
        path = fill_path(route.item, {**payload, **(scope or {}), "id": resource_id})

        result = await self._send("PUT", path, payload)
        await self._log(f"Updated {resource}", "UPDATE", resource, resource_id)
        return result

    async def delete(
        self,
        resource: str,
        resource_id: str,
        scope: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Delete a record on its owning service."""
        route = self._route(resource)
        path = fill_path(route.item, {**(scope or {}), "id": resource_id})
        result = await self._send("DELETE", path)
        await self._log(f"Deleted {resource}", "DELETE", resource, resource_id)
        return result

    async def update_payment_status(
        self,
        payment_id: str,
        data: Mapping[str, Any],
    ) -> dict[str, Any]:
        """Move a payment out of pending approval.

        Raises:
            ValidationError: On a bad body or unknown current status.
            InvalidTransitionError: If the payment is already final.
        """
        update = validate_payload("payments", PaymentStatusUpdate, data)
        current = await self.sources.payment(payment_id)
        PAYMENT_LIFECYCLE.transition(current.get("status"), update.status)

        result = await self._send("PUT", f"/payments/{payment_id}/status", update.to_payload())
        await self._log(
            f"Payment {update.status.value}",
            "UPDATE",
            "payments",
            payment_id,
            details=f"{current.get('status')} -> {update.status.value}",
        )
        return result

    async def _activity_for(self, submission: Mapping[str, Any]) -> Mapping[str, Any]:
        ref = normalize(submission.get("activityId"))
        if ref is None:
            return {}
        if isinstance(ref, Resolved) and total_points(ref.inline) is not None:
            return ref.inline
        return await self.sources.activity(ref.id)

    async def grade_submission(
        self,
        submission_id: str,
        data: Mapping[str, Any],
    ) -> dict[str, Any]:
        """Record an instructor's grade.

        The score is checked against the activity's total points and stored
        as entered; no late penalty is applied.
        """
        grade = validate_payload("submissions", GradeSubmission, data)
        submission = await self.sources.submission(submission_id)
        SUBMISSION_LIFECYCLE.transition(
            submission.get("status") or SubmissionStatus.SUBMITTED, SubmissionStatus.GRADED
        )
        validate_score(grade.score, await self._activity_for(submission))

        payload = grade.to_payload()
        if self.session.user_id and "gradedBy" not in payload:
            payload["gradedBy"] = self.session.user_id
        payload["status"] = SubmissionStatus.GRADED.value

        result = await self._send("PUT", f"/assessments/submissions/{submission_id}/grade", payload)
        await self._log("Graded submission", "UPDATE", "submissions", submission_id)
        return result

    async def submit(self, data: Mapping[str, Any]) -> dict[str, Any]:
        """Submit a student's work for an activity.

        isLate is fixed now, against the activity's due date.

        Raises:
            ValidationError: If the activity is past due and refuses late
                submissions.
        """
        submission = validate_payload("submissions", SubmissionCreate, data)
        activity = await self.sources.activity(submission.activity_id)

        now = utc_now()
        due = coerce_datetime(activity.get("dueDate"))
        late = is_late(now, due)
        if late and activity.get("allowLateSubmission") is False:
            raise ValidationError(
                "Activity no longer accepts submissions",
                field_errors=["due date has passed"],
            )

        payload = submission.to_payload()
        payload.update(
            isLate=late,
            status=SubmissionStatus.SUBMITTED.value,
            submittedAt=format_iso(now),
        )
        path = fill_path(WRITE_ROUTES["submissions"].collection, payload)

        result = await self._send("POST", path, payload)
        created = result.get("data")
        await self._log(
            "Submitted activity",
            "CREATE",
            "submissions",
            record_id(created) if isinstance(created, Mapping) else None,
            details="late" if late else None,
        )
        return result
