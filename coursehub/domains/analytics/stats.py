# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Statistics over assembled views.

Everything in this module is pure and synchronous: inputs are snapshots and
composite views that were already fetched and joined, outputs are
dataclasses with a to_dict() for API responses.

Counters and rollups only ever read sources that were fetched successfully.
A failed source contributes zero and is named in `degraded`, so the caller
can tell "no students" from "students could not be loaded".

Usage:
    from coursehub.domains.analytics import compute_stats

    summary = compute_stats("enrollment_summary", enrollment_views)
    report = compute_stats("attendance", sessions, roster=student_ids)
    counters = compute_stats("dashboard", collections, failed=["courses"])
"""

import inspect
import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import asdict, dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Callable

from coursehub.domains.aggregation.exceptions import AggregationInputError
from coursehub.domains.aggregation.joins import CompositeView, Unknown
from coursehub.domains.aggregation.references import canonical_id, record_id
from coursehub.domains.lifecycle import (
    ATTENDED_MARKS,
    DEFAULT_MARK,
    AttendanceMark,
    EnrollmentBucket,
    PaymentStatus,
    bucket_for,
    late_penalty_per_day,
    session_marks,
    total_points,
)
from coursehub.utils.datetime import date_key

logger = logging.getLogger(__name__)

Item = CompositeView | Mapping[str, Any]

DASHBOARD_SOURCES: tuple[tuple[str, str], ...] = (
    ("students", "total_students"),
    ("instructors", "total_instructors"),
    ("courses", "total_courses"),
    ("enrollments", "total_enrollments"),
    ("announcements", "active_announcements"),
)


def _record(item: Item) -> Mapping[str, Any]:
    return item.record if isinstance(item, CompositeView) else item


def percent(numerator: float, denominator: float) -> int | None:
    """Whole percentage rounded half up; None when the denominator is zero."""
    if not denominator:
        return None
    value = Decimal(str(numerator)) * 100 / Decimal(str(denominator))
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _average(values: Sequence[float]) -> float | None:
    if not values:
        return None
    return round(sum(values) / len(values), 2)


def _full_name(person: Mapping[str, Any] | Unknown | None) -> str | None:
    if person is None or isinstance(person, Unknown):
        return None
    parts = [person.get("firstName"), person.get("lastName")]
    name = " ".join(p for p in parts if p)
    return name or None


# ============================================================================
# Dashboard
# ============================================================================


@dataclass
class DashboardCounters:
    """Top-level counters shown on the admin dashboard.

    Attributes:
        totals: Counter name -> count (0 for a failed source).
        degraded: Sources that failed, in dashboard order.
    """

    totals: dict[str, int] = field(default_factory=dict)
    degraded: list[str] = field(default_factory=list)

    @property
    def is_degraded(self) -> bool:
        return bool(self.degraded)

    def __getitem__(self, name: str) -> int:
        return self.totals[name]

    def to_dict(self) -> dict[str, Any]:
        return {**self.totals, "degraded": list(self.degraded)}


def dashboard_counters(
    collections: Mapping[str, Sequence[Mapping[str, Any]]],
    failed: Iterable[str] = (),
    active_only: bool = True,
) -> DashboardCounters:
    """Count each dashboard source.

    Args:
        collections: Source name -> records, for the sources that succeeded.
        failed: Sources whose fetch failed.
        active_only: Skip announcements flagged isActive=false.
    """
    failed_set = set(failed)
    counters = DashboardCounters()
    for source, counter in DASHBOARD_SOURCES:
        if source in failed_set or source not in collections:
            counters.totals[counter] = 0
            counters.degraded.append(source)
            continue
        records = collections[source] or ()
        if source == "announcements" and active_only:
            records = [r for r in records if r.get("isActive", True) is not False]
        counters.totals[counter] = len(records)
    return counters


# ============================================================================
# Enrollment rollups
# ============================================================================


@dataclass
class EnrollmentSummary:
    """Enrollment counts by status bucket.

    Statuses outside the known buckets count toward total only.
    """

    total: int = 0
    active: int = 0
    completed: int = 0
    dropped: int = 0

    def add(self, status: str | None) -> None:
        self.total += 1
        bucket = bucket_for(status)
        if bucket == EnrollmentBucket.ACTIVE:
            self.active += 1
        elif bucket == EnrollmentBucket.COMPLETED:
            self.completed += 1
        elif bucket == EnrollmentBucket.DROPPED:
            self.dropped += 1

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def enrollment_summary(enrollments: Iterable[Item]) -> EnrollmentSummary:
    summary = EnrollmentSummary()
    for item in enrollments:
        summary.add(_record(item).get("status"))
    return summary


@dataclass
class CourseRollup:
    """Enrollment and section counts for one course."""

    course_id: str | None
    course_code: str | None
    course_name: str | None
    enrollments: EnrollmentSummary
    active_sections: int = 0
    total_sections: int = 0
    sections_degraded: bool = False

    @property
    def total_enrollments(self) -> int:
        return self.enrollments.total

    def to_dict(self) -> dict[str, Any]:
        return {
            "course_id": self.course_id,
            "course_code": self.course_code,
            "course_name": self.course_name,
            "total_enrollments": self.enrollments.total,
            "enrollments": self.enrollments.to_dict(),
            "active_sections": self.active_sections,
            "total_sections": self.total_sections,
            "sections_degraded": self.sections_degraded,
        }


def course_rollups(
    course_views: Iterable[CompositeView],
    degraded_sections: Iterable[str] = (),
) -> list[CourseRollup]:
    """Roll up courses grouped with their "sections" and "enrollments".

    Args:
        course_views: Course views carrying both groups.
        degraded_sections: Course ids whose section fetch failed.
    """
    degraded = set(degraded_sections)
    rollups = []
    for view in course_views:
        course = view.record
        sections = view.group("sections")
        rollups.append(
            CourseRollup(
                course_id=view.id,
                course_code=course.get("courseCode"),
                course_name=course.get("courseName"),
                enrollments=enrollment_summary(view.group("enrollments")),
                active_sections=sum(1 for s in sections if s.get("isActive") is True),
                total_sections=len(sections),
                sections_degraded=view.id in degraded,
            )
        )
    return rollups


@dataclass
class StudentRollup:
    """Enrollment counts for one student."""

    student_id: str | None
    name: str | None
    email: str | None
    total_enrollments: int = 0
    active_courses: int = 0
    completed_courses: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def student_rollups(student_views: Iterable[CompositeView]) -> list[StudentRollup]:
    """Roll up students grouped with their "enrollments"."""
    rollups = []
    for view in student_views:
        summary = enrollment_summary(view.group("enrollments"))
        rollups.append(
            StudentRollup(
                student_id=view.id,
                name=_full_name(view.record),
                email=view.record.get("email"),
                total_enrollments=summary.total,
                active_courses=summary.active,
                completed_courses=summary.completed,
            )
        )
    return rollups


@dataclass
class InstructorRollup:
    """Teaching load of one instructor."""

    instructor_id: str | None
    name: str | None
    total_sections: int = 0
    total_students: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _enrolled_count(section: Mapping[str, Any]) -> int:
    value = section.get("enrolled")
    if isinstance(value, bool) or not isinstance(value, int | float):
        return 0
    return int(value)


def instructor_rollups(instructor_views: Iterable[CompositeView]) -> list[InstructorRollup]:
    """Roll up instructors grouped with the "sections" they teach.

    Students are counted from each section's `enrolled` counter, summed over
    every section taught.
    """
    rollups = []
    for view in instructor_views:
        sections = view.group("sections")
        rollups.append(
            InstructorRollup(
                instructor_id=view.id,
                name=_full_name(view.record),
                total_sections=len(sections),
                total_students=sum(_enrolled_count(s) for s in sections),
            )
        )
    return rollups


# ============================================================================
# Attendance
# ============================================================================


@dataclass
class StudentAttendance:
    """Attendance counts of one student in one section.

    Attributes:
        sessions: Recorded sessions that counted for this student.
        rate: Whole percentage of sessions attended (present or late), None
            when no session counted.
    """

    student_id: str
    present: int = 0
    late: int = 0
    excused: int = 0
    absent: int = 0
    sessions: int = 0
    on_roster: bool = True

    def add(self, mark: AttendanceMark) -> None:
        setattr(self, mark.value, getattr(self, mark.value) + 1)
        self.sessions += 1

    @property
    def attended(self) -> int:
        return sum(getattr(self, m.value) for m in ATTENDED_MARKS)

    @property
    def rate(self) -> int | None:
        return percent(self.attended, self.sessions)

    def to_dict(self) -> dict[str, Any]:
        return {
            "student_id": self.student_id,
            "present": self.present,
            "late": self.late,
            "excused": self.excused,
            "absent": self.absent,
            "sessions": self.sessions,
            "attendance_rate": self.rate,
            "on_roster": self.on_roster,
        }


@dataclass
class AttendanceReport:
    """Per-student attendance for one section."""

    section_id: str | None
    total_sessions: int = 0
    session_dates: list[str] = field(default_factory=list)
    students: list[StudentAttendance] = field(default_factory=list)

    def for_student(self, student_id: str) -> StudentAttendance | None:
        for stats in self.students:
            if stats.student_id == student_id:
                return stats
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "section_id": self.section_id,
            "total_sessions": self.total_sessions,
            "session_dates": list(self.session_dates),
            "students": [s.to_dict() for s in self.students],
        }


def _distinct_sessions(
    sessions: Iterable[Mapping[str, Any]],
) -> list[tuple[str, Mapping[str, Any]]]:
    by_key: dict[str, Mapping[str, Any]] = {}
    for position, session in enumerate(sessions):
        key = date_key(session.get("date")) or record_id(session) or f"#{position}"
        if key in by_key:
            logger.warning("Duplicate attendance session for %s, keeping the latest", key)
        by_key[key] = session
    return sorted(by_key.items(), key=lambda kv: kv[0])


def attendance_statistics(
    sessions: Iterable[Item],
    roster: Iterable[str] | None = None,
    section_id: str | None = None,
) -> AttendanceReport:
    """Compute attendance counts and rates for one section.

    Only sessions that were actually recorded count; dates with no session
    are not absences. On a recorded session, a roster member without a mark
    is absent. Students marked in some session but no longer on the roster
    are reported with only the sessions they were marked in.

    Args:
        sessions: Attendance records (one per section and date).
        roster: Ids of students currently enrolled in the section. When None,
            everyone marked in any session is treated as on the roster.
        section_id: Keep only sessions of this section.
    """
    records = [_record(s) for s in sessions]
    if section_id is not None:
        records = [r for r in records if canonical_id(r.get("sectionId")) == section_id]

    distinct = _distinct_sessions(records)
    marks_per_session = [session_marks(session) for _, session in distinct]

    if roster is None:
        roster_ids: list[str] = []
        for marks in marks_per_session:
            roster_ids.extend(sid for sid in marks if sid not in roster_ids)
    else:
        roster_ids = list(dict.fromkeys(roster))

    stats: dict[str, StudentAttendance] = {
        sid: StudentAttendance(student_id=sid) for sid in roster_ids
    }
    for marks in marks_per_session:
        for sid in roster_ids:
            stats[sid].add(marks.get(sid, DEFAULT_MARK))
        for sid, mark in marks.items():
            if sid in roster_ids:
                continue
            if sid not in stats:
                stats[sid] = StudentAttendance(student_id=sid, on_roster=False)
            stats[sid].add(mark)

    return AttendanceReport(
        section_id=section_id,
        total_sessions=len(distinct),
        session_dates=[key for key, _ in distinct],
        students=list(stats.values()),
    )


# ============================================================================
# Grading
# ============================================================================


def grade_percentage(
    submission: Mapping[str, Any],
    activity: Mapping[str, Any] | Unknown | None,
) -> float | None:
    """Percentage of total points scored on a submission.

    Returns None for an ungraded submission (no score) or when the activity
    is unknown or has no usable total points. The raw score is used; any
    configured late penalty is not applied.
    """
    score = submission.get("score")
    if score is None or isinstance(score, bool) or not isinstance(score, int | float):
        return None
    if activity is None or isinstance(activity, Unknown):
        return None
    points = total_points(activity)
    if points is None:
        return None
    return score * 100 / points


@dataclass
class GradeLine:
    """One submission as shown in a gradebook."""

    submission_id: str | None
    student_id: str | None
    activity_id: str | None
    activity_title: str | None
    score: float | None
    total_points: float | None
    percentage: float | None
    is_late: bool = False
    late_penalty_per_day: float = 0.0
    status: str | None = None

    @property
    def is_graded(self) -> bool:
        return self.score is not None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["percentage"] = round(self.percentage, 2) if self.percentage is not None else None
        return data


def grade_line(view: CompositeView) -> GradeLine:
    """Build a gradebook line from a submission view joined with "activity"."""
    submission = view.record
    activity = view.get("activity")
    known_activity = activity if activity is not None and not isinstance(activity, Unknown) else None
    score = submission.get("score")
    return GradeLine(
        submission_id=view.id,
        student_id=canonical_id(submission.get("studentId")),
        activity_id=canonical_id(submission.get("activityId")),
        activity_title=known_activity.get("title") if known_activity else None,
        score=score if isinstance(score, int | float) and not isinstance(score, bool) else None,
        total_points=total_points(known_activity) if known_activity else None,
        percentage=grade_percentage(submission, activity),
        is_late=bool(submission.get("isLate")),
        late_penalty_per_day=late_penalty_per_day(known_activity) if known_activity else 0.0,
        status=submission.get("status"),
    )


@dataclass
class GradingSummary:
    """Grading figures over a set of submissions.

    Attributes:
        unscorable: Graded submissions whose activity is unknown or has no
            total points; excluded from the average.
    """

    total_submissions: int = 0
    graded: int = 0
    ungraded: int = 0
    late: int = 0
    unscorable: int = 0
    average_percentage: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def grading_summary(submission_views: Iterable[CompositeView]) -> GradingSummary:
    summary = GradingSummary()
    percentages: list[float] = []
    for view in submission_views:
        line = grade_line(view)
        summary.total_submissions += 1
        if line.is_late:
            summary.late += 1
        if not line.is_graded:
            summary.ungraded += 1
            continue
        summary.graded += 1
        if line.percentage is None:
            summary.unscorable += 1
        else:
            percentages.append(line.percentage)
    summary.average_percentage = _average(percentages)
    return summary


@dataclass
class StudentGrades:
    """Average graded percentage of one student."""

    student_id: str
    graded_activities: int = 0
    average_percentage: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def student_grades(submission_views: Iterable[CompositeView]) -> list[StudentGrades]:
    """Per-student averages over scorable graded submissions."""
    per_student: dict[str, list[float]] = {}
    for view in submission_views:
        line = grade_line(view)
        if line.student_id is None or line.percentage is None:
            continue
        per_student.setdefault(line.student_id, []).append(line.percentage)
    return [
        StudentGrades(
            student_id=sid,
            graded_activities=len(values),
            average_percentage=_average(values),
        )
        for sid, values in per_student.items()
    ]


@dataclass
class CourseProgress:
    """A student's standing in one enrolled course."""

    course_id: str | None
    course_code: str | None
    course_name: str | None
    enrollment_status: str | None
    completed_activities: int = 0
    average_percentage: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def student_progress(
    enrollment_views: Iterable[CompositeView],
    submission_views: Iterable[CompositeView],
) -> list[CourseProgress]:
    """Per enrolled course, graded activity count and average percentage.

    Args:
        enrollment_views: The student's enrollments joined with "course".
        submission_views: The student's submissions joined with "activity".
    """
    by_course: dict[str, list[float]] = {}
    for view in submission_views:
        activity = view.get("activity")
        if activity is None or isinstance(activity, Unknown):
            continue
        value = grade_percentage(view.record, activity)
        course_id = canonical_id(activity.get("courseId"))
        if value is None or course_id is None:
            continue
        by_course.setdefault(course_id, []).append(value)

    progress = []
    for view in enrollment_views:
        course = view.get("course")
        course_id = canonical_id(view.record.get("courseId"))
        known = course if course is not None and not isinstance(course, Unknown) else None
        values = by_course.get(course_id or "", [])
        progress.append(
            CourseProgress(
                course_id=course_id,
                course_code=known.get("courseCode") if known else None,
                course_name=known.get("courseName") if known else None,
                enrollment_status=view.record.get("status"),
                completed_activities=len(values),
                average_percentage=_average(values),
            )
        )
    return progress


# ============================================================================
# Payments
# ============================================================================


@dataclass
class PaymentSummary:
    """Revenue and status counts over payments.

    Revenue sums completed payments only.
    """

    total_payments: int = 0
    total_revenue: float = 0.0
    pending: int = 0
    completed: int = 0
    failed: int = 0
    cancelled: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def payment_summary(payments: Iterable[Item]) -> PaymentSummary:
    summary = PaymentSummary()
    revenue = Decimal("0")
    for item in payments:
        payment = _record(item)
        summary.total_payments += 1
        status = payment.get("status")
        if status == PaymentStatus.PENDING_PAYPAL_APPROVAL.value:
            summary.pending += 1
        elif status == PaymentStatus.COMPLETED.value:
            summary.completed += 1
            amount = payment.get("amount")
            if isinstance(amount, int | float) and not isinstance(amount, bool):
                revenue += Decimal(str(amount))
        elif status == PaymentStatus.FAILED.value:
            summary.failed += 1
        elif status == PaymentStatus.CANCELLED.value:
            summary.cancelled += 1
    summary.total_revenue = float(revenue.quantize(Decimal("0.01")))
    return summary


# ============================================================================
# Dispatcher
# ============================================================================

AggregateResult = (
    DashboardCounters
    | EnrollmentSummary
    | AttendanceReport
    | GradingSummary
    | PaymentSummary
    | list[CourseRollup]
    | list[StudentRollup]
    | list[InstructorRollup]
    | list[StudentGrades]
    | list[GradeLine]
)

_STAT_KINDS: dict[str, Callable[..., AggregateResult]] = {
    "dashboard": dashboard_counters,
    "enrollment_summary": enrollment_summary,
    "course_rollup": course_rollups,
    "student_rollup": student_rollups,
    "instructor_rollup": instructor_rollups,
    "attendance": attendance_statistics,
    "grading": grading_summary,
    "student_grades": student_grades,
    "gradebook": lambda views: [grade_line(v) for v in views],
    "payments": payment_summary,
}

STAT_KINDS = frozenset(_STAT_KINDS)


def compute_stats(
    kind: str,
    composites: Iterable[Item] | Mapping[str, Sequence[Mapping[str, Any]]],
    **options: Any,
) -> AggregateResult:
    """Compute one kind of statistic over assembled composites.

    Args:
        kind: One of STAT_KINDS.
        composites: Views or records the statistic runs over. For
            "dashboard", a mapping of source name -> records.
        **options: Extra arguments for the statistic (e.g. roster for
            "attendance", failed for "dashboard").

    Raises:
        AggregationInputError: For an unknown kind or unsupported options.
    """
    func = _STAT_KINDS.get(kind)
    if func is None:
        raise AggregationInputError(
            f"Unknown statistic '{kind}'", {"known": sorted(STAT_KINDS)}
        )
    try:
        inspect.signature(func).bind(composites, **options)
    except TypeError as e:
        raise AggregationInputError(f"Bad options for statistic '{kind}': {e}") from e
    if not isinstance(composites, Mapping):
        composites = list(composites)
    return func(composites, **options)
