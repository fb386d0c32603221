# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Statistics and exports computed from assembled views."""

from coursehub.domains.analytics.export import (
    ENROLLMENT_CSV_COLUMNS,
    enrollment_row,
    enrollments_to_csv,
)
from coursehub.domains.analytics.stats import (
    DASHBOARD_SOURCES,
    STAT_KINDS,
    AggregateResult,
    AttendanceReport,
    CourseProgress,
    CourseRollup,
    DashboardCounters,
    EnrollmentSummary,
    GradeLine,
    GradingSummary,
    InstructorRollup,
    PaymentSummary,
    StudentAttendance,
    StudentGrades,
    StudentRollup,
    attendance_statistics,
    compute_stats,
    course_rollups,
    dashboard_counters,
    enrollment_summary,
    grade_line,
    grade_percentage,
    grading_summary,
    instructor_rollups,
    payment_summary,
    percent,
    student_grades,
    student_progress,
    student_rollups,
)

__all__ = [
    # Dispatcher
    "compute_stats",
    "STAT_KINDS",
    "AggregateResult",
    # Dashboard
    "DASHBOARD_SOURCES",
    "DashboardCounters",
    "dashboard_counters",
    # Enrollment
    "EnrollmentSummary",
    "CourseRollup",
    "StudentRollup",
    "InstructorRollup",
    "enrollment_summary",
    "course_rollups",
    "student_rollups",
    "instructor_rollups",
    # Attendance
    "AttendanceReport",
    "StudentAttendance",
    "attendance_statistics",
    "percent",
    # Grading
    "GradeLine",
    "GradingSummary",
    "StudentGrades",
    "CourseProgress",
    "grade_line",
    "grade_percentage",
    "grading_summary",
    "student_grades",
    "student_progress",
    # Payments
    "PaymentSummary",
    "payment_summary",
    # Export
    "ENROLLMENT_CSV_COLUMNS",
    "enrollment_row",
    "enrollments_to_csv",
]
