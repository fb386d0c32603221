# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Lifecycle state machines for enrollments, payments, attendance and submissions."""

from coursehub.domains.lifecycle.attendance import (
    ATTENDED_MARKS,
    DEFAULT_MARK,
    AttendanceMark,
    mark_for,
    parse_mark,
    session_marks,
)
from coursehub.domains.lifecycle.base import TransitionTable
from coursehub.domains.lifecycle.enrollment import (
    ENROLLMENT_LIFECYCLE,
    EnrollmentBucket,
    EnrollmentStatus,
    bucket_for,
    is_currently_taking,
)
from coursehub.domains.lifecycle.payment import (
    INITIAL_PAYMENT_STATUS,
    PAYMENT_LIFECYCLE,
    TERMINAL_PAYMENT_STATUSES,
    PaymentStatus,
)
from coursehub.domains.lifecycle.submission import (
    SUBMISSION_LIFECYCLE,
    SubmissionStatus,
    is_late,
    late_penalty_per_day,
    total_points,
    validate_score,
)

__all__ = [
    "TransitionTable",
    # Enrollment
    "EnrollmentStatus",
    "EnrollmentBucket",
    "ENROLLMENT_LIFECYCLE",
    "bucket_for",
    "is_currently_taking",
    # Payment
    "PaymentStatus",
    "PAYMENT_LIFECYCLE",
    "INITIAL_PAYMENT_STATUS",
    "TERMINAL_PAYMENT_STATUSES",
    # Attendance
    "AttendanceMark",
    "DEFAULT_MARK",
    "ATTENDED_MARKS",
    "parse_mark",
    "session_marks",
    "mark_for",
    # Submission
    "SubmissionStatus",
    "SUBMISSION_LIFECYCLE",
    "is_late",
    "total_points",
    "validate_score",
    "late_penalty_per_day",
]
