# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Shared models: session context and write request schemas."""

from coursehub.models.session import SessionContext
from coursehub.models.writes import (
    AttendanceEntry,
    AttendanceRecordCreate,
    CourseCreate,
    EnrollmentCreate,
    EnrollmentUpdate,
    GradeSubmission,
    PaymentRequest,
    PaymentStatusUpdate,
    SubmissionCreate,
    UserCreate,
    WriteSchema,
)

__all__ = [
    "SessionContext",
    "WriteSchema",
    "UserCreate",
    "CourseCreate",
    "EnrollmentCreate",
    "EnrollmentUpdate",
    "PaymentRequest",
    "PaymentStatusUpdate",
    "SubmissionCreate",
    "GradeSubmission",
    "AttendanceEntry",
    "AttendanceRecordCreate",
]
