# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Write request schemas.

Inputs are validated here before anything is dispatched to the owning
service. Field names are snake_case in Python and camelCase on the wire.
"""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from coursehub.domains.lifecycle import (
    AttendanceMark,
    EnrollmentStatus,
    PaymentStatus,
)


class WriteSchema(BaseModel):
    """Base class for write payloads sent upstream."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        extra="allow",
    )

    def to_payload(self) -> dict[str, Any]:
        """Serialize to the camelCase JSON body expected upstream."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class UserCreate(WriteSchema):
    """Create a student, instructor or admin profile."""

    first_name: str = Field(min_length=1, description="First name.")
    last_name: str = Field(min_length=1, description="Last name.")
    email: EmailStr = Field(description="Login email.")
    password: str | None = Field(
        default=None,
        min_length=8,
        max_length=128,
        description="Initial password, registered with the auth service.",
    )


class CourseCreate(WriteSchema):
    """Create a course."""

    course_code: str = Field(min_length=1, description="Unique course code.")
    course_name: str = Field(min_length=1, description="Course name.")
    description: str = Field(min_length=1, description="Course description.")
    credits: int = Field(default=3, ge=0)
    level: Literal["Beginner", "Intermediate", "Advanced"] = "Beginner"

    @field_validator("course_code")
    @classmethod
    def uppercase_code(cls, value: str) -> str:
        return value.upper()


Grade = Literal["A+", "A", "B+", "B", "C+", "C", "D", "F", "INC", "W", "P"]


class EnrollmentCreate(WriteSchema):
    """Enroll a student in a course section."""

    student_id: str = Field(min_length=1)
    course_id: str = Field(min_length=1)
    section_id: str = Field(min_length=1)
    status: EnrollmentStatus = EnrollmentStatus.ENROLLED


class EnrollmentUpdate(WriteSchema):
    """Update an enrollment's status or grade. Any status may follow any other."""

    status: EnrollmentStatus | None = None
    grade: Grade | None = None
    final_score: float | None = Field(default=None, ge=0, le=100)


class PaymentRequest(WriteSchema):
    """Student payment request.

    The request always starts pending PayPal approval; callers cannot create
    a payment in a terminal state.
    """

    student_id: str = Field(min_length=1)
    student_name: str = Field(min_length=1)
    student_email: EmailStr
    amount: float = Field(gt=0)
    currency: Literal["USD", "PHP", "EUR", "GBP"] = "USD"
    payment_type: Literal[
        "Tuition Fee", "Enrollment Fee", "Laboratory Fee", "Miscellaneous Fee", "Other"
    ]
    payment_method: Literal["PAYPAL", "CARD", "BANK_TRANSFER", "CASH"] = "PAYPAL"
    payer_name: str = Field(min_length=1)
    payer_email: EmailStr | None = None
    transaction_id: str | None = None
    description: str | None = None

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        payload["status"] = PaymentStatus.PENDING_PAYPAL_APPROVAL.value
        return payload


class PaymentStatusUpdate(WriteSchema):
    """Explicit payment status change (admin approval or gateway callback)."""

    status: PaymentStatus
    paypal_order_id: str | None = None


class GradeSubmission(WriteSchema):
    """Instructor grade for a submission. Score is stored exactly as entered."""

    score: float = Field(ge=0)
    feedback: str | None = None
    graded_by: str | None = None


class AttendanceEntry(WriteSchema):
    """One student's mark on a session."""

    student_id: str = Field(min_length=1)
    status: AttendanceMark = AttendanceMark.ABSENT
    remarks: str | None = None


class AttendanceRecordCreate(WriteSchema):
    """Attendance taken for one section on one date."""

    section_id: str = Field(min_length=1)
    course_id: str = Field(min_length=1)
    date: datetime
    records: list[AttendanceEntry] = Field(min_length=1)
    notes: str | None = None

    @field_validator("records")
    @classmethod
    def unique_students(cls, value: list[AttendanceEntry]) -> list[AttendanceEntry]:
        seen: set[str] = set()
        for entry in value:
            if entry.student_id in seen:
                raise ValueError(f"student {entry.student_id} marked twice")
            seen.add(entry.student_id)
        return value


class SubmissionCreate(WriteSchema):
    """A student's submission for an activity.

    isLate and status are set by the service at submission time.
    """

    activity_id: str = Field(min_length=1)
    student_id: str = Field(min_length=1)
    content: str | None = None
    attachments: list[str] = Field(default_factory=list)
