# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment status lifecycle.

Admins may set any status from any other; there is no transition table.
For every rollup, "enrolled" and "active" count as the same
currently-taking bucket, and "dropped"/"withdrawn" as one dropped bucket.
"""

from enum import Enum

from coursehub.domains.lifecycle.base import TransitionTable


class EnrollmentStatus(str, Enum):
    """Status of an enrollment record."""

    ENROLLED = "enrolled"
    ACTIVE = "active"
    COMPLETED = "completed"
    DROPPED = "dropped"
    WITHDRAWN = "withdrawn"


class EnrollmentBucket(str, Enum):
    """Reporting bucket an enrollment status falls into."""

    ACTIVE = "active"
    COMPLETED = "completed"
    DROPPED = "dropped"


STATUS_BUCKETS: dict[EnrollmentStatus, EnrollmentBucket] = {
    EnrollmentStatus.ENROLLED: EnrollmentBucket.ACTIVE,
    EnrollmentStatus.ACTIVE: EnrollmentBucket.ACTIVE,
    EnrollmentStatus.COMPLETED: EnrollmentBucket.COMPLETED,
    EnrollmentStatus.DROPPED: EnrollmentBucket.DROPPED,
    EnrollmentStatus.WITHDRAWN: EnrollmentBucket.DROPPED,
}

DEFAULT_ENROLLMENT_STATUS = EnrollmentStatus.ENROLLED

ENROLLMENT_LIFECYCLE: TransitionTable[EnrollmentStatus] = TransitionTable(
    "enrollment", EnrollmentStatus
)


def bucket_for(status: str | None) -> EnrollmentBucket | None:
    """Map a raw enrollment status to its reporting bucket.

    Unknown or missing statuses fall in no bucket; they still count toward
    totals.
    """
    try:
        return STATUS_BUCKETS[EnrollmentStatus(status)]
    except ValueError:
        return None


def is_currently_taking(status: str | None) -> bool:
    return bucket_for(status) == EnrollmentBucket.ACTIVE
