# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Submission and grading lifecycle.

    submitted -> graded

A submission records isLate at submission time by comparing against the
activity's due date. The activity also carries a latePenalty percentage per
day, but the penalty is never subtracted from the instructor-entered score
here; graded percentages always use the raw score.
"""

from collections.abc import Mapping
from datetime import datetime
from enum import Enum
from typing import Any

from coursehub.domains.aggregation.exceptions import ValidationError
from coursehub.domains.lifecycle.base import TransitionTable
from coursehub.utils.datetime import ensure_utc, parse_iso


class SubmissionStatus(str, Enum):
    """Status of a submission."""

    SUBMITTED = "submitted"
    GRADED = "graded"


SUBMISSION_LIFECYCLE: TransitionTable[SubmissionStatus] = TransitionTable(
    "submission",
    SubmissionStatus,
    {
        SubmissionStatus.SUBMITTED: frozenset({SubmissionStatus.GRADED}),
        # Regrading keeps the submission graded.
        SubmissionStatus.GRADED: frozenset({SubmissionStatus.GRADED}),
    },
)


def is_late(submitted_at: datetime | str, due_date: datetime | str | None) -> bool:
    """Check whether a submission time is past the activity's due date."""
    if due_date is None:
        return False
    submitted = ensure_utc(parse_iso(submitted_at) if isinstance(submitted_at, str) else submitted_at)
    due = ensure_utc(parse_iso(due_date) if isinstance(due_date, str) else due_date)
    return submitted > due


def total_points(activity: Mapping[str, Any]) -> float | None:
    """Get an activity's total points, or None if missing or not positive."""
    value = activity.get("totalPoints")
    if isinstance(value, bool) or not isinstance(value, int | float) or value <= 0:
        return None
    return float(value)


def validate_score(score: float, activity: Mapping[str, Any]) -> float:
    """Check an instructor-entered score against the activity.

    Raises:
        ValidationError: If the score is negative or above total points.
    """
    if score < 0:
        raise ValidationError("Score cannot be negative", field_errors=["score must be >= 0"])
    points = total_points(activity)
    if points is not None and score > points:
        raise ValidationError(
            "Score exceeds activity total points",
            field_errors=[f"score must be <= {points:g}"],
        )
    return score


def late_penalty_per_day(activity: Mapping[str, Any]) -> float:
    """Configured late penalty (percent per day), informational only."""
    value = activity.get("latePenalty")
    if isinstance(value, bool) or not isinstance(value, int | float):
        return 0.0
    return float(value)
