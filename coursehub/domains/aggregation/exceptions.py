# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Exceptions for the aggregation layer.

This module defines the exception hierarchy used when assembling views:
- CourseHubError: Base exception for all aggregation-related errors
- SourceUnavailableError: A named source could not be fetched
- ReferenceUnresolvedError: A required joined side is missing
- ValidationError: Write input rejected before dispatch
- AggregationInputError: Programmer error in a fetch or join request

Only AggregationInputError is meant to escape a read path. Source failures
travel inside Rejected outcomes and unresolved references become Unknown
placeholders.
"""

from typing import Any


class CourseHubError(Exception):
    """Base exception for all aggregation-related errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional error context.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        """Initialize error.

        Args:
            message: Human-readable error description.
            details: Optional dictionary with additional error context.
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation with details if available."""
        if self.details:
            return f"{self.message} - Details: {self.details}"
        return self.message


class SourceUnavailableError(CourseHubError):
    """A fetch for one named source failed.

    Isolated to that source; the rest of the batch is unaffected.

    Attributes:
        source: Name of the source that failed.
        cause: Underlying exception raised by the fetch.
    """

    def __init__(
        self,
        source: str,
        cause: BaseException | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.source = source
        self.cause = cause
        reason = str(cause) if cause is not None else "unknown error"
        super().__init__(f"Source '{source}' unavailable: {reason}", details)


class ReferenceUnresolvedError(CourseHubError):
    """A joined side was required but resolved to Unknown.

    Attributes:
        source: Secondary source the reference points into.
        reference_id: The dangling identifier, if any.
    """

    def __init__(self, source: str, reference_id: str | None):
        self.source = source
        self.reference_id = reference_id
        super().__init__(
            f"Reference into '{source}' is unresolved",
            {"id": reference_id},
        )


class ValidationError(CourseHubError):
    """Write input failed precondition checks.

    Raised before anything is dispatched to the owning service.

    Attributes:
        field_errors: List of specific field-level problems.
    """

    def __init__(
        self,
        message: str,
        field_errors: list[str] | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.field_errors = field_errors or []
        super().__init__(message, details)

    def __str__(self) -> str:
        """Return string representation with field errors."""
        if self.field_errors:
            return f"{self.message} - Errors: {'; '.join(self.field_errors)}"
        return super().__str__()


class InvalidTransitionError(ValidationError):
    """A lifecycle status change is not allowed from the current state."""

    def __init__(self, entity: str, current: str, target: str):
        self.entity = entity
        self.current = current
        self.target = target
        super().__init__(
            f"Cannot move {entity} from '{current}' to '{target}'",
            details={"entity": entity, "current": current, "target": target},
        )


class AggregationInputError(CourseHubError):
    """Malformed aggregation request.

    Examples are a fetch list holding something other than named tasks, or a
    join against a source that was never fetched. This is a bug in the caller
    and is never degraded into a partial result.
    """
