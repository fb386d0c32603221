# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Partial-result policy.

Given which sources a view needs and how their fetches went, decide whether
the view is complete, degraded or unavailable, and what to tell the caller.

- COMPLETE: every source fetched.
- DEGRADED: some sources failed but the view's primary source did not. The
  view renders with Unknown placeholders and zeroed counters.
- UNAVAILABLE: the primary source failed (or every source failed), so there
  are no rows to render. An empty view is still returned, never an error.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ViewStatus(str, Enum):
    """Completeness of an assembled view."""

    COMPLETE = "complete"
    DEGRADED = "degraded"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class PolicyDecision:
    """Outcome of the partial-result policy for one view.

    Attributes:
        status: View completeness.
        missing: Sources that failed, in request order.
        warnings: Human-readable notes for the caller.
    """

    status: ViewStatus
    missing: tuple[str, ...] = ()
    warnings: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_complete(self) -> bool:
        return self.status == ViewStatus.COMPLETE

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "missing": list(self.missing),
            "warnings": list(self.warnings),
        }


def _base_source(name: str) -> str:
    # Child fetches are named "sections:<courseId>".
    return name.split(":", 1)[0]


def evaluate(
    required: Sequence[str],
    failed: Iterable[str],
    primary: str | None = None,
) -> PolicyDecision:
    """Decide the status of a view.

    Args:
        required: Sources the view reads from.
        failed: Sources (or child fetches, "child:parent") that failed.
        primary: Source whose rows the view enumerates. None for views
            made of independent parts (counters), which are unavailable
            only when every source failed.

    Returns:
        PolicyDecision for the view.
    """
    failed_names = list(dict.fromkeys(failed))
    failed_bases = {_base_source(name) for name in failed_names}
    missing = tuple(name for name in required if name in failed_bases)
    partial_children = tuple(
        name for name in failed_names if ":" in name and _base_source(name) in required
    )

    if not missing:
        return PolicyDecision(status=ViewStatus.COMPLETE)

    warnings = [f"{name} could not be loaded" for name in missing]
    if partial_children:
        warnings.append(f"{len(partial_children)} dependent fetches failed")

    fully_failed = {_base_source(n) for n in failed_names if ":" not in n}
    if (primary is not None and primary in fully_failed) or fully_failed.issuperset(required):
        return PolicyDecision(
            status=ViewStatus.UNAVAILABLE,
            missing=missing,
            warnings=tuple(warnings),
        )

    return PolicyDecision(
        status=ViewStatus.DEGRADED,
        missing=missing,
        warnings=tuple(warnings),
    )
