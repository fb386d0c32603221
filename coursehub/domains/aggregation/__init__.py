# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Multi-source view assembly.

Import the services from coursehub.domains.aggregation.service; this package
exports only the primitives so lower layers can depend on it freely.
"""

from coursehub.domains.aggregation.exceptions import (
    AggregationInputError,
    CourseHubError,
    InvalidTransitionError,
    ReferenceUnresolvedError,
    SourceUnavailableError,
    ValidationError,
)
from coursehub.domains.aggregation.fetch import (
    FanOutResult,
    FetchOutcome,
    Fulfilled,
    NamedTask,
    OutcomeSet,
    Rejected,
    fan_out,
    gather_independent,
)
from coursehub.domains.aggregation.joins import (
    UNKNOWN_LABEL,
    CompositeView,
    GroupSpec,
    JoinEngine,
    JoinSpec,
    Unknown,
    build_index,
    display,
    group_by,
)
from coursehub.domains.aggregation.policy import PolicyDecision, ViewStatus, evaluate
from coursehub.domains.aggregation.references import (
    IDENTITY_KEYS,
    Reference,
    Resolved,
    Unresolved,
    canonical_id,
    normalize,
    record_id,
    same_entity,
)

__all__ = [
    # Exceptions
    "CourseHubError",
    "SourceUnavailableError",
    "ReferenceUnresolvedError",
    "ValidationError",
    "InvalidTransitionError",
    "AggregationInputError",
    # References
    "IDENTITY_KEYS",
    "Reference",
    "Resolved",
    "Unresolved",
    "normalize",
    "canonical_id",
    "record_id",
    "same_entity",
    # Fetch
    "NamedTask",
    "Fulfilled",
    "Rejected",
    "FetchOutcome",
    "OutcomeSet",
    "FanOutResult",
    "gather_independent",
    "fan_out",
    # Joins
    "UNKNOWN_LABEL",
    "Unknown",
    "JoinSpec",
    "GroupSpec",
    "CompositeView",
    "JoinEngine",
    "build_index",
    "group_by",
    "display",
    # Policy
    "ViewStatus",
    "PolicyDecision",
    "evaluate",
]
