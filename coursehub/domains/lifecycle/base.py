# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Shared transition-table machinery for lifecycle records."""

from collections.abc import Mapping
from enum import Enum
from typing import Generic, TypeVar

from coursehub.domains.aggregation.exceptions import (
    InvalidTransitionError,
    ValidationError,
)

S = TypeVar("S", bound=Enum)


class TransitionTable(Generic[S]):
    """Allowed status changes for one kind of lifecycle record.

    Attributes:
        entity: Name used in error messages ("payment", "submission", ...).
        states: The status enum.
        transitions: Status -> statuses reachable from it. A status mapped to
            an empty set is terminal. None allows any change.
    """

    def __init__(
        self,
        entity: str,
        states: type[S],
        transitions: Mapping[S, frozenset[S]] | None = None,
    ) -> None:
        self.entity = entity
        self.states = states
        self.transitions = transitions

    def parse(self, value: str | S) -> S:
        """Parse a raw status value.

        Raises:
            ValidationError: If the value is not a known status.
        """
        if isinstance(value, self.states):
            return value
        try:
            return self.states(value)
        except ValueError:
            allowed = ", ".join(s.value for s in self.states)
            raise ValidationError(
                f"Invalid {self.entity} status '{value}'",
                field_errors=[f"status must be one of: {allowed}"],
            ) from None

    def is_terminal(self, status: str | S) -> bool:
        if self.transitions is None:
            return False
        return not self.transitions.get(self.parse(status), frozenset())

    def can_transition(self, current: str | S, target: str | S) -> bool:
        if self.transitions is None:
            self.parse(current)
            self.parse(target)
            return True
        return self.parse(target) in self.transitions.get(self.parse(current), frozenset())

    def transition(self, current: str | S, target: str | S) -> S:
        """Validate a status change and return the new status.

        Raises:
            ValidationError: If either status is unknown.
            InvalidTransitionError: If the change is not allowed.
        """
        current_state = self.parse(current)
        target_state = self.parse(target)
        if not self.can_transition(current_state, target_state):
            raise InvalidTransitionError(self.entity, current_state.value, target_state.value)
        return target_state
