# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Reference normalization.

Upstream services encode a foreign key either as a bare identifier or as the
populated record, depending on whether the endpoint expanded it:

    {"courseId": "c1", "sectionId": {"_id": "s1", "sectionName": "A"}}

normalize() turns every such field into one of two shapes so callers never
type-check raw JSON themselves:

    normalize("c1")                        -> Unresolved(id="c1")
    normalize({"_id": "s1", ...})          -> Resolved(id="s1", inline={...})

Each field is normalized on its own. Two references to the same entity yield
the same canonical id whatever their shape.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

# Checked in order; MongoDB-backed services emit "_id", the rest "id".
IDENTITY_KEYS: tuple[str, ...] = ("_id", "id")


@dataclass(frozen=True)
class Unresolved:
    """Reference carried as a bare identifier."""

    id: str

    @property
    def inline(self) -> None:
        return None


@dataclass(frozen=True)
class Resolved:
    """Reference carried as an embedded record.

    Attributes:
        id: Canonical identifier extracted from the record.
        inline: The embedded record, identity attribute included.
    """

    id: str
    inline: Mapping[str, Any] = field(compare=False, hash=False)


Reference = Unresolved | Resolved


def _coerce_id(value: Any) -> str | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        return value or None
    if isinstance(value, int | float):
        return str(value)
    return None


def record_id(record: Mapping[str, Any]) -> str | None:
    """Get the identity of a top-level record.

    Args:
        record: Record as returned by an upstream service.

    Returns:
        Identifier string, or None if the record carries none.
    """
    for key in IDENTITY_KEYS:
        if key in record:
            found = _coerce_id(record[key])
            if found is not None:
                return found
    return None


def normalize(value: Any) -> Reference | None:
    """Normalize a reference field.

    Args:
        value: Raw field value (string, number, mapping or anything else).

    Returns:
        Unresolved for a bare identifier, Resolved for an embedded record
        with an identity attribute, None when the field holds no usable
        reference (missing, null, boolean, list, record without identity).
    """
    if isinstance(value, Mapping):
        ref_id = record_id(value)
        if ref_id is None:
            return None
        return Resolved(id=ref_id, inline=value)

    ref_id = _coerce_id(value)
    if ref_id is None:
        return None
    return Unresolved(id=ref_id)


def canonical_id(value: Any) -> str | None:
    """Get the canonical identifier of a reference field, whatever its shape."""
    ref = normalize(value)
    return ref.id if ref is not None else None


def same_entity(left: Any, right: Any) -> bool:
    """Check whether two reference fields denote the same entity."""
    left_id = canonical_id(left)
    return left_id is not None and left_id == canonical_id(right)
