# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Join engine for composite views.

Views are described declaratively and assembled by one engine instead of
hand-written lookup loops per page:

    engine = JoinEngine({
        "enrollments": enrollments,
        "students": students,
        "courses": courses,
        "sections": sections,
    })
    rows = engine.assemble(
        "enrollments",
        joins=[
            JoinSpec("students", key="studentId", field="student"),
            JoinSpec("courses", key="courseId", field="course"),
            JoinSpec("sections", key="sectionId", field="section"),
        ],
    )

Joins are many-to-one equi-joins on canonical identity. A reference carried
inline is used as is; otherwise the id is looked up in the secondary
collection. Whatever cannot be found becomes an Unknown placeholder that keeps
the dangling id. One-to-many relations are expressed with GroupSpec, which
attaches the matching secondary records as a nested list.
"""

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from coursehub.domains.aggregation.exceptions import (
    AggregationInputError,
    ReferenceUnresolvedError,
)
from coursehub.domains.aggregation.references import (
    Resolved,
    canonical_id,
    normalize,
    record_id,
)

logger = logging.getLogger(__name__)

UNKNOWN_LABEL = "Unknown"


@dataclass(frozen=True)
class Unknown:
    """Placeholder for a joined side that could not be resolved.

    Attributes:
        id: The dangling identifier (None if the field was empty).
        source: Secondary source the reference points into.
    """

    id: str | None
    source: str

    def get(self, key: str, default: Any = None) -> Any:
        """Mapping-style access; an unknown side has no attributes."""
        return default

    def __bool__(self) -> bool:
        return False

    def __str__(self) -> str:
        return UNKNOWN_LABEL

    def to_dict(self) -> dict[str, Any]:
        return {"unknown": True, "id": self.id, "source": self.source}


JoinedSide = Mapping[str, Any] | Unknown


@dataclass(frozen=True)
class JoinSpec:
    """Many-to-one join descriptor.

    Attributes:
        source: Secondary collection name.
        key: Reference field on the primary record.
        field: Name the joined side is exposed under (defaults to key).
        optional: Allow the secondary collection to be absent from the
            engine; unresolved references then become Unknown.
    """

    source: str
    key: str
    field: str | None = None
    optional: bool = False

    @property
    def name(self) -> str:
        return self.field or self.key


@dataclass(frozen=True)
class GroupSpec:
    """One-to-many grouping descriptor.

    Attributes:
        source: Secondary collection name.
        foreign_key: Field on each secondary record referencing the primary.
        field: Name the nested list is exposed under (defaults to source).
    """

    source: str
    foreign_key: str
    field: str | None = None

    @property
    def name(self) -> str:
        return self.field or self.source


@dataclass(frozen=True)
class CompositeView:
    """A primary record widened with joined sides and nested groups.

    Attributes:
        record: The primary record, unchanged.
        joined: Join field name -> joined record or Unknown.
        groups: Group field name -> tuple of secondary records.
    """

    record: Mapping[str, Any]
    joined: Mapping[str, JoinedSide] = field(default_factory=dict)
    groups: Mapping[str, tuple[Mapping[str, Any], ...]] = field(default_factory=dict)

    @property
    def id(self) -> str | None:
        return record_id(self.record)

    def __getitem__(self, key: str) -> Any:
        if key in self.joined:
            return self.joined[key]
        if key in self.groups:
            return self.groups[key]
        return self.record[key]

    def get(self, key: str, default: Any = None) -> Any:
        try:
            return self[key]
        except KeyError:
            return default

    def side(self, name: str) -> JoinedSide:
        """Get a joined side by field name."""
        try:
            return self.joined[name]
        except KeyError:
            raise AggregationInputError(f"View has no joined field '{name}'") from None

    def is_unknown(self, name: str) -> bool:
        return isinstance(self.side(name), Unknown)

    def require(self, name: str) -> Mapping[str, Any]:
        """Get a joined side that must be resolved.

        Raises:
            ReferenceUnresolvedError: If the side is Unknown.
        """
        side = self.side(name)
        if isinstance(side, Unknown):
            raise ReferenceUnresolvedError(side.source, side.id)
        return side

    def group(self, name: str) -> tuple[Mapping[str, Any], ...]:
        try:
            return self.groups[name]
        except KeyError:
            raise AggregationInputError(f"View has no group '{name}'") from None

    def with_group(self, name: str, records: Sequence[Mapping[str, Any]]) -> "CompositeView":
        """Return a copy with a group attached (replacing any previous one)."""
        groups = dict(self.groups)
        groups[name] = tuple(records)
        return CompositeView(record=self.record, joined=self.joined, groups=groups)

    @property
    def unknown_fields(self) -> list[str]:
        return [name for name, side in self.joined.items() if isinstance(side, Unknown)]

    def to_dict(self) -> dict[str, Any]:
        """Flatten into a JSON-friendly dictionary."""
        data = dict(self.record)
        for name, side in self.joined.items():
            data[name] = side.to_dict() if isinstance(side, Unknown) else dict(side)
        for name, records in self.groups.items():
            data[name] = [dict(r) for r in records]
        return data


def build_index(records: Iterable[Mapping[str, Any]]) -> dict[str, Mapping[str, Any]]:
    """Index records by canonical identity; the first record wins on duplicates."""
    index: dict[str, Mapping[str, Any]] = {}
    for record in records:
        rid = record_id(record)
        if rid is None:
            continue
        index.setdefault(rid, record)
    return index


def group_by(
    records: Iterable[Mapping[str, Any]],
    key: str,
) -> dict[str, list[Mapping[str, Any]]]:
    """Group records by the canonical id of one reference field.

    Records whose field holds no usable reference are left out. Group order
    and order within a group follow the input order.
    """
    groups: dict[str, list[Mapping[str, Any]]] = {}
    for record in records:
        ref_id = canonical_id(record.get(key))
        if ref_id is None:
            continue
        groups.setdefault(ref_id, []).append(record)
    return groups


class JoinEngine:
    """Assembles composite views from normalized source snapshots.

    The engine holds read-only snapshots for one assembly. Sources listed in
    `failed` were requested but could not be fetched: references into them
    resolve from inline data only and otherwise become Unknown. Sources in
    neither set were never requested, and joining against them is a caller
    bug.

    Attributes:
        collections: Source name -> records of the sources fetched.
        failed: Names of sources whose fetch failed.
    """

    def __init__(
        self,
        collections: Mapping[str, Iterable[Mapping[str, Any]]],
        failed: Iterable[str] = (),
    ) -> None:
        self.collections: Mapping[str, tuple[Mapping[str, Any], ...]] = MappingProxyType(
            {name: tuple(records or ()) for name, records in collections.items()}
        )
        self.failed: frozenset[str] = frozenset(failed)
        self._indexes: dict[str, dict[str, Mapping[str, Any]]] = {}

    def _check_source(self, source: str, optional: bool = False) -> None:
        if source in self.collections or source in self.failed or optional:
            return
        raise AggregationInputError(
            f"Join against source '{source}' which was never fetched",
            {"available": sorted(self.collections), "failed": sorted(self.failed)},
        )

    def _index(self, source: str) -> dict[str, Mapping[str, Any]]:
        if source not in self._indexes:
            self._indexes[source] = build_index(self.collections.get(source, ()))
        return self._indexes[source]

    def resolve(self, value: Any, spec: JoinSpec) -> JoinedSide:
        """Resolve one reference field against a join spec."""
        ref = normalize(value)
        if ref is None:
            return Unknown(id=None, source=spec.source)
        if isinstance(ref, Resolved):
            return ref.inline
        found = self._index(spec.source).get(ref.id)
        if found is None:
            return Unknown(id=ref.id, source=spec.source)
        return found

    def _primary_records(
        self, primary: str | Iterable[Mapping[str, Any]]
    ) -> Sequence[Mapping[str, Any]]:
        if isinstance(primary, str):
            self._check_source(primary)
            return self.collections.get(primary, ())
        return tuple(primary)

    def assemble(
        self,
        primary: str | Iterable[Mapping[str, Any]],
        joins: Sequence[JoinSpec] = (),
        groups: Sequence[GroupSpec] = (),
    ) -> list[CompositeView]:
        """Build one composite view per primary record.

        Args:
            primary: Source name of the primary collection, or the records.
            joins: Many-to-one joins to apply.
            groups: One-to-many groupings to attach.

        Returns:
            Composite views in primary order. No primary record is dropped.

        Raises:
            AggregationInputError: If a join or group names a source that was
                never fetched, or two specs expose the same field.
        """
        names = [spec.name for spec in joins] + [spec.name for spec in groups]
        if len(names) != len(set(names)):
            raise AggregationInputError("Join and group field names must be unique", {"fields": names})
        for spec in joins:
            self._check_source(spec.source, optional=spec.optional)
        for spec in groups:
            self._check_source(spec.source)

        records = self._primary_records(primary)
        grouped = {
            spec.name: group_by(self.collections.get(spec.source, ()), spec.foreign_key)
            for spec in groups
        }

        views: list[CompositeView] = []
        unresolved = 0
        for record in records:
            joined: dict[str, JoinedSide] = {}
            for spec in joins:
                side = self.resolve(record.get(spec.key), spec)
                if isinstance(side, Unknown):
                    unresolved += 1
                joined[spec.name] = side

            rid = record_id(record)
            nested = {
                name: tuple(by_parent.get(rid, ())) if rid is not None else ()
                for name, by_parent in grouped.items()
            }
            views.append(CompositeView(record=record, joined=joined, groups=nested))

        if unresolved:
            logger.debug("Assembled %d views with %d unresolved references", len(views), unresolved)
        return views

    def attach_group(
        self,
        views: Iterable[CompositeView],
        spec: GroupSpec,
    ) -> list[CompositeView]:
        """Attach a grouping to already assembled views.

        Re-applying the same spec replaces the group with an identical one.
        """
        self._check_source(spec.source)
        by_parent = group_by(self.collections.get(spec.source, ()), spec.foreign_key)
        result = []
        for view in views:
            rid = view.id
            result.append(view.with_group(spec.name, by_parent.get(rid, ()) if rid else ()))
        return result


def display(side: JoinedSide, key: str, default: str = UNKNOWN_LABEL) -> Any:
    """Read an attribute of a joined side for rendering."""
    if isinstance(side, Unknown):
        return default
    value = side.get(key)
    return default if value is None else value
