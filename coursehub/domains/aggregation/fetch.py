# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Fetch coordination for multi-source views.

This module is the single place where per-source failure isolation lives.
A batch of named fetches runs concurrently on the event loop and every task
settles into a FetchOutcome:

- Fulfilled(source, data) when the fetch returned
- Rejected(source, error) when it raised

Higher-level code only ever consumes outcomes, never raw awaitables.

Example:
    outcomes = await gather_independent([
        NamedTask("students", gateway.list_students),
        NamedTask("courses", gateway.list_courses),
    ])
    batch = OutcomeSet(outcomes)
    students = batch.data("students")

Dependent fetches (sections for each course, lessons for each module) are a
second level: resolve the parents first, then call fan_out() with them. Each
child fetch is its own failure domain.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from coursehub.domains.aggregation.exceptions import (
    AggregationInputError,
    SourceUnavailableError,
)
from coursehub.domains.aggregation.references import record_id

logger = logging.getLogger(__name__)

FetchCallable = Callable[[], Awaitable[Any]]


@dataclass(frozen=True)
class NamedTask:
    """A read request against one named source.

    Attributes:
        source: Source name the outcome will be tagged with.
        fetch: Zero-argument coroutine function performing the read.
    """

    source: str
    fetch: FetchCallable


@dataclass(frozen=True)
class Fulfilled:
    """Successful fetch outcome."""

    source: str
    data: Any

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Rejected:
    """Failed fetch outcome.

    Attributes:
        source: Source name.
        error: SourceUnavailableError wrapping the original exception.
    """

    source: str
    error: SourceUnavailableError

    @property
    def ok(self) -> bool:
        return False

    def to_dict(self) -> dict[str, str]:
        """Convert to the failure entry reported to callers."""
        cause = self.error.cause
        return {
            "source": self.source,
            "error": str(cause) if cause is not None else self.error.message,
        }


FetchOutcome = Fulfilled | Rejected


def _validate_tasks(tasks: Any) -> list[NamedTask]:
    if isinstance(tasks, str | bytes) or not isinstance(tasks, Sequence):
        raise AggregationInputError(
            "Fetch request must be a sequence of NamedTask",
            {"received": type(tasks).__name__},
        )

    seen: set[str] = set()
    for position, task in enumerate(tasks):
        if not isinstance(task, NamedTask):
            raise AggregationInputError(
                "Fetch request element is not a NamedTask",
                {"position": position, "received": type(task).__name__},
            )
        if not task.source:
            raise AggregationInputError(
                "Fetch request has an empty source name", {"position": position}
            )
        if not callable(task.fetch):
            raise AggregationInputError(
                "Fetch callable is not callable", {"source": task.source}
            )
        if task.source in seen:
            raise AggregationInputError(
                "Duplicate source name in fetch request", {"source": task.source}
            )
        seen.add(task.source)
    return list(tasks)


async def _settle(task: NamedTask, semaphore: asyncio.Semaphore | None) -> FetchOutcome:
    """Run one task and turn its result into an outcome.

    CancelledError is a BaseException and passes through untouched.
    """
    try:
        if semaphore is None:
            data = await task.fetch()
        else:
            async with semaphore:
                data = await task.fetch()
    except Exception as e:
        logger.warning("Source %s failed: %s", task.source, str(e))
        return Rejected(source=task.source, error=SourceUnavailableError(task.source, e))
    return Fulfilled(source=task.source, data=data)


async def gather_independent(
    tasks: Sequence[NamedTask],
    max_concurrency: int = 0,
) -> list[FetchOutcome]:
    """Run independent named fetches concurrently.

    Args:
        tasks: Named fetch operations. Source names must be unique.
        max_concurrency: Upper bound on fetches in flight (0 = unbounded).

    Returns:
        One outcome per task, in task order.

    Raises:
        AggregationInputError: If the request list is malformed.
    """
    validated = _validate_tasks(tasks)
    if not validated:
        return []

    semaphore = asyncio.Semaphore(max_concurrency) if max_concurrency > 0 else None
    outcomes = await asyncio.gather(*[_settle(task, semaphore) for task in validated])

    failed = [o.source for o in outcomes if not o.ok]
    logger.debug(
        "Fetched %d sources (%d failed: %s)",
        len(outcomes),
        len(failed),
        ", ".join(failed) or "none",
    )
    return list(outcomes)


class OutcomeSet:
    """Read helper over the outcomes of one batch.

    Example:
        batch = OutcomeSet(outcomes)
        if batch.succeeded("instructors"):
            ...
        batch.data("students")   # () when the source failed
        batch.failures           # [{"source": ..., "error": ...}]
    """

    def __init__(self, outcomes: Iterable[FetchOutcome]) -> None:
        self._outcomes: dict[str, FetchOutcome] = {}
        for outcome in outcomes:
            self._outcomes[outcome.source] = outcome

    def __contains__(self, source: object) -> bool:
        return source in self._outcomes

    def __iter__(self) -> Iterator[FetchOutcome]:
        return iter(self._outcomes.values())

    def __len__(self) -> int:
        return len(self._outcomes)

    def get(self, source: str) -> FetchOutcome:
        """Get the outcome for a source.

        Raises:
            AggregationInputError: If the source was not part of the batch.
        """
        try:
            return self._outcomes[source]
        except KeyError:
            raise AggregationInputError(
                f"Source '{source}' was not requested in this batch"
            ) from None

    def succeeded(self, source: str) -> bool:
        return self.get(source).ok

    def data(self, source: str, default: Any = ()) -> Any:
        """Get a source's data, or default if it failed."""
        outcome = self.get(source)
        if isinstance(outcome, Fulfilled):
            return outcome.data
        return default

    @property
    def fulfilled(self) -> list[str]:
        return [o.source for o in self._outcomes.values() if o.ok]

    @property
    def failed(self) -> list[str]:
        return [o.source for o in self._outcomes.values() if not o.ok]

    @property
    def failures(self) -> list[dict[str, str]]:
        return [o.to_dict() for o in self._outcomes.values() if isinstance(o, Rejected)]


@dataclass
class FanOutResult:
    """Outcomes of a per-parent child fetch.

    Attributes:
        child_source: Logical name of the child collection.
        outcomes: Parent canonical id -> outcome of that parent's child fetch.
    """

    child_source: str
    outcomes: dict[str, FetchOutcome] = field(default_factory=dict)

    def children(self, parent_id: str) -> Any:
        """Get children of one parent, or () if that parent's fetch failed."""
        outcome = self.outcomes.get(parent_id)
        if isinstance(outcome, Fulfilled):
            return outcome.data
        return ()

    def flatten(self) -> list[Any]:
        """All child records of the parents whose fetch succeeded, parent order."""
        records: list[Any] = []
        for outcome in self.outcomes.values():
            if isinstance(outcome, Fulfilled):
                records.extend(outcome.data or ())
        return records

    @property
    def failed_parents(self) -> list[str]:
        return [pid for pid, o in self.outcomes.items() if not o.ok]

    @property
    def failures(self) -> list[dict[str, str]]:
        return [o.to_dict() for o in self.outcomes.values() if isinstance(o, Rejected)]


async def fan_out(
    parents: Iterable[Mapping[str, Any]],
    child_source: str,
    fetch_child: Callable[[str], Awaitable[Any]],
    max_concurrency: int = 0,
) -> FanOutResult:
    """Fetch children for each resolved parent.

    Args:
        parents: Parent records already fetched.
        child_source: Name of the child collection (e.g. "sections").
        fetch_child: Coroutine function taking a parent id.
        max_concurrency: Upper bound on fetches in flight (0 = unbounded).

    Returns:
        FanOutResult keyed by parent id. Parents without an identity are
        skipped; repeated parents are fetched once.
    """
    parent_ids: list[str] = []
    for parent in parents:
        parent_id = record_id(parent)
        if parent_id is None:
            logger.warning("Skipping %s fan-out for parent without id", child_source)
            continue
        if parent_id not in parent_ids:
            parent_ids.append(parent_id)

    def _bind(parent_id: str) -> FetchCallable:
        async def _fetch() -> Any:
            return await fetch_child(parent_id)

        return _fetch

    outcomes = await gather_independent(
        [NamedTask(f"{child_source}:{pid}", _bind(pid)) for pid in parent_ids],
        max_concurrency=max_concurrency,
    )
    return FanOutResult(
        child_source=child_source,
        outcomes=dict(zip(parent_ids, outcomes, strict=True)),
    )
