# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the fetch coordinator."""

import asyncio

import pytest

from coursehub.domains.aggregation.exceptions import (
    AggregationInputError,
    SourceUnavailableError,
)
from coursehub.domains.aggregation.fetch import (
    Fulfilled,
    NamedTask,
    OutcomeSet,
    Rejected,
    fan_out,
    gather_independent,
)


def _returning(value, delay: float = 0.0):
    async def _fetch():
        if delay:
            await asyncio.sleep(delay)
        return value

    return _fetch


def _raising(error: Exception):
    async def _fetch():
        raise error

    return _fetch


class TestGatherIndependent:
    """Tests for gather_independent()."""

    @pytest.mark.asyncio
    async def test_one_outcome_per_task_in_order(self) -> None:
        """Test outcomes keep task order regardless of completion order."""
        outcomes = await gather_independent([
            NamedTask("students", _returning([1, 2, 3], delay=0.02)),
            NamedTask("courses", _returning([4])),
        ])

        assert [o.source for o in outcomes] == ["students", "courses"]
        assert outcomes[0] == Fulfilled(source="students", data=[1, 2, 3])

    @pytest.mark.asyncio
    async def test_failure_is_isolated(self) -> None:
        """Test one failing source does not affect the others."""
        outcomes = await gather_independent([
            NamedTask("students", _returning(["a"])),
            NamedTask("instructors", _raising(RuntimeError("boom"))),
            NamedTask("courses", _returning(["c"])),
        ])

        assert [o.ok for o in outcomes] == [True, False, True]
        rejected = outcomes[1]
        assert isinstance(rejected, Rejected)
        assert isinstance(rejected.error, SourceUnavailableError)
        assert rejected.error.source == "instructors"
        assert rejected.to_dict() == {"source": "instructors", "error": "boom"}

    @pytest.mark.asyncio
    async def test_empty_request(self) -> None:
        """Test an empty batch yields no outcomes."""
        assert await gather_independent([]) == []

    @pytest.mark.asyncio
    async def test_bounded_concurrency(self) -> None:
        """Test max_concurrency caps fetches in flight."""
        in_flight = 0
        peak = 0

        def _tracked():
            async def _fetch():
                nonlocal in_flight, peak
                in_flight += 1
                peak = max(peak, in_flight)
                await asyncio.sleep(0.01)
                in_flight -= 1
                return []

            return _fetch

        await gather_independent(
            [NamedTask(f"s{n}", _tracked()) for n in range(6)],
            max_concurrency=2,
        )

        assert peak == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "tasks",
        [
            "students",
            NamedTask("students", _returning([])),
            [("students", _returning([]))],
            [NamedTask("", _returning([]))],
            [NamedTask("students", "not callable")],
            [NamedTask("students", _returning([])), NamedTask("students", _returning([]))],
        ],
    )
    async def test_malformed_requests_raise(self, tasks) -> None:
        """Test request-malformation is the only error gather raises."""
        with pytest.raises(AggregationInputError):
            await gather_independent(tasks)

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self) -> None:
        """Test cancelling the caller cancels the batch instead of rejecting it."""
        started = asyncio.Event()

        async def _slow():
            started.set()
            await asyncio.sleep(10)
            return []

        task = asyncio.create_task(gather_independent([NamedTask("students", _slow)]))
        await started.wait()
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task


class TestOutcomeSet:
    """Tests for OutcomeSet."""

    def test_accessors(self) -> None:
        """Test data, succeeded and failures."""
        batch = OutcomeSet([
            Fulfilled("students", ["a"]),
            Rejected("instructors", SourceUnavailableError("instructors", RuntimeError("down"))),
        ])

        assert batch.data("students") == ["a"]
        assert batch.data("instructors") == ()
        assert batch.succeeded("students")
        assert not batch.succeeded("instructors")
        assert batch.fulfilled == ["students"]
        assert batch.failed == ["instructors"]
        assert batch.failures == [{"source": "instructors", "error": "down"}]
        assert "students" in batch
        assert len(batch) == 2

    def test_unrequested_source_raises(self) -> None:
        """Test reading a source that was not in the batch is a caller bug."""
        with pytest.raises(AggregationInputError):
            OutcomeSet([]).data("students")


class TestFanOut:
    """Tests for the second level of a two-level fan-out."""

    @pytest.mark.asyncio
    async def test_children_per_parent(self) -> None:
        """Test each parent gets its own failure domain."""
        async def _sections(course_id: str):
            if course_id == "c2":
                raise RuntimeError("course service timeout")
            return [{"_id": f"{course_id}-s1", "courseId": course_id}]

        result = await fan_out(
            [{"_id": "c1"}, {"_id": "c2"}, {"_id": "c3"}],
            "sections",
            _sections,
        )

        assert result.children("c1") == [{"_id": "c1-s1", "courseId": "c1"}]
        assert result.children("c2") == ()
        assert result.failed_parents == ["c2"]
        assert [s["_id"] for s in result.flatten()] == ["c1-s1", "c3-s1"]
        assert result.failures == [{"source": "sections:c2", "error": "course service timeout"}]

    @pytest.mark.asyncio
    async def test_duplicate_and_anonymous_parents(self) -> None:
        """Test parents without identity are skipped and repeats fetched once."""
        calls: list[str] = []

        async def _modules(course_id: str):
            calls.append(course_id)
            return []

        result = await fan_out(
            [{"_id": "c1"}, {"name": "no id"}, {"id": "c1"}],
            "modules",
            _modules,
        )

        assert calls == ["c1"]
        assert list(result.outcomes) == ["c1"]
