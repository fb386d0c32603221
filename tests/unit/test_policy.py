# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the partial-result policy."""

from coursehub.domains.aggregation.policy import ViewStatus, evaluate

REPORT_SOURCES = ["enrollments", "students", "courses", "sections"]


class TestEvaluate:
    """Tests for evaluate()."""

    def test_complete(self) -> None:
        """Test no failure means a complete view."""
        decision = evaluate(REPORT_SOURCES, [])

        assert decision.is_complete
        assert decision.missing == ()

    def test_secondary_failure_degrades(self) -> None:
        """Test a failed join source leaves the view usable."""
        decision = evaluate(REPORT_SOURCES, ["students"], primary="enrollments")

        assert decision.status == ViewStatus.DEGRADED
        assert decision.missing == ("students",)
        assert decision.warnings == ("students could not be loaded",)

    def test_primary_failure_is_unavailable(self) -> None:
        """Test nothing can be rendered without the primary source."""
        decision = evaluate(REPORT_SOURCES, ["enrollments"], primary="enrollments")

        assert decision.status == ViewStatus.UNAVAILABLE

    def test_partial_child_failure_degrades(self) -> None:
        """Test one parent's child fetch failing counts toward its source."""
        decision = evaluate(REPORT_SOURCES, ["sections:c2", "sections:c4"], primary="enrollments")

        assert decision.status == ViewStatus.DEGRADED
        assert decision.missing == ("sections",)
        assert "2 dependent fetches failed" in decision.warnings

    def test_counters_without_primary(self) -> None:
        """Test independent counters are unavailable only when all fail."""
        sources = ["students", "instructors"]

        assert evaluate(sources, ["students"]).status == ViewStatus.DEGRADED
        assert evaluate(sources, ["students", "instructors"]).status == ViewStatus.UNAVAILABLE

    def test_unrelated_failures_are_ignored(self) -> None:
        """Test failures of sources the view does not read."""
        assert evaluate(REPORT_SOURCES, ["payments"]).is_complete

    def test_to_dict(self) -> None:
        """Test the serialized annotation."""
        data = evaluate(["students"], ["students"], primary="students").to_dict()

        assert data == {
            "status": "unavailable",
            "missing": ["students"],
            "warnings": ["students could not be loaded"],
        }
