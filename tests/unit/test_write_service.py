# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for WriteService."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from coursehub.domains.aggregation import (
    AggregationInputError,
    InvalidTransitionError,
    ValidationError,
)
from coursehub.domains.aggregation.service import WriteService
from coursehub.infrastructure.activity_log import ActivityLogger
from coursehub.infrastructure.gateway import UpstreamError


@pytest.fixture
def activity_log() -> MagicMock:
    log = MagicMock(spec=ActivityLogger)
    log.record = AsyncMock(return_value=True)
    return log


@pytest.fixture
def records() -> dict:
    return {
        "/payments/p1": {"_id": "p1", "status": "pending_paypal_approval"},
        "/payments/p2": {"_id": "p2", "status": "completed"},
        "/assessments/submissions/sub1": {"_id": "sub1", "activityId": "act1", "status": "submitted"},
        "/assessments/submissions/sub2": {
            "_id": "sub2",
            "activityId": {"_id": "act2", "totalPoints": 10},
            "status": "graded",
        },
        "/assessments/activities/act1": {
            "_id": "act1", "totalPoints": 20, "dueDate": "2999-01-01T00:00:00Z",
        },
        "/assessments/activities/act3": {
            "_id": "act3", "totalPoints": 20, "dueDate": "2020-01-01T00:00:00Z",
            "allowLateSubmission": False,
        },
        "/assessments/activities/act4": {
            "_id": "act4", "totalPoints": 20, "dueDate": "2020-01-01T00:00:00Z",
        },
    }


@pytest.fixture
def writes(make_gateway, records, admin_session, activity_log) -> WriteService:
    return WriteService(make_gateway({}, records), admin_session, activity_log)


class TestGenericWrites:
    """Tests for create, update and delete passthroughs."""

    @pytest.mark.asyncio
    async def test_create_enrollment(self, writes, activity_log, admin_session) -> None:
        """Test the validated payload is sent once and logged."""
        result = await writes.create(
            "enrollments", {"studentId": "u1", "courseId": "c1", "sectionId": "s1"}
        )

        assert result["data"]["_id"] == "new1"
        writes.gateway.request.assert_awaited_once_with(
            "POST",
            "/courses/enrollments",
            admin_session,
            json={"studentId": "u1", "courseId": "c1", "sectionId": "s1", "status": "enrolled"},
        )
        activity_log.record.assert_awaited_once()
        assert activity_log.record.await_args.kwargs["resource_id"] == "new1"
        assert activity_log.record.await_args.kwargs["action_type"] == "CREATE"

    @pytest.mark.asyncio
    async def test_create_scoped_section(self, writes) -> None:
        """Test scope fills the nested collection path."""
        await writes.create("sections", {"sectionName": "C"}, scope={"courseId": "c1"})

        method, path = writes.gateway.request.await_args.args[:2]
        assert (method, path) == ("POST", "/courses/c1/sections")

    @pytest.mark.asyncio
    async def test_missing_scope(self, writes) -> None:
        """Test a nested path without its parent id is rejected."""
        with pytest.raises(AggregationInputError):
            await writes.create("sections", {"sectionName": "C"})
        writes.gateway.request.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_invalid_payload(self, writes) -> None:
        """Test schema errors are reported per field."""
        with pytest.raises(ValidationError) as exc_info:
            await writes.create("enrollments", {"studentId": "u1"})

        assert any("courseId" in e for e in exc_info.value.field_errors)
        writes.gateway.request.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [{}, ["not", "an", "object"]])
    async def test_empty_or_malformed_body(self, writes, body) -> None:
        """Test bodies that cannot be forwarded."""
        with pytest.raises(ValidationError):
            await writes.create("announcements", body)

    @pytest.mark.asyncio
    async def test_unknown_resource(self, writes) -> None:
        """Test writes to resources without a route."""
        with pytest.raises(AggregationInputError):
            await writes.delete("grades", "g1")

    @pytest.mark.asyncio
    async def test_update_and_delete(self, writes, admin_session) -> None:
        """Test item paths."""
        await writes.update("enrollments", "e1", {"status": "dropped"})
        writes.gateway.request.assert_awaited_with(
            "PUT", "/courses/enrollments/e1", admin_session, json={"status": "dropped"}
        )

        await writes.delete("courses", "c1")
        writes.gateway.request.assert_awaited_with(
            "DELETE", "/courses/c1", admin_session, json=None
        )

    @pytest.mark.asyncio
    async def test_empty_update(self, writes) -> None:
        """Test an update with nothing to change."""
        with pytest.raises(ValidationError):
            await writes.update("enrollments", "e1", {})

    @pytest.mark.asyncio
    async def test_upstream_failure_is_not_logged(self, writes, activity_log) -> None:
        """Test a rejected write propagates and records nothing."""
        writes.gateway.request.side_effect = UpstreamError("POST failed", status_code=409)

        with pytest.raises(UpstreamError):
            await writes.create("courses", {"courseCode": "cs1", "courseName": "X", "description": "Y"})

        writes.gateway.request.assert_awaited_once()
        activity_log.record.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_without_activity_log(self, make_gateway, admin_session) -> None:
        """Test writes work when no logger is configured."""
        writes = WriteService(make_gateway(), admin_session)

        result = await writes.delete("announcements", "n1")

        assert result["success"] is True


class TestPaymentStatus:
    """Tests for payment status changes."""

    @pytest.mark.asyncio
    async def test_pending_to_completed(self, writes, admin_session, activity_log) -> None:
        """Test an approval is sent to the status endpoint."""
        await writes.update_payment_status("p1", {"status": "completed"})

        writes.gateway.request.assert_awaited_once_with(
            "PUT", "/payments/p1/status", admin_session, json={"status": "completed"}
        )
        details = activity_log.record.await_args.kwargs["details"]
        assert details == "pending_paypal_approval -> completed"

    @pytest.mark.asyncio
    async def test_terminal_payment_is_final(self, writes) -> None:
        """Test a completed payment cannot change again."""
        with pytest.raises(InvalidTransitionError):
            await writes.update_payment_status("p2", {"status": "cancelled"})
        writes.gateway.request.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_generic_update_goes_through_lifecycle(self, writes) -> None:
        """Test a status in a plain payment update is checked too."""
        with pytest.raises(InvalidTransitionError):
            await writes.update("payments", "p2", {"status": "failed"})

    @pytest.mark.asyncio
    async def test_unknown_status(self, writes) -> None:
        """Test statuses outside the lifecycle."""
        with pytest.raises(ValidationError):
            await writes.update_payment_status("p1", {"status": "refunded"})


class TestGrading:
    """Tests for grading submissions."""

    @pytest.mark.asyncio
    async def test_grade_is_stored_as_entered(self, writes, admin_session) -> None:
        """Test the grade payload carries grader and status."""
        await writes.grade_submission("sub1", {"score": 18.5, "feedback": "Good"})

        writes.gateway.request.assert_awaited_once_with(
            "PUT",
            "/assessments/submissions/sub1/grade",
            admin_session,
            json={"score": 18.5, "feedback": "Good", "gradedBy": "a1", "status": "graded"},
        )
        writes.gateway.get.assert_any_await("/assessments/activities/act1", admin_session)

    @pytest.mark.asyncio
    async def test_score_above_total_points(self, writes) -> None:
        """Test scores are bounded by the activity."""
        with pytest.raises(ValidationError):
            await writes.grade_submission("sub1", {"score": 21})
        writes.gateway.request.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_regrade_uses_inline_activity(self, writes) -> None:
        """Test a populated activity is not fetched again."""
        with pytest.raises(ValidationError):
            await writes.update("submissions", "sub2", {"score": 11})

        fetched = [call.args[0] for call in writes.gateway.get.await_args_list]
        assert fetched == ["/assessments/submissions/sub2"]


class TestSubmit:
    """Tests for student submissions."""

    @pytest.mark.asyncio
    async def test_on_time_submission(self, writes) -> None:
        """Test an on-time submission is posted under its activity."""
        await writes.create("submissions", {"activityId": "act1", "studentId": "u1", "content": "answer"})

        method, path, _ = writes.gateway.request.await_args.args
        payload = writes.gateway.request.await_args.kwargs["json"]
        assert (method, path) == ("POST", "/assessments/activities/act1/submissions")
        assert payload["isLate"] is False
        assert payload["status"] == "submitted"
        assert payload["submittedAt"]

    @pytest.mark.asyncio
    async def test_late_submission_rejected(self, writes) -> None:
        """Test activities closed to late work refuse it."""
        with pytest.raises(ValidationError):
            await writes.submit({"activityId": "act3", "studentId": "u1"})
        writes.gateway.request.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_late_submission_flagged(self, writes, activity_log) -> None:
        """Test late work is accepted and flagged when allowed."""
        await writes.submit({"activityId": "act4", "studentId": "u1"})

        assert writes.gateway.request.await_args.kwargs["json"]["isLate"] is True
        assert activity_log.record.await_args.kwargs["details"] == "late"
