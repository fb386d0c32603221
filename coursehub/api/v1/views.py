# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Read endpoints for assembled page views.

Every view answers 200 even when some sources failed; the response's status
field says whether it is complete, degraded or unavailable, and failures
lists what could not be fetched.

- GET /dashboard - Admin dashboard counters
- GET /reports - Enrollment, course, student and instructor reports
- GET /reports/enrollments.csv - Enrollment report as CSV
- GET /courses - Course catalog with sections and enrollment counts
- GET /content - Courses, modules, lessons and announcements
- GET /courses/{course_id}/gradebook - Grading for one course
- GET /sections/{section_id}/attendance - Attendance rates for one section
- GET /payments - Payments with revenue summary
- GET /students/{student_id}/progress - One student's course progress
- GET /users - User directory
- POST /aggregate - Raw collections for a list of sources
"""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Query, Response
from pydantic import BaseModel, Field

from coursehub.api.dependencies import Aggregations
from coursehub.domains.aggregation.policy import ViewStatus
from coursehub.domains.aggregation.service import AssembledView

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================================================
# Request/Response Models
# ============================================================================


class SourceFailure(BaseModel):
    """A fetch that failed."""

    source: str = Field(description="Source name, or child:parentId for a dependent fetch")
    error: str = Field(description="Upstream error message")


class ViewResponse(BaseModel):
    """An assembled view with its completeness annotation."""

    view: str = Field(description="View name")
    status: ViewStatus = Field(description="complete, degraded or unavailable")
    missing: list[str] = Field(default_factory=list, description="Sources that failed")
    warnings: list[str] = Field(default_factory=list, description="Notes for the user")
    failures: list[SourceFailure] = Field(default_factory=list)
    data: dict[str, Any] = Field(default_factory=dict, description="View payload")


class AggregateRequest(BaseModel):
    """Sources to fetch."""

    sources: list[str] = Field(min_length=1, description="Source names, e.g. students, sections")


class AggregateResult(BaseModel):
    """Raw collections keyed by source name."""

    views: dict[str, list[dict[str, Any]]] = Field(default_factory=dict)
    failures: list[SourceFailure] = Field(default_factory=list)


def _response(view: AssembledView) -> ViewResponse:
    return ViewResponse.model_validate(view.to_dict())


# ============================================================================
# Endpoints
# ============================================================================


@router.get("/dashboard", response_model=ViewResponse, summary="Admin dashboard")
async def get_dashboard(service: Aggregations) -> ViewResponse:
    return _response(await service.dashboard())


@router.get("/reports", response_model=ViewResponse, summary="Reports")
async def get_reports(service: Aggregations) -> ViewResponse:
    return _response(await service.reports())


@router.get(
    "/reports/enrollments.csv",
    summary="Export enrollments",
    response_class=Response,
    responses={200: {"content": {"text/csv": {}}}},
)
async def export_enrollments(service: Aggregations) -> Response:
    """Download the enrollment report.

    The X-View-Status header carries the view status, since a CSV body has
    nowhere to put it.
    """
    view = await service.export_enrollments()
    logger.info("Exported %d enrollments (%s)", view.data["rows"], view.status.value)
    return Response(
        content=view.data["csv"],
        media_type="text/csv",
        headers={
            "Content-Disposition": 'attachment; filename="enrollments.csv"',
            "X-View-Status": view.status.value,
        },
    )


@router.get("/courses", response_model=ViewResponse, summary="Course catalog")
async def get_courses(service: Aggregations) -> ViewResponse:
    return _response(await service.course_catalog())


@router.get("/content", response_model=ViewResponse, summary="Content tree")
async def get_content(service: Aggregations) -> ViewResponse:
    return _response(await service.content_tree())


@router.get(
    "/courses/{course_id}/gradebook",
    response_model=ViewResponse,
    summary="Course gradebook",
)
async def get_gradebook(course_id: str, service: Aggregations) -> ViewResponse:
    return _response(await service.gradebook(course_id))


@router.get(
    "/sections/{section_id}/attendance",
    response_model=ViewResponse,
    summary="Section attendance",
)
async def get_section_attendance(
    section_id: str,
    course_id: Annotated[str, Query(min_length=1, description="Course the section belongs to")],
    service: Aggregations,
) -> ViewResponse:
    return _response(await service.section_attendance(section_id, course_id))


@router.get("/payments", response_model=ViewResponse, summary="Payments overview")
async def get_payments(service: Aggregations) -> ViewResponse:
    return _response(await service.payments_overview())


@router.get(
    "/students/{student_id}/progress",
    response_model=ViewResponse,
    summary="Student progress",
)
async def get_student_progress(student_id: str, service: Aggregations) -> ViewResponse:
    return _response(await service.student_progress(student_id))


@router.get("/users", response_model=ViewResponse, summary="User directory")
async def get_users(service: Aggregations) -> ViewResponse:
    return _response(await service.user_directory())


@router.post("/aggregate", response_model=AggregateResult, summary="Fetch raw sources")
async def aggregate(request: AggregateRequest, service: Aggregations) -> AggregateResult:
    """Fetch raw collections.

    Child sources (sections, modules, lessons, activities, submissions,
    attendance) are fetched through their parents.
    """
    response = await service.aggregate(request.sources)
    return AggregateResult.model_validate(response.to_dict())
