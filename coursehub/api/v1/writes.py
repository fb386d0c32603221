# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Write passthrough endpoints.

Each call validates the body, forwards one write to the owning service and
returns the upstream response. Nothing is retried; clients re-read the
affected view afterwards.

- POST /{resource} - Create
- PUT /{resource}/{resource_id} - Update
- DELETE /{resource}/{resource_id} - Delete
- PUT /payments/{payment_id}/status - Approve, fail or cancel a payment
- PUT /submissions/{submission_id}/grade - Grade a submission
"""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Body, Query, status

from coursehub.api.dependencies import Writes

logger = logging.getLogger(__name__)

router = APIRouter()

Payload = Annotated[dict[str, Any], Body(description="Request body forwarded upstream")]
CourseScope = Annotated[
    str | None,
    Query(alias="courseId", description="Parent course for course-scoped resources"),
]


def _scope(course_id: str | None) -> dict[str, str]:
    return {"courseId": course_id} if course_id else {}


@router.put("/payments/{payment_id}/status", summary="Update payment status")
async def update_payment_status(
    payment_id: str,
    payload: Payload,
    service: Writes,
) -> dict[str, Any]:
    return await service.update_payment_status(payment_id, payload)


@router.put("/submissions/{submission_id}/grade", summary="Grade submission")
async def grade_submission(
    submission_id: str,
    payload: Payload,
    service: Writes,
) -> dict[str, Any]:
    return await service.grade_submission(submission_id, payload)


@router.post("/{resource}", status_code=status.HTTP_201_CREATED, summary="Create record")
async def create_record(
    resource: str,
    payload: Payload,
    service: Writes,
    course_id: CourseScope = None,
) -> dict[str, Any]:
    logger.info("Create %s", resource)
    return await service.create(resource, payload, _scope(course_id))


@router.put("/{resource}/{resource_id}", summary="Update record")
async def update_record(
    resource: str,
    resource_id: str,
    payload: Payload,
    service: Writes,
    course_id: CourseScope = None,
) -> dict[str, Any]:
    logger.info("Update %s %s", resource, resource_id)
    return await service.update(resource, resource_id, payload, _scope(course_id))


@router.delete("/{resource}/{resource_id}", summary="Delete record")
async def delete_record(
    resource: str,
    resource_id: str,
    service: Writes,
    course_id: CourseScope = None,
) -> dict[str, Any]:
    logger.info("Delete %s %s", resource, resource_id)
    return await service.delete(resource, resource_id, _scope(course_id))
