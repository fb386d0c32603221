# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Exception handlers mapping domain errors to HTTP responses.

- ValidationError -> 422 with the field errors
- AggregationInputError -> 400
- ReferenceUnresolvedError -> 404
- UpstreamError -> the upstream 4xx status, otherwise 502
- any other CourseHubError -> 500
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from coursehub.domains.aggregation.exceptions import (
    AggregationInputError,
    CourseHubError,
    ReferenceUnresolvedError,
    ValidationError,
)
from coursehub.infrastructure.gateway.exceptions import UpstreamError

logger = logging.getLogger(__name__)


def _body(exc: CourseHubError, **extra: object) -> dict:
    return {"detail": exc.message, **({"details": exc.details} if exc.details else {}), **extra}


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=_body(exc, errors=exc.field_errors),
    )


async def aggregation_input_error_handler(
    request: Request, exc: AggregationInputError
) -> JSONResponse:
    logger.warning("Malformed request on %s: %s", request.url.path, str(exc))
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=_body(exc))


async def reference_unresolved_handler(
    request: Request, exc: ReferenceUnresolvedError
) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content=_body(exc))


async def upstream_error_handler(request: Request, exc: UpstreamError) -> JSONResponse:
    status_code = exc.status_code if exc.is_client_error else status.HTTP_502_BAD_GATEWAY
    return JSONResponse(status_code=status_code, content=_body(exc))


async def coursehub_error_handler(request: Request, exc: CourseHubError) -> JSONResponse:
    logger.error("Unhandled error on %s: %s", request.url.path, str(exc), exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_body(exc),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the domain exception handlers on an application."""
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(AggregationInputError, aggregation_input_error_handler)
    app.add_exception_handler(ReferenceUnresolvedError, reference_unresolved_handler)
    app.add_exception_handler(UpstreamError, upstream_error_handler)
    app.add_exception_handler(CourseHubError, coursehub_error_handler)
