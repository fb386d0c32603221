# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI dependencies.

The acting user is built explicitly from request headers into a
SessionContext and handed to the services; nothing downstream reads the
request. The bearer token is forwarded to the gateway as is; the X-User-*
headers identify the actor for activity logging.

Example:
    @router.get("/dashboard")
    async def dashboard(service: Aggregations) -> ViewResponse:
        ...
"""

import logging
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from coursehub.core.config import Settings, get_settings
from coursehub.domains.aggregation.service import AggregationService, WriteService
from coursehub.infrastructure.activity_log import ActivityLogger
from coursehub.infrastructure.gateway import ServiceGateway
from coursehub.models import SessionContext
from coursehub.utils.logging import bind_context

logger = logging.getLogger(__name__)


def get_app_settings() -> Settings:
    """Get application settings."""
    return get_settings()


def get_gateway(request: Request) -> ServiceGateway:
    """Get the shared gateway client opened by the lifespan.

    Raises:
        HTTPException: If the application has not started.
    """
    gateway = getattr(request.app.state, "gateway", None)
    if gateway is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Gateway client not initialized",
        )
    return gateway


def _extract_token(request: Request) -> str | None:
    """Extract a token from an "Authorization: Bearer <token>" header."""
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        return None

    parts = auth_header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None

    return parts[1]


def get_session_context(request: Request) -> SessionContext:
    """Build the session context of the current request.

    Anonymous requests get an empty context; the gateway client then falls
    back to the service token.
    """
    session = SessionContext(
        token=_extract_token(request),
        user_id=request.headers.get("X-User-Id"),
        email=request.headers.get("X-User-Email"),
        role=request.headers.get("X-User-Role"),
        request_id=getattr(request.state, "request_id", None),
    )
    if session.user_id:
        bind_context(user_id=session.user_id)
    return session


def require_session(
    session: Annotated[SessionContext, Depends(get_session_context)],
) -> SessionContext:
    """Require an authenticated session.

    Raises:
        HTTPException: If no bearer token was sent.
    """
    if not session.is_authenticated:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return session


def get_aggregation_service(
    gateway: Annotated[ServiceGateway, Depends(get_gateway)],
    session: Annotated[SessionContext, Depends(get_session_context)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> AggregationService:
    return AggregationService(gateway, session, settings.aggregation)


def get_write_service(
    gateway: Annotated[ServiceGateway, Depends(get_gateway)],
    session: Annotated[SessionContext, Depends(require_session)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> WriteService:
    activity_log = ActivityLogger(gateway, enabled=settings.activity_log.enabled)
    return WriteService(gateway, session, activity_log)


# Type aliases for common dependencies
Session = Annotated[SessionContext, Depends(get_session_context)]
AuthenticatedSession = Annotated[SessionContext, Depends(require_session)]
Aggregations = Annotated[AggregationService, Depends(get_aggregation_service)]
Writes = Annotated[WriteService, Depends(get_write_service)]
