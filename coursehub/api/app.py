# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI Application Factory.

This module provides the application factory for the CourseHub views API.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from coursehub import __version__
from coursehub.api.errors import register_exception_handlers
from coursehub.api.middleware import RequestContextMiddleware
from coursehub.api.routes import health
from coursehub.api.v1 import router as v1_router
from coursehub.core.config import get_settings
from coursehub.infrastructure.gateway import ServiceGateway
from coursehub.utils.logging import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Opens the shared gateway client on startup and closes it on shutdown.
    A gateway already placed on app.state (tests) is left alone.

    Args:
        app: The FastAPI application instance.

    Yields:
        None during application runtime.
    """
    settings = get_settings()
    setup_logging(settings)
    logger.info(
        "Starting CourseHub views API (environment=%s, gateway=%s)",
        settings.environment,
        settings.gateway.base_url,
    )

    owns_gateway = getattr(app.state, "gateway", None) is None
    if owns_gateway:
        app.state.gateway = ServiceGateway.from_settings(settings)

    yield

    if owns_gateway:
        try:
            await app.state.gateway.close()
        except Exception as e:
            logger.warning("Error closing gateway client: %s", str(e))
        app.state.gateway = None

    logger.info("Shutting down CourseHub views API")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.api.title,
        description="Read views and write passthroughs over the LMS services",
        version=__version__,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
        # Redirects from /path to /path/ would drop the Authorization header
        redirect_slashes=False,
    )

    register_exception_handlers(app)
    app.add_middleware(RequestContextMiddleware)

    app.include_router(health.router, tags=["Health"])
    app.include_router(v1_router)

    return app
