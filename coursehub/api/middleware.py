# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Request context middleware.

Assigns each request a correlation id (taken from X-Request-ID when the
caller sends one) and binds it to the structlog context, so every log line
of the request carries it. The id is echoed back in the response headers.
"""

import logging
import uuid
from typing import Awaitable, Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from coursehub.utils.logging import bind_context, clear_context

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Binds request_id and path to the logging context."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id

        clear_context()
        bind_context(request_id=request_id, path=request.url.path)
        try:
            response = await call_next(request)
        finally:
            clear_context()

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
