# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Exceptions raised by the gateway client."""

from coursehub.domains.aggregation.exceptions import CourseHubError


class UpstreamError(CourseHubError):
    """Error from an upstream service reached through the gateway.

    Raised on transport failures, non-2xx responses, unparseable bodies and
    envelopes with success=false.

    Attributes:
        status_code: HTTP status code from the response, if any.
        response_body: Raw response body if available.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_body: str | None = None,
        details: dict | None = None,
    ):
        self.status_code = status_code
        self.response_body = response_body
        super().__init__(message, details)

    def __str__(self) -> str:
        """Return string representation with status code."""
        base = self.message
        if self.status_code:
            base = f"[{self.status_code}] {base}"
        if self.details:
            base = f"{base} - Details: {self.details}"
        return base

    @property
    def is_client_error(self) -> bool:
        return self.status_code is not None and 400 <= self.status_code < 500
