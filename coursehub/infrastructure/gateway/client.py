# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Async HTTP client for the LMS API gateway.

Every owning service answers through the gateway with the same envelope:

    {"success": true, "data": [...], "pagination": {"page": 1, "pages": 3}}

The client unwraps that envelope and turns every failure (transport error,
non-2xx status, bad JSON, success=false) into an UpstreamError. It never
retries; callers decide what a failure means.

Example:
    async with ServiceGateway.from_settings(get_settings()) as gateway:
        students = await gateway.list("/users/students", session)
        created = await gateway.create("/courses/enrollments", payload, session)
"""

import logging
from typing import Any

import httpx

from coursehub.core.config.settings import Settings
from coursehub.infrastructure.gateway.exceptions import UpstreamError
from coursehub.models.session import SessionContext

logger = logging.getLogger(__name__)

# Collections reporting more pages are refused rather than cut short.
MAX_PAGES = 50


class ServiceGateway:
    """Async client for the API gateway.

    Attributes:
        base_url: Gateway URL including the /api prefix.
        timeout: Request timeout in seconds.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        service_token: str | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the gateway client.

        Args:
            base_url: Gateway URL including the /api prefix.
            timeout: Request timeout in seconds.
            service_token: Bearer token for calls made without a user session.
            client: Optional preconfigured httpx client (used by tests).
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._service_token = service_token
        self._client = client
        self._owns_client = client is None

    @classmethod
    def from_settings(cls, settings: Settings) -> "ServiceGateway":
        token = settings.gateway.service_token
        return cls(
            base_url=settings.gateway.base_url,
            timeout=settings.gateway.timeout,
            service_token=token.get_secret_value() if token else None,
        )

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the shared async HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                headers={"Content-Type": "application/json", "Accept": "application/json"},
            )
        return self._client

    async def close(self) -> None:
        """Close the underlying HTTP client if this gateway created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "ServiceGateway":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    def _headers(self, session: SessionContext | None) -> dict[str, str]:
        if session is not None and session.token:
            return session.auth_headers()
        if self._service_token:
            return {"Authorization": f"Bearer {self._service_token}"}
        return {}

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _handle_response(self, response: httpx.Response, operation: str) -> dict[str, Any]:
        """Unwrap a response envelope or raise UpstreamError."""
        if response.is_success and not response.content:
            return {"success": True}

        try:
            body = response.json()
        except ValueError:
            body = None

        if not response.is_success:
            message = response.reason_phrase or "Request failed"
            if isinstance(body, dict):
                message = body.get("message") or body.get("detail") or message
            raise UpstreamError(
                message=f"{operation} failed: {message}",
                status_code=response.status_code,
                response_body=response.text,
            )

        if not isinstance(body, dict):
            raise UpstreamError(
                message=f"{operation} failed: invalid response format from server",
                status_code=response.status_code,
                response_body=response.text,
            )

        if body.get("success") is False:
            raise UpstreamError(
                message=f"{operation} failed: {body.get('message', 'service reported failure')}",
                status_code=response.status_code,
                response_body=response.text,
            )

        return body

    async def request(
        self,
        method: str,
        path: str,
        session: SessionContext | None = None,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Send one request and return the unwrapped envelope.

        Raises:
            UpstreamError: On any transport or service failure.
        """
        operation = f"{method} {path}"
        try:
            response = await self._get_client().request(
                method,
                self._url(path),
                params=params,
                json=json,
                headers=self._headers(session),
            )
        except httpx.RequestError as e:
            logger.error("Gateway connection error on %s: %s", operation, str(e))
            raise UpstreamError(
                message=f"Failed to reach gateway: {str(e)}",
                details={"error_type": type(e).__name__, "operation": operation},
            ) from e

        return self._handle_response(response, operation)

    async def list(
        self,
        path: str,
        session: SessionContext | None = None,
        params: dict[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        """Fetch a whole collection, following pagination when reported.

        Returns:
            The records of every page, in page order.

        Raises:
            UpstreamError: On any failed page, or when the collection reports
                more than MAX_PAGES pages.
        """
        query = dict(params or {})
        body = await self.request("GET", path, session, params=query or None)
        records = list(body.get("data") or [])

        pagination = body.get("pagination") or {}
        page = int(pagination.get("page") or 1)
        pages = int(pagination.get("pages") or 1)
        if pages > MAX_PAGES:
            logger.warning("GET %s reports %d pages, limit is %d", path, pages, MAX_PAGES)
            raise UpstreamError(
                message=f"GET {path} failed: {pages} pages exceeds the {MAX_PAGES} page limit",
                details={"pages": pages, "max_pages": MAX_PAGES},
            )
        while page < pages:
            page += 1
            query["page"] = page
            body = await self.request("GET", path, session, params=query)
            records.extend(body.get("data") or [])

        return records

    async def get(
        self,
        path: str,
        session: SessionContext | None = None,
    ) -> dict[str, Any]:
        """Fetch a single record."""
        body = await self.request("GET", path, session)
        data = body.get("data")
        if not isinstance(data, dict):
            raise UpstreamError(message=f"GET {path} returned no record", status_code=404)
        return data

    async def create(
        self,
        path: str,
        payload: dict[str, Any],
        session: SessionContext | None = None,
    ) -> dict[str, Any]:
        """POST a new record; returns the raw envelope."""
        return await self.request("POST", path, session, json=payload)

    async def update(
        self,
        path: str,
        payload: dict[str, Any],
        session: SessionContext | None = None,
    ) -> dict[str, Any]:
        """PUT changes to a record; returns the raw envelope."""
        return await self.request("PUT", path, session, json=payload)

    async def delete(
        self,
        path: str,
        session: SessionContext | None = None,
    ) -> dict[str, Any]:
        """DELETE a record; returns the raw envelope."""
        return await self.request("DELETE", path, session)
