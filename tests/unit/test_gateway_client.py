# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the gateway client."""

import json

import httpx
import pytest

from coursehub.core.config import Settings
from coursehub.infrastructure.gateway import ServiceGateway, UpstreamError
from coursehub.models import SessionContext

BASE_URL = "http://gateway.test/api"


def _gateway(handler, service_token: str | None = None) -> ServiceGateway:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ServiceGateway(BASE_URL, service_token=service_token, client=client)


class TestRequests:
    """Tests for request building and envelope handling."""

    @pytest.mark.asyncio
    async def test_list_unwraps_envelope_and_forwards_token(self, admin_session) -> None:
        """Test the session token is sent and data returned."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"success": True, "data": [{"_id": "u1"}]})

        gateway = _gateway(handler)
        records = await gateway.list("/users/students", admin_session)

        assert records == [{"_id": "u1"}]
        assert str(seen[0].url) == f"{BASE_URL}/users/students"
        assert seen[0].headers["Authorization"] == "Bearer admin-token"

    @pytest.mark.asyncio
    async def test_service_token_without_session(self) -> None:
        """Test anonymous calls fall back to the service token."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"success": True, "data": []})

        gateway = _gateway(handler, service_token="svc")
        await gateway.list("/courses", SessionContext.anonymous())

        assert seen[0].headers["Authorization"] == "Bearer svc"

    @pytest.mark.asyncio
    async def test_query_params(self) -> None:
        """Test params are sent on the query string."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"success": True, "data": []})

        await _gateway(handler).list("/content/announcements", params={"isActive": "true"})

        assert seen[0].url.params["isActive"] == "true"

    @pytest.mark.asyncio
    async def test_pagination_is_followed(self) -> None:
        """Test every reported page is fetched in order."""
        def handler(request: httpx.Request) -> httpx.Response:
            page = int(request.url.params.get("page", "1"))
            return httpx.Response(200, json={
                "success": True,
                "data": [{"_id": f"p{page}"}],
                "pagination": {"page": page, "pages": 3},
            })

        records = await _gateway(handler).list("/payments")

        assert [r["_id"] for r in records] == ["p1", "p2", "p3"]

    @pytest.mark.asyncio
    async def test_pagination_over_limit_is_refused(self) -> None:
        """Test a collection reporting too many pages fails instead of truncating."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={
                "success": True,
                "data": [{"_id": "p1"}],
                "pagination": {"page": 1, "pages": 60},
            })

        with pytest.raises(UpstreamError) as exc_info:
            await _gateway(handler).list("/payments")

        assert exc_info.value.details == {"pages": 60, "max_pages": 50}
        assert "60 pages" in exc_info.value.message
        assert len(seen) == 1

    @pytest.mark.asyncio
    async def test_get_single_record(self) -> None:
        """Test get() returns the data object."""
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"success": True, "data": {"_id": "pay1", "status": "pending_paypal_approval"}})

        assert (await _gateway(handler).get("/payments/pay1"))["_id"] == "pay1"

    @pytest.mark.asyncio
    async def test_empty_delete_response(self) -> None:
        """Test a 204 without body."""
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.method == "DELETE"
            return httpx.Response(204)

        assert await _gateway(handler).delete("/courses/c1") == {"success": True}

    @pytest.mark.asyncio
    async def test_create_sends_json(self) -> None:
        """Test POST bodies."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(201, json={"success": True, "data": {"_id": "e1"}})

        result = await _gateway(handler).create("/courses/enrollments", {"studentId": "u1"})

        assert result["data"] == {"_id": "e1"}
        assert seen[0].method == "POST"
        assert json.loads(seen[0].content) == {"studentId": "u1"}


class TestErrors:
    """Tests for failure mapping."""

    @pytest.mark.asyncio
    async def test_http_error_carries_status_and_message(self) -> None:
        """Test a 400 with a service message."""
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(400, json={"success": False, "message": "Section is full"})

        with pytest.raises(UpstreamError) as exc_info:
            await _gateway(handler).create("/courses/enrollments", {})

        assert exc_info.value.status_code == 400
        assert exc_info.value.is_client_error
        assert "Section is full" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_success_false_envelope(self) -> None:
        """Test a 200 reporting failure."""
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"success": False, "message": "nope"})

        with pytest.raises(UpstreamError):
            await _gateway(handler).list("/courses")

    @pytest.mark.asyncio
    async def test_non_json_body(self) -> None:
        """Test an HTML error page from a proxy."""
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>oops</html>")

        with pytest.raises(UpstreamError) as exc_info:
            await _gateway(handler).list("/courses")
        assert "invalid response format" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_server_error(self) -> None:
        """Test a 503 from the owning service."""
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, text="Service Unavailable")

        with pytest.raises(UpstreamError) as exc_info:
            await _gateway(handler).list("/users/instructors")
        assert exc_info.value.status_code == 503
        assert not exc_info.value.is_client_error

    @pytest.mark.asyncio
    async def test_transport_error(self) -> None:
        """Test connection failures are wrapped."""
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(UpstreamError) as exc_info:
            await _gateway(handler).list("/courses")
        assert exc_info.value.status_code is None
        assert exc_info.value.details["error_type"] == "ConnectError"

    @pytest.mark.asyncio
    async def test_missing_record(self) -> None:
        """Test get() on an envelope without data."""
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"success": True})

        with pytest.raises(UpstreamError):
            await _gateway(handler).get("/payments/none")


class TestLifecycle:
    """Tests for construction and closing."""

    def test_from_settings(self) -> None:
        """Test URL, timeout and token come from settings."""
        settings = Settings(gateway={"url": "http://gw:1001/api/", "timeout": 3, "service_token": "svc"})

        gateway = ServiceGateway.from_settings(settings)

        assert gateway.base_url == "http://gw:1001/api"
        assert gateway.timeout == 3
        assert gateway._headers(None) == {"Authorization": "Bearer svc"}

    @pytest.mark.asyncio
    async def test_injected_client_is_not_closed(self) -> None:
        """Test the gateway only closes clients it created."""
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(204)))
        gateway = ServiceGateway(BASE_URL, client=client)

        await gateway.close()

        assert not client.is_closed
        await client.aclose()

    @pytest.mark.asyncio
    async def test_context_manager_closes_own_client(self) -> None:
        """Test async with closes a client the gateway created."""
        async with ServiceGateway(BASE_URL) as gateway:
            client = gateway._get_client()

        assert client.is_closed
