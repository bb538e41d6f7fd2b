"""
Unit tests for the inventory API client.
"""

import json

import httpx
import pytest

from shared.errors import ApiClientError, is_network_error, is_server_error, is_validation_error
from service_dashboard.app.adapters.inventory_client import InventoryClient

BASE_URL = "http://inventory.test/api"


class RecordingSleep:
    """Async sleep replacement that records requested delays."""

    def __init__(self):
        self.delays = []

    async def __call__(self, delay: float):
        self.delays.append(delay)


class TestInventoryClient:
    """Test cases for InventoryClient."""

    @pytest.fixture
    def sleep(self):
        return RecordingSleep()

    @pytest.fixture
    def requests(self):
        return []

    @pytest.fixture
    def make_client(self, sleep, requests):
        def _make(handler, **kwargs):
            def _recording_handler(request: httpx.Request):
                requests.append(request)
                return handler(request)

            return InventoryClient(
                BASE_URL,
                transport=httpx.MockTransport(_recording_handler),
                sleep=sleep,
                **kwargs,
            )

        return _make

    @pytest.mark.asyncio
    async def test_fetch_services_with_params(self, make_client, requests, make_service):
        client = make_client(lambda request: httpx.Response(200, json=[make_service()]))

        result = await client.fetch_services({"groupId": "grp-1", "tags": "prod,edge"})

        assert result == [make_service()]
        request = requests[0]
        assert request.method == "GET"
        assert request.url.path == "/api/services"
        assert request.url.params["groupId"] == "grp-1"
        assert request.url.params["tags"] == "prod,edge"
        await client.close()

    @pytest.mark.asyncio
    async def test_create_sends_json_body(self, make_client, requests, make_service):
        client = make_client(lambda request: httpx.Response(201, json=make_service("svc-9")))

        result = await client.create_service({"name": "api", "groupId": "grp-1"})

        assert result["id"] == "svc-9"
        assert requests[0].method == "POST"
        assert json.loads(requests[0].content) == {"name": "api", "groupId": "grp-1"}
        await client.close()

    @pytest.mark.asyncio
    async def test_no_content_returns_empty_dict(self, make_client):
        client = make_client(lambda request: httpx.Response(204))

        assert await client.request("DELETE", "/services/svc-1") == {}
        await client.close()

    @pytest.mark.asyncio
    async def test_client_error_is_not_retried(self, make_client, requests, sleep):
        client = make_client(
            lambda request: httpx.Response(
                404,
                json={"error": "NOT_FOUND", "message": "Service not found", "details": {"id": "svc-1"}},
            )
        )

        with pytest.raises(ApiClientError) as exc_info:
            await client.fetch_service("svc-1")

        error = exc_info.value
        assert (error.status, error.code, error.message) == (404, "NOT_FOUND", "Service not found")
        assert error.details == {"id": "svc-1"}
        assert is_validation_error(error)
        assert len(requests) == 1
        assert sleep.delays == []
        await client.close()

    @pytest.mark.asyncio
    async def test_server_error_is_retried_with_backoff(self, make_client, requests, sleep):
        responses = [
            httpx.Response(503, json={"error": "UNAVAILABLE", "message": "try later"}),
            httpx.Response(503, json={"error": "UNAVAILABLE", "message": "try later"}),
            httpx.Response(200, json=[]),
        ]
        client = make_client(lambda request: responses.pop(0), retries=3, retry_delay=1.0)

        assert await client.fetch_groups() == []
        assert len(requests) == 3
        assert sleep.delays == [1.0, 2.0]
        await client.close()

    @pytest.mark.asyncio
    async def test_retries_exhausted(self, make_client, requests, sleep):
        client = make_client(lambda request: httpx.Response(500, json={"message": "boom"}), retries=2)

        with pytest.raises(ApiClientError) as exc_info:
            await client.fetch_groups()

        assert exc_info.value.status == 500
        assert is_server_error(exc_info.value)
        assert len(requests) == 3
        assert sleep.delays == [1.0, 2.0]
        await client.close()

    @pytest.mark.asyncio
    async def test_network_error_has_status_zero(self, make_client, requests):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = make_client(handler, retries=1)

        with pytest.raises(ApiClientError) as exc_info:
            await client.fetch_groups()

        assert exc_info.value.status == 0
        assert exc_info.value.code == "NETWORK_ERROR"
        assert is_network_error(exc_info.value)
        assert len(requests) == 2
        await client.close()

    @pytest.mark.asyncio
    async def test_timeout_maps_to_408_without_retry(self, make_client, requests):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        client = make_client(handler, retries=3)

        with pytest.raises(ApiClientError) as exc_info:
            await client.fetch_service("svc-1")

        assert (exc_info.value.status, exc_info.value.code) == (408, "TIMEOUT")
        assert exc_info.value.message == "Request timeout"
        assert len(requests) == 1
        await client.close()

    @pytest.mark.asyncio
    async def test_non_json_error_body(self, make_client):
        client = make_client(lambda request: httpx.Response(502, text="<html>bad gateway</html>"), retries=0)

        with pytest.raises(ApiClientError) as exc_info:
            await client.fetch_groups()

        assert exc_info.value.status == 502
        assert exc_info.value.message == "HTTP 502: Bad Gateway"
        assert exc_info.value.code == "Unknown error"
        await client.close()

    @pytest.mark.asyncio
    async def test_request_duration_is_recorded(self, make_client):
        observed = []

        class Metrics:
            def observe_histogram(self, metric_name, value, **labels):
                observed.append((metric_name, labels))

        client = make_client(lambda request: httpx.Response(200, json={}), metrics=Metrics())

        await client.fetch_group("grp-1")

        assert observed == [("inventory_request_duration_seconds", {"method": "GET", "status_code": "200"})]
        await client.close()

    @pytest.mark.asyncio
    async def test_check_health_is_a_single_attempt(self, make_client, requests, sleep):
        client = make_client(lambda request: httpx.Response(503, json={"status": "unhealthy"}), retries=3)

        with pytest.raises(ApiClientError) as exc_info:
            await client.check_health()

        assert exc_info.value.status == 503
        assert len(requests) == 1
        assert requests[0].url.path == "/api/health"
        assert sleep.delays == []
        await client.close()
