"""
Inventory REST API client for the dashboard backend.
"""

import asyncio
import time
from typing import Any, Awaitable, Callable, Dict, Optional, TYPE_CHECKING

import httpx

from shared.errors import ApiClientError, is_validation_error
from shared.logging import get_logger
from shared.retry import RetryConfig, retry_async

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


def _is_retryable(error: Exception) -> bool:
    # Client errors (timeouts included) are final
    return not is_validation_error(error)


class InventoryClient:
    """
    Thin HTTP transport for the inventory API.

    Returns decoded JSON and raises ``ApiClientError`` for every failure.
    Server and network errors are retried with exponential backoff; 4xx
    responses and timeouts are not.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 10.0,
        retries: int = 3,
        retry_delay: float = 1.0,
        metrics: Optional["MetricsCollector"] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.base_url = base_url.rstrip('/')
        self.logger = get_logger("dashboard.inventory_client")
        self.metrics = metrics
        self._sleep = sleep
        self.retry_config = RetryConfig(
            max_attempts=retries + 1,
            base_delay=retry_delay,
            max_delay=60.0,
            exponential_base=2.0,
            jitter=False,
            reraise=True,
        )
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
            headers={"Content-Type": "application/json"},
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def check_health(self) -> Any:
        """Single unretried GET of the inventory API health endpoint."""
        return await self._send("GET", "/health", json=None, params=None)

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Perform one API call with retries."""

        async def _attempt():
            return await self._send(method, path, json=json, params=params)

        return await retry_async(
            _attempt,
            self.retry_config,
            exceptions=(ApiClientError,),
            retry_if=_is_retryable,
            name=f"{method} {path}",
            sleep=self._sleep,
        )

    async def _send(self, method: str, path: str, *, json: Any, params: Optional[Dict[str, Any]]) -> Any:
        start = time.perf_counter()
        try:
            response = await self._client.request(
                method,
                path,
                json=json if method in ("POST", "PUT") else None,
                params=params or None,
            )
        except httpx.TimeoutException as exc:
            self.logger.warning("Inventory API timeout", method=method, path=path)
            raise ApiClientError("Request timeout", status=408, code="TIMEOUT") from exc
        except httpx.HTTPError as exc:
            self.logger.warning("Inventory API unreachable", method=method, path=path, error=str(exc))
            raise ApiClientError(str(exc) or "Network error", status=0, code="NETWORK_ERROR") from exc

        self._record_request(method, response.status_code, time.perf_counter() - start)

        if response.is_error:
            raise self._error_from_response(response)

        if response.status_code == 204 or not response.content:
            return {}

        return response.json()

    def _error_from_response(self, response: httpx.Response) -> ApiClientError:
        try:
            body = response.json()
        except ValueError:
            body = None
        if not isinstance(body, dict):
            body = {
                "error": "Unknown error",
                "message": f"HTTP {response.status_code}: {response.reason_phrase}",
            }

        error = ApiClientError(
            message=body.get("message") or body.get("error") or f"HTTP {response.status_code}",
            status=response.status_code,
            code=body.get("error"),
            details=body.get("details"),
        )
        self.logger.info(
            "Inventory API request failed",
            url=str(response.request.url),
            status_code=response.status_code,
            code=error.code,
        )
        return error

    def _record_request(self, method: str, status_code: int, duration: float) -> None:
        if not self.metrics:
            return
        try:
            self.metrics.observe_histogram(
                "inventory_request_duration_seconds",
                duration,
                method=method,
                status_code=str(status_code),
            )
        except Exception as exc:  # pragma: no cover - metrics failures should never break requests
            self.logger.debug("Failed to record request metrics", error=str(exc))

    # Services

    async def fetch_services(self, params: Optional[Dict[str, Any]] = None) -> Any:
        return await self.request("GET", "/services", params=params)

    async def fetch_service(self, service_id: str) -> Any:
        return await self.request("GET", f"/services/{service_id}")

    async def create_service(self, data: Dict[str, Any]) -> Any:
        return await self.request("POST", "/services", json=data)

    async def update_service(self, service_id: str, data: Dict[str, Any]) -> Any:
        return await self.request("PUT", f"/services/{service_id}", json=data)

    async def delete_service(self, service_id: str) -> None:
        await self.request("DELETE", f"/services/{service_id}")

    # Groups

    async def fetch_groups(self) -> Any:
        return await self.request("GET", "/groups")

    async def fetch_group(self, group_id: str) -> Any:
        return await self.request("GET", f"/groups/{group_id}")

    async def create_group(self, data: Dict[str, Any]) -> Any:
        return await self.request("POST", "/groups", json=data)

    async def update_group(self, group_id: str, data: Dict[str, Any]) -> Any:
        return await self.request("PUT", f"/groups/{group_id}", json=data)

    async def delete_group(self, group_id: str) -> None:
        await self.request("DELETE", f"/groups/{group_id}")

    async def fetch_group_services(self, group_id: str) -> Any:
        return await self.request("GET", f"/groups/{group_id}/services")
