"""
Dashboard backend service for the Network Inventory.
"""

from typing import Dict, Optional

from fastapi import Request, Response
from pydantic import ValidationError as PydanticValidationError

from shared.base_service import BaseService
from shared.config import ServiceConfig, get_config
from shared.errors import ValidationError
from .adapters.inventory_client import InventoryClient
from .caching.cache_manager import CacheManager
from .caching.sweeper import ExpirySweeper
from .caching.warming import CacheWarmer
from .domain.inventory import InventoryService
from .models import (
    CreateGroupData,
    CreateServiceData,
    ServiceQuery,
    UpdateGroupData,
    UpdateServiceData,
)


class DashboardService(BaseService):
    """Backend-for-frontend serving the dashboard's data hooks through the cache."""

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        *,
        client: Optional[InventoryClient] = None,
        cache_manager: Optional[CacheManager] = None,
    ):
        super().__init__("dashboard", 8000, config=config or get_config("dashboard", 8000))

        self.client = client or InventoryClient(
            self.config.inventory_api_url,
            timeout=self.config.request_timeout_seconds,
            retries=self.config.request_retries,
            retry_delay=self.config.request_retry_delay_seconds,
            metrics=self.metrics,
        )
        self.cache_manager = cache_manager or CacheManager.from_config(self.config, metrics=self.metrics)
        self.inventory = InventoryService(self.client, self.cache_manager)
        self.cache_warmer = CacheWarmer(self.inventory)
        self.sweeper: Optional[ExpirySweeper] = None
        if self.config.cache_sweep_interval_seconds > 0:
            self.sweeper = ExpirySweeper(self.cache_manager, self.config.cache_sweep_interval_seconds)

        @self.app.on_event("startup")
        async def _startup():
            if self.config.cache_warm_delay_seconds >= 0:
                self.cache_warmer.schedule(self.config.cache_warm_delay_seconds)
            if self.sweeper:
                self.sweeper.start()

        @self.app.on_event("shutdown")
        async def _shutdown():
            await self.cache_warmer.cancel()
            if self.sweeper:
                await self.sweeper.stop()
            await self.client.close()

        self._setup_inventory_routes()
        self._setup_cache_routes()

        self.app.state.dashboard_service = self

    async def _check_dependencies(self) -> Dict[str, str]:
        """Check the inventory API; a failure marks the service unhealthy."""
        await self.client.check_health()
        return {"inventory_api": "ok"}

    def _parse_service_query(self, request: Request) -> ServiceQuery:
        raw = dict(request.query_params)
        if "tags" in raw:
            raw["tags"] = [tag for tag in raw["tags"].split(",") if tag]
        try:
            return ServiceQuery.model_validate(raw)
        except PydanticValidationError as exc:
            raise ValidationError(
                "Invalid service filters",
                details={"errors": exc.errors(include_url=False, include_context=False)},
            )

    def _setup_inventory_routes(self):
        """Set up service and group routes."""
        inventory = self.inventory

        @self.app.get("/api/services")
        async def list_services(request: Request):
            return await inventory.list_services(self._parse_service_query(request))

        @self.app.get("/api/services/{service_id}")
        async def get_service(service_id: str):
            return await inventory.get_service(service_id)

        @self.app.post("/api/services", status_code=201)
        async def create_service(data: CreateServiceData):
            return await inventory.create_service(data)

        @self.app.put("/api/services/{service_id}")
        async def update_service(service_id: str, data: UpdateServiceData):
            return await inventory.update_service(service_id, data)

        @self.app.delete("/api/services/{service_id}", status_code=204)
        async def delete_service(service_id: str):
            await inventory.delete_service(service_id)
            return Response(status_code=204)

        @self.app.get("/api/groups")
        async def list_groups():
            return await inventory.list_groups()

        @self.app.get("/api/groups/{group_id}")
        async def get_group(group_id: str):
            return await inventory.get_group(group_id)

        @self.app.get("/api/groups/{group_id}/services")
        async def get_group_services(group_id: str):
            return await inventory.get_group_services(group_id)

        @self.app.post("/api/groups", status_code=201)
        async def create_group(data: CreateGroupData):
            return await inventory.create_group(data)

        @self.app.put("/api/groups/{group_id}")
        async def update_group(group_id: str, data: UpdateGroupData):
            return await inventory.update_group(group_id, data)

        @self.app.delete("/api/groups/{group_id}", status_code=204)
        async def delete_group(group_id: str):
            await inventory.delete_group(group_id)
            return Response(status_code=204)

    def _setup_cache_routes(self):
        """Set up cache diagnostics routes."""

        @self.app.get("/api/cache/stats")
        async def cache_stats():
            return {
                "stores": self.cache_manager.get_cache_stats(),
                "total_hit_rate": self.cache_manager.get_total_hit_rate(),
            }

        @self.app.post("/api/cache/clear")
        async def clear_cache():
            return {"removed": self.cache_manager.clear_all()}


def create_app():
    """Create FastAPI application."""
    service = DashboardService()
    return service.app


if __name__ == "__main__":
    service = DashboardService()
    service.run()
