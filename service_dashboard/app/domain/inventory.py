"""
Inventory data service: cached reads and invalidating writes.
"""

import asyncio
from typing import List, Optional, Sequence

from shared.logging import get_logger
from ..adapters.inventory_client import InventoryClient
from ..caching.cache_manager import CacheManager
from ..caching.keys import EntityKind
from ..models import (
    CreateGroupData,
    CreateServiceData,
    Group,
    NetworkService,
    ServiceQuery,
    UpdateGroupData,
    UpdateServiceData,
    payload,
)


class InventoryService:
    """
    What the dashboard's data hooks talk to.

    Reads go through the cache and store parsed models. Writes go straight
    to the API and invalidate the affected stores before returning.
    """

    def __init__(self, client: InventoryClient, cache: CacheManager):
        self.client = client
        self.cache = cache
        self.logger = get_logger("dashboard.inventory")

    # Reads

    async def list_services(self, query: Optional[ServiceQuery] = None) -> List[NetworkService]:
        params = query.to_params() if query else {}

        async def _fetch():
            raw = await self.client.fetch_services(query.to_query_params() if query else None)
            return [NetworkService.model_validate(item) for item in raw]

        return await self.cache.api.get_services(_fetch, params)

    async def get_service(self, service_id: str) -> NetworkService:
        async def _fetch():
            return NetworkService.model_validate(await self.client.fetch_service(service_id))

        return await self.cache.api.get_service(_fetch, service_id)

    async def list_groups(self) -> List[Group]:
        async def _fetch():
            return [Group.model_validate(item) for item in await self.client.fetch_groups()]

        return await self.cache.api.get_groups(_fetch)

    async def get_group(self, group_id: str) -> Group:
        async def _fetch():
            return Group.model_validate(await self.client.fetch_group(group_id))

        return await self.cache.api.get_group(_fetch, group_id)

    async def get_group_services(self, group_id: str) -> List[NetworkService]:
        """Services of one group; not cached."""
        raw = await self.client.fetch_group_services(group_id)
        return [NetworkService.model_validate(item) for item in raw]

    # Service writes

    async def create_service(self, data: CreateServiceData) -> NetworkService:
        created = NetworkService.model_validate(await self.client.create_service(payload(data)))
        self.cache.invalidate(EntityKind.SERVICE)
        self.logger.info("Service created", service_id=created.id)
        return created

    async def update_service(self, service_id: str, data: UpdateServiceData) -> NetworkService:
        updated = NetworkService.model_validate(await self.client.update_service(service_id, payload(data)))
        self.cache.invalidate(EntityKind.SERVICE, service_id)
        self.logger.info("Service updated", service_id=service_id)
        return updated

    async def delete_service(self, service_id: str) -> None:
        await self.client.delete_service(service_id)
        self.cache.invalidate(EntityKind.SERVICE, service_id)
        self.logger.info("Service deleted", service_id=service_id)

    async def bulk_delete_services(self, service_ids: Sequence[str]) -> None:
        """Delete concurrently; the first failure propagates."""
        await asyncio.gather(*(self.delete_service(service_id) for service_id in service_ids))

    async def bulk_update_group(self, service_ids: Sequence[str], group_id: str) -> List[NetworkService]:
        """Move services to ``group_id`` concurrently."""
        data = UpdateServiceData(group_id=group_id)
        return list(await asyncio.gather(*(self.update_service(service_id, data) for service_id in service_ids)))

    # Group writes

    async def create_group(self, data: CreateGroupData) -> Group:
        created = Group.model_validate(await self.client.create_group(payload(data)))
        self.cache.invalidate(EntityKind.GROUP)
        self.logger.info("Group created", group_id=created.id)
        return created

    async def update_group(self, group_id: str, data: UpdateGroupData) -> Group:
        updated = Group.model_validate(await self.client.update_group(group_id, payload(data)))
        self.cache.invalidate(EntityKind.GROUP, group_id)
        self.logger.info("Group updated", group_id=group_id)
        return updated

    async def delete_group(self, group_id: str) -> None:
        await self.client.delete_group(group_id)
        self.cache.invalidate(EntityKind.GROUP, group_id)
        self.logger.info("Group deleted", group_id=group_id)
