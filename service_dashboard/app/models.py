"""
Inventory data models.

Wire format is camelCase; Python attributes are snake_case. Read models are
frozen because cached instances are shared between callers.
"""

from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ServiceType(str, Enum):
    """Network service types."""
    WEB = "web"
    DATABASE = "database"
    API = "api"
    STORAGE = "storage"
    SECURITY = "security"
    MONITORING = "monitoring"


class InventoryModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FrozenInventoryModel(InventoryModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class NetworkService(FrozenInventoryModel):
    """A network service registered in the inventory."""
    id: str
    name: str
    type: ServiceType
    ip_address: str
    internal_ports: List[int] = Field(default_factory=list)
    external_ports: List[int] = Field(default_factory=list)
    vlan: Optional[str] = None
    cidr: Optional[str] = None
    domain: Optional[str] = None
    group_id: str
    tags: Optional[List[str]] = None
    created_at: str
    updated_at: str


class Group(FrozenInventoryModel):
    """A named group of network services."""
    id: str
    name: str
    description: Optional[str] = None
    created_at: str
    updated_at: str
    services: Optional[List[NetworkService]] = None


class CreateServiceData(InventoryModel):
    name: str
    type: ServiceType
    ip_address: str
    internal_ports: List[int] = Field(default_factory=list)
    external_ports: List[int] = Field(default_factory=list)
    vlan: Optional[str] = None
    cidr: Optional[str] = None
    domain: Optional[str] = None
    group_id: str
    tags: Optional[List[str]] = None


class UpdateServiceData(InventoryModel):
    name: Optional[str] = None
    type: Optional[ServiceType] = None
    ip_address: Optional[str] = None
    internal_ports: Optional[List[int]] = None
    external_ports: Optional[List[int]] = None
    vlan: Optional[str] = None
    cidr: Optional[str] = None
    domain: Optional[str] = None
    group_id: Optional[str] = None
    tags: Optional[List[str]] = None


class CreateGroupData(InventoryModel):
    name: str
    description: Optional[str] = None


class UpdateGroupData(InventoryModel):
    name: Optional[str] = None
    description: Optional[str] = None


class ServiceQuery(InventoryModel):
    """Pagination, sorting and filters for the service list."""
    page: Optional[int] = None
    limit: Optional[int] = None
    search: Optional[str] = None
    sort: Optional[str] = None
    order: Optional[Literal["asc", "desc"]] = None
    type: Optional[ServiceType] = None
    group_id: Optional[str] = None
    vlan: Optional[int] = None
    ip_address: Optional[str] = None
    cidr_range: Optional[str] = None
    domain: Optional[str] = None
    tags: Optional[List[str]] = None

    def to_params(self) -> Dict[str, Any]:
        """Filter values that are set, keyed by wire name."""
        params = self.model_dump(by_alias=True, exclude_none=True, mode="json")
        return {name: value for name, value in params.items() if value not in ("", [], 0)}

    def to_query_params(self) -> Dict[str, Any]:
        """Filter values rendered as HTTP query parameters."""
        params = self.to_params()
        if "tags" in params:
            params["tags"] = ",".join(params["tags"])
        return params


def payload(data: InventoryModel) -> Dict[str, Any]:
    """Request body for a create/update model; unset fields are omitted."""
    return data.model_dump(by_alias=True, exclude_unset=True, mode="json")
