"""
Shared configuration management for the Network Inventory dashboard backend.
"""

from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="INVENTORY_",
        env_file=".env",
        case_sensitive=False,
        extra="allow"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")
    # "json" or "console"
    log_format: str = Field(default="json")
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])

    # Inventory REST API (transport collaborator)
    inventory_api_url: str = Field(default="http://localhost:3000/api")
    request_timeout_seconds: float = Field(default=10.0)
    request_retries: int = Field(default=3)
    request_retry_delay_seconds: float = Field(default=1.0)

    # Cache stores: TTLs in seconds, bounds in entries
    services_cache_ttl: float = Field(default=300.0)
    services_cache_max_entries: int = Field(default=50)
    service_cache_ttl: float = Field(default=600.0)
    service_cache_max_entries: int = Field(default=100)
    groups_cache_ttl: float = Field(default=600.0)
    groups_cache_max_entries: int = Field(default=20)
    group_cache_ttl: float = Field(default=600.0)
    group_cache_max_entries: int = Field(default=50)

    # Window during which an outstanding fetch is shared between callers
    coalesce_window_seconds: float = Field(default=30.0)

    # Background hygiene; 0 disables the expiry sweep
    cache_sweep_interval_seconds: float = Field(default=0.0)

    # Delay before warming the cache at startup; negative disables warming
    cache_warm_delay_seconds: float = Field(default=1.0)


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str
    port: int
    host: str = "0.0.0.0"

    def __init__(self, service_name: str, port: int, **kwargs):
        super().__init__(service_name=service_name, port=port, **kwargs)


def get_config(service_name: str, port: int, **overrides) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, port=port, **overrides)
