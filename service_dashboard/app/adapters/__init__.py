"""
Adapters package for the Dashboard Service.

HTTP client wrappers for the inventory API. Adapters own base URLs,
request shapes, retry policy and the mapping of failures onto
``shared.errors.ApiClientError``. Caching happens above them.
"""

from .inventory_client import InventoryClient

__all__ = [
    "InventoryClient",
]
