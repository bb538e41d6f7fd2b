"""
Domain layer for the Dashboard Service.

Combines the inventory API adapter with the cache: reads are served
through the cache, writes invalidate it.
"""

from .inventory import InventoryService

__all__ = [
    "InventoryService",
]
