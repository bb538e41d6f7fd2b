"""
Dashboard Service package for the Network Inventory.

The dashboard backend serves group and network-service data to the UI:
- Cached reads: process-local stores with TTLs and request coalescing
- Writes: forwarded to the inventory API, then cache invalidation
- Diagnostics: per-store cache statistics and Prometheus metrics

Structure:
- app.main: FastAPI app, routes, and startup/shutdown wiring.
- app.adapters: HTTP client for the inventory API.
- app.caching: Cache stores, coalescing, invalidation, warming.
- app.domain: Inventory data service tying cache and client together.
- app.models: Inventory data models.
"""
