"""
Shared utilities for the Network Inventory dashboard backend.

This package aggregates common building blocks consumed by services:

- config: Service configuration via pydantic-settings
- logging: Structured logging with request/trace correlation
- metrics: Prometheus metrics helpers
- errors: Canonical error types and responses
- retry: Retry loop with backoff for outbound calls
- base_service: FastAPI service scaffolding

Do not import from service packages into shared/.
"""
