"""
Shared fixtures for Dashboard Service tests.
"""

from typing import Any, Dict

import pytest


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def _make_service(service_id: str = "svc-1", **overrides) -> Dict[str, Any]:
    """Network service payload as returned by the inventory API."""
    service = {
        "id": service_id,
        "name": f"Service {service_id}",
        "type": "web",
        "ipAddress": "10.0.0.10",
        "internalPorts": [8080],
        "externalPorts": [443],
        "vlan": "100",
        "domain": "example.internal",
        "groupId": "grp-1",
        "tags": ["prod"],
        "createdAt": "2024-01-01T00:00:00Z",
        "updatedAt": "2024-01-01T00:00:00Z",
    }
    service.update(overrides)
    return service


def _make_group(group_id: str = "grp-1", **overrides) -> Dict[str, Any]:
    """Group payload as returned by the inventory API."""
    group = {
        "id": group_id,
        "name": f"Group {group_id}",
        "description": "Edge services",
        "createdAt": "2024-01-01T00:00:00Z",
        "updatedAt": "2024-01-01T00:00:00Z",
    }
    group.update(overrides)
    return group


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_service():
    return _make_service


@pytest.fixture
def make_group():
    return _make_group
