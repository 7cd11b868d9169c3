"""Health report models."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel


class ServiceState(str, Enum):
    """State of a single downstream dependency."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    NOT_CONFIGURED = "not_configured"


class OverallStatus(str, Enum):
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


class HealthStatus(BaseModel):
    """Liveness report, computed fresh for every request."""

    status: OverallStatus
    version: str
    time: str  # RFC3339, UTC
    services: dict[str, ServiceState]


class ReadyStatus(BaseModel):
    ready: bool = True
