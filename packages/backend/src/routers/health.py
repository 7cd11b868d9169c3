"""Health and readiness endpoints.

- GET /health         liveness report, always 200
- GET /ready          200 ``{ready: true}`` or 503 ``NOT_READY``
- GET /api/v1/health  same as /health
"""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from src.envelope import respond_success
from src.models.health import ReadyStatus
from src.services.health_service import HealthChecker


def create_health_router(health_checker: HealthChecker) -> APIRouter:
    """Factory that creates the root health router with an injected checker."""

    health_router = APIRouter(tags=["health"])

    @health_router.get("/health")
    async def health(request: Request) -> JSONResponse:
        """Service liveness with per-dependency state."""
        status = await health_checker.check_health()
        return respond_success(request, 200, status.model_dump(mode="json"))

    @health_router.get("/ready")
    async def ready(request: Request) -> JSONResponse:
        """Readiness probe; NotReadyError becomes a 503 envelope."""
        await health_checker.check_ready()
        return respond_success(request, 200, ReadyStatus().model_dump(mode="json"))

    return health_router


def create_api_v1_router(health_checker: HealthChecker) -> APIRouter:
    """Versioned API router; future route groups are included here."""

    v1_router = APIRouter(prefix="/api/v1")

    @v1_router.get("/health", tags=["health"])
    async def health(request: Request) -> JSONResponse:
        status = await health_checker.check_health()
        return respond_success(request, 200, status.model_dump(mode="json"))

    return v1_router
