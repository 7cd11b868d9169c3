"""FastAPI application factory.

Wires the middleware chain (recovery → request logger → CORS), the
exception handlers and the health routes around an explicit settings
snapshot and datastore handle. Usable directly with
``uvicorn --factory src.app:create_app``.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from src.config.cors_policy import CorsPolicy, load_cors_policy
from src.config.settings import ServiceSettings
from src.datastore.database import connect_datastore
from src.datastore.types import Dependency, close_dependency
from src.middleware.cors import CORSMiddleware
from src.middleware.error_handler import register_error_handlers
from src.middleware.recovery import RecoveryMiddleware
from src.middleware.request_logger import RequestLoggerMiddleware
from src.routers.health import create_api_v1_router, create_health_router
from src.services.health_service import HealthChecker

logger = logging.getLogger(__name__)


def create_app(
    settings: ServiceSettings | None = None,
    *,
    database: Dependency | None = None,
    cors_policy: CorsPolicy | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    When ``database`` is omitted the datastore is opened from
    ``settings.database_url`` and closed by the app's lifespan; a handle
    passed in stays owned by the caller.
    """
    if settings is None:
        settings = ServiceSettings()
    owns_database = database is None
    if database is None:
        database = connect_datastore(settings.database_url)
    if cors_policy is None:
        cors_policy = load_cors_policy(settings.cors_policy_path)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            "Application ready (environment: %s, version: %s)",
            settings.environment,
            settings.app_version,
        )
        yield
        if owns_database:
            close_dependency(database)
        logger.info("Application stopped")

    app = FastAPI(
        title="Society Service API",
        version=settings.app_version,
        lifespan=lifespan,
        docs_url=None if settings.is_production else "/docs",
        redoc_url=None if settings.is_production else "/redoc",
        openapi_url=None if settings.is_production else "/openapi.json",
    )

    register_error_handlers(app)

    health_checker = HealthChecker(
        {"database": database},
        version=settings.app_version,
        probe_timeout_seconds=settings.probe_timeout_seconds,
    )
    app.include_router(create_health_router(health_checker))
    app.include_router(create_api_v1_router(health_checker))

    # Middleware (order: recovery → request_logger → cors)
    # Note: Starlette middleware is applied in reverse order of add_middleware calls
    app.add_middleware(CORSMiddleware, policy=cors_policy)
    app.add_middleware(RequestLoggerMiddleware)
    app.add_middleware(RecoveryMiddleware)

    app.state.settings = settings
    app.state.database = database
    app.state.health_checker = health_checker

    return app
