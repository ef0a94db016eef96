"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from metrics_service.config import get_settings
from metrics_service.domain.retention import RetentionPolicy
from metrics_service.infrastructure.auth.auth_service_client import AuthServiceClient
from metrics_service.infrastructure.database import Base, engine
from metrics_service.infrastructure.database.retention import RetentionSweeper
from metrics_service.infrastructure.database.session import async_session_factory
from metrics_service.infrastructure.logging.log_config import setup_logging
from metrics_service.infrastructure.metrics.live_metrics import RegistryLiveMetrics
from metrics_service.infrastructure.metrics.process_metrics import ProcessMetrics
from metrics_service.infrastructure.metrics.registry import MetricsRegistry
from metrics_service.infrastructure.system.system_monitor import HostSystemMonitor
from metrics_service.presentation.api.endpoints.exposition import router as exposition_router
from metrics_service.presentation.api.endpoints.health import router as health_router
from metrics_service.presentation.api.error_handlers import register_exception_handlers
from metrics_service.presentation.api.router import router as api_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan: create tables, start the retention sweeper."""
    settings = get_settings()
    setup_logging()

    # 1. Create all database tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    # 2. Start the retention sweeper
    policy = RetentionPolicy(
        engagement_days=settings.metrics_retention_days,
        sales_days=settings.sales_retention_days,
        performance_days=settings.performance_retention_days,
    )
    sweeper = RetentionSweeper(
        session_factory=async_session_factory,
        policy=policy,
        interval_seconds=settings.retention_sweep_interval_seconds,
    )
    await sweeper.start()
    logger.info(
        "%s %s started (env=%s)", settings.service_name, settings.app_version, settings.app_env
    )

    yield

    # Shutdown
    await sweeper.stop()
    await engine.dispose()


def create_app() -> FastAPI:
    """Factory function that builds and configures the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_title,
        version=settings.app_version,
        lifespan=lifespan,
    )

    # Process-wide collaborators, read by the dependency providers
    registry = MetricsRegistry()
    app.state.metrics_registry = registry
    app.state.live_metrics = RegistryLiveMetrics(registry)
    app.state.process_metrics = ProcessMetrics(registry)
    app.state.identity_provider = AuthServiceClient(
        base_url=settings.auth_service_url,
        timeout=settings.auth_timeout_seconds,
    )
    app.state.system_monitor = HostSystemMonitor()

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Unauthenticated operational routes, then the API
    app.include_router(health_router)
    app.include_router(exposition_router)
    app.include_router(api_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "metrics_service.main:app",
        host="0.0.0.0",
        port=8020,
        reload=True,
    )
