"""FastAPI dependency injection: wires infrastructure to the application layer."""

import logging
from collections.abc import AsyncGenerator

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from metrics_service.config import get_settings
from metrics_service.application.interfaces import (
    IdentityProvider,
    LiveMetrics,
    SystemMonitor,
)
from metrics_service.application.services import (
    AccessScopeResolver,
    AIRequestQueryService,
    EngagementQueryService,
    IngestionService,
    MetricsOverviewService,
    PerformanceQueryService,
    SalesQueryService,
)
from metrics_service.domain.entities import AccessScope, Caller
from metrics_service.domain.exceptions import AuthenticationError
from metrics_service.infrastructure.database.session import get_db_session
from metrics_service.infrastructure.database.repositories import (
    SQLAlchemyAIRequestRepository,
    SQLAlchemyEngagementEventRepository,
    SQLAlchemyPerformanceSampleRepository,
    SQLAlchemySalesTransactionRepository,
)

logger = logging.getLogger(__name__)


# ── Process-wide collaborators (created once in create_app) ──────────

def get_identity_provider(request: Request) -> IdentityProvider:
    return request.app.state.identity_provider


def get_live_metrics(request: Request) -> LiveMetrics:
    return request.app.state.live_metrics


def get_system_monitor(request: Request) -> SystemMonitor:
    return request.app.state.system_monitor


def get_scope_resolver() -> AccessScopeResolver:
    return AccessScopeResolver(admin_role=get_settings().admin_role)


# ── Identity ─────────────────────────────────────────────────────────

async def get_current_caller(
    authorization: str | None = Header(None),
    identity_provider: IdentityProvider = Depends(get_identity_provider),
) -> Caller:
    """Verify the bearer token with the identity service.

    Raises:
        AuthenticationError: header missing or not ``Bearer <token>``, or
            the identity service rejected the token.
    """
    if not authorization:
        raise AuthenticationError("Access token required")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        logger.warning("Malformed Authorization header")
        raise AuthenticationError("Access token required")
    return await identity_provider.verify(token.strip())


async def get_scope(
    caller: Caller = Depends(get_current_caller),
    resolver: AccessScopeResolver = Depends(get_scope_resolver),
) -> AccessScope:
    return resolver.resolve(caller)


# ── Services ─────────────────────────────────────────────────────────

async def get_ingestion_service(
    session: AsyncSession = Depends(get_db_session),
    live_metrics: LiveMetrics = Depends(get_live_metrics),
) -> AsyncGenerator[IngestionService, None]:
    """Provides an IngestionService with all four repositories bound to the request session."""
    yield IngestionService(
        ai_requests=SQLAlchemyAIRequestRepository(session),
        engagement_events=SQLAlchemyEngagementEventRepository(session),
        sales_transactions=SQLAlchemySalesTransactionRepository(session),
        performance_samples=SQLAlchemyPerformanceSampleRepository(session),
        live_metrics=live_metrics,
    )


async def get_ai_request_query_service(
    session: AsyncSession = Depends(get_db_session),
    resolver: AccessScopeResolver = Depends(get_scope_resolver),
) -> AsyncGenerator[AIRequestQueryService, None]:
    yield AIRequestQueryService(SQLAlchemyAIRequestRepository(session), resolver)


async def get_engagement_query_service(
    session: AsyncSession = Depends(get_db_session),
    resolver: AccessScopeResolver = Depends(get_scope_resolver),
) -> AsyncGenerator[EngagementQueryService, None]:
    yield EngagementQueryService(SQLAlchemyEngagementEventRepository(session), resolver)


async def get_sales_query_service(
    session: AsyncSession = Depends(get_db_session),
    resolver: AccessScopeResolver = Depends(get_scope_resolver),
) -> AsyncGenerator[SalesQueryService, None]:
    yield SalesQueryService(SQLAlchemySalesTransactionRepository(session), resolver)


async def get_performance_query_service(
    session: AsyncSession = Depends(get_db_session),
    resolver: AccessScopeResolver = Depends(get_scope_resolver),
    system_monitor: SystemMonitor = Depends(get_system_monitor),
) -> AsyncGenerator[PerformanceQueryService, None]:
    """Provides a PerformanceQueryService with alert thresholds from settings."""
    settings = get_settings()
    yield PerformanceQueryService(
        SQLAlchemyPerformanceSampleRepository(session),
        resolver,
        system_monitor,
        error_rate_threshold=settings.alert_error_rate_threshold,
        response_time_threshold=settings.alert_response_time_threshold,
    )


async def get_metrics_overview_service(
    ai_requests: AIRequestQueryService = Depends(get_ai_request_query_service),
    engagement: EngagementQueryService = Depends(get_engagement_query_service),
    sales: SalesQueryService = Depends(get_sales_query_service),
    performance: PerformanceQueryService = Depends(get_performance_query_service),
    resolver: AccessScopeResolver = Depends(get_scope_resolver),
) -> AsyncGenerator[MetricsOverviewService, None]:
    """Provides the cross-domain overview service on top of the per-domain ones."""
    yield MetricsOverviewService(
        ai_requests,
        engagement,
        sales,
        performance,
        resolver,
        dashboard_window_days=get_settings().dashboard_window_days,
    )
