"""Performance sample endpoints."""

from fastapi import APIRouter, Depends, Query, Request, status

from metrics_service.application.interfaces import PerformanceSampleRepository
from metrics_service.application.schemas import (
    AlertsResponse,
    CurrentSystemResponse,
    ErrorRatesResponse,
    PerformanceAdminStatsResponse,
    PerformanceSampleCreate,
    PerformanceSampleTracked,
    PerformanceStatsResponse,
    SlowestEndpointsResponse,
    SystemResourcesResponse,
)
from metrics_service.application.services import (
    IngestionService,
    PerformanceQueryService,
)
from metrics_service.domain.entities import AccessScope, Caller, EventFilter
from metrics_service.infrastructure.dependencies import (
    get_current_caller,
    get_ingestion_service,
    get_performance_query_service,
    get_scope,
)
from metrics_service.presentation.api.request_context import event_filter, request_metadata

router = APIRouter(prefix="/performance", tags=["Performance"])

performance_filter = event_filter(PerformanceSampleRepository.dimensions)


@router.post("/track", response_model=PerformanceSampleTracked, status_code=status.HTTP_201_CREATED)
async def track_performance_sample(
    data: PerformanceSampleCreate,
    request: Request,
    caller: Caller = Depends(get_current_caller),
    scope: AccessScope = Depends(get_scope),
    service: IngestionService = Depends(get_ingestion_service),
) -> PerformanceSampleTracked:
    """Record one request/response sample.

    The request id comes from the body, then ``X-Request-ID``, and is
    generated when neither is present.
    """
    request_id = await service.track_performance_sample(
        scope, caller.plan, data, request_metadata(request)
    )
    return PerformanceSampleTracked(request_id=request_id)


@router.get("/stats", response_model=PerformanceStatsResponse)
async def get_performance_stats(
    filters: EventFilter = Depends(performance_filter),
    scope: AccessScope = Depends(get_scope),
    service: PerformanceQueryService = Depends(get_performance_query_service),
) -> PerformanceStatsResponse:
    return await service.stats(scope, filters)


@router.get("/slowest-endpoints", response_model=SlowestEndpointsResponse)
async def get_slowest_endpoints(
    limit: int = Query(10),
    filters: EventFilter = Depends(performance_filter),
    scope: AccessScope = Depends(get_scope),
    service: PerformanceQueryService = Depends(get_performance_query_service),
) -> SlowestEndpointsResponse:
    return await service.slowest_endpoints(scope, filters, limit=limit)


@router.get("/error-rates", response_model=ErrorRatesResponse)
async def get_error_rates(
    filters: EventFilter = Depends(performance_filter),
    scope: AccessScope = Depends(get_scope),
    service: PerformanceQueryService = Depends(get_performance_query_service),
) -> ErrorRatesResponse:
    return await service.error_rates(scope, filters)


@router.get("/system-resources", response_model=SystemResourcesResponse)
async def get_system_resources(
    filters: EventFilter = Depends(performance_filter),
    scope: AccessScope = Depends(get_scope),
    service: PerformanceQueryService = Depends(get_performance_query_service),
) -> SystemResourcesResponse:
    """Hourly CPU, memory and disk averages/maxima from stored samples."""
    return await service.system_resources(scope, filters)


@router.get("/current-system", response_model=CurrentSystemResponse)
async def get_current_system(
    scope: AccessScope = Depends(get_scope),
    service: PerformanceQueryService = Depends(get_performance_query_service),
) -> CurrentSystemResponse:
    """Live reading of this host's resource usage."""
    return await service.current_system()


@router.get("/admin/stats", response_model=PerformanceAdminStatsResponse)
async def get_performance_admin_stats(
    filters: EventFilter = Depends(performance_filter),
    scope: AccessScope = Depends(get_scope),
    service: PerformanceQueryService = Depends(get_performance_query_service),
) -> PerformanceAdminStatsResponse:
    return await service.admin_stats(scope, filters)


@router.get("/admin/alerts", response_model=AlertsResponse)
async def get_performance_alerts(
    error_rate_threshold: float | None = Query(None, alias="errorRateThreshold", ge=0, le=100),
    response_time_threshold: float | None = Query(None, alias="responseTimeThreshold", ge=0),
    filters: EventFilter = Depends(performance_filter),
    scope: AccessScope = Depends(get_scope),
    service: PerformanceQueryService = Depends(get_performance_query_service),
) -> AlertsResponse:
    """Endpoints whose error rate or p95 response time crosses a threshold."""
    return await service.alerts(
        scope,
        filters,
        error_rate_threshold=error_rate_threshold,
        response_time_threshold=response_time_threshold,
    )
