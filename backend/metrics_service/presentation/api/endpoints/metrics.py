"""Cross-domain dashboard, series, ranking and comparison endpoints."""

from fastapi import APIRouter, Depends, Query

from metrics_service.application.schemas import (
    ComparisonMetric,
    ComparisonResponse,
    DashboardResponse,
    DateRange,
    SummaryResponse,
    TopMetric,
    TopMetricsResponse,
)
from metrics_service.application.services import MetricsOverviewService
from metrics_service.domain.entities import AccessScope, TimeBucket
from metrics_service.infrastructure.dependencies import get_metrics_overview_service, get_scope
from metrics_service.presentation.api.request_context import parse_datetime_param

router = APIRouter(prefix="/metrics", tags=["Metrics"])


@router.get("/dashboard", response_model=DashboardResponse)
async def get_dashboard(
    scope: AccessScope = Depends(get_scope),
    service: MetricsOverviewService = Depends(get_metrics_overview_service),
) -> DashboardResponse:
    """KPIs for the last dashboard window; standard callers see only their own data."""
    return await service.dashboard(scope)


@router.get("/summary", response_model=SummaryResponse)
async def get_summary(
    start_date: str | None = Query(None, alias="startDate"),
    end_date: str | None = Query(None, alias="endDate"),
    group_by: TimeBucket = Query(TimeBucket.DAY, alias="groupBy"),
    scope: AccessScope = Depends(get_scope),
    service: MetricsOverviewService = Depends(get_metrics_overview_service),
) -> SummaryResponse:
    return await service.summary(
        scope,
        start_date=parse_datetime_param("startDate", start_date),
        end_date=parse_datetime_param("endDate", end_date),
        group_by=group_by,
    )


@router.get("/top-metrics", response_model=TopMetricsResponse)
async def get_top_metrics(
    metric: TopMetric = Query(...),
    limit: int = Query(10),
    scope: AccessScope = Depends(get_scope),
    service: MetricsOverviewService = Depends(get_metrics_overview_service),
) -> TopMetricsResponse:
    """Top-N ranking; ``users`` and ``revenue`` need admin privileges."""
    return await service.top_metrics(scope, metric, limit=limit)


@router.get("/comparison", response_model=ComparisonResponse)
async def get_comparison(
    metric: ComparisonMetric = Query(...),
    current_start: str | None = Query(None, alias="currentStart"),
    current_end: str | None = Query(None, alias="currentEnd"),
    previous_start: str | None = Query(None, alias="previousStart"),
    previous_end: str | None = Query(None, alias="previousEnd"),
    scope: AccessScope = Depends(get_scope),
    service: MetricsOverviewService = Depends(get_metrics_overview_service),
) -> ComparisonResponse:
    """Percentage change of every numeric stat between two periods."""
    current = DateRange(
        start_date=parse_datetime_param("currentStart", current_start),
        end_date=parse_datetime_param("currentEnd", current_end),
    )
    previous = DateRange(
        start_date=parse_datetime_param("previousStart", previous_start),
        end_date=parse_datetime_param("previousEnd", previous_end),
    )
    return await service.comparison(scope, metric, current, previous)
