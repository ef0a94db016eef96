"""Engagement and sales analytics endpoints."""

from fastapi import APIRouter, Depends, Query, Request, status

from metrics_service.application.interfaces import (
    EngagementEventRepository,
    SalesTransactionRepository,
)
from metrics_service.application.schemas import (
    EngagementAdminStatsResponse,
    EngagementCreate,
    EngagementStatsResponse,
    EngagementTracked,
    SalesAdminStatsResponse,
    SalesStatsResponse,
    SalesTransactionCreate,
    SalesTransactionTracked,
    SalesTransactionUpdate,
    SalesTransactionUpdated,
    UserJourney,
)
from metrics_service.application.services import (
    EngagementQueryService,
    IngestionService,
    SalesQueryService,
)
from metrics_service.domain.entities import AccessScope, Caller, EventFilter
from metrics_service.infrastructure.dependencies import (
    get_current_caller,
    get_engagement_query_service,
    get_ingestion_service,
    get_sales_query_service,
    get_scope,
)
from metrics_service.presentation.api.request_context import event_filter, request_metadata

router = APIRouter(prefix="/analytics", tags=["Analytics"])

engagement_filter = event_filter(EngagementEventRepository.dimensions)
sales_filter = event_filter(SalesTransactionRepository.dimensions)


# ── Engagement ───────────────────────────────────────────────────────

@router.post(
    "/engagement/track",
    response_model=EngagementTracked,
    status_code=status.HTTP_201_CREATED,
)
async def track_engagement(
    data: EngagementCreate,
    request: Request,
    caller: Caller = Depends(get_current_caller),
    scope: AccessScope = Depends(get_scope),
    service: IngestionService = Depends(get_ingestion_service),
) -> EngagementTracked:
    """Record an engagement event; device, browser and OS come from the User-Agent."""
    event_id = await service.track_engagement(
        scope, caller.plan, data, request_metadata(request)
    )
    return EngagementTracked(event_id=event_id)


@router.get("/engagement/stats", response_model=EngagementStatsResponse)
async def get_engagement_stats(
    filters: EventFilter = Depends(engagement_filter),
    scope: AccessScope = Depends(get_scope),
    service: EngagementQueryService = Depends(get_engagement_query_service),
) -> EngagementStatsResponse:
    return await service.stats(scope, filters)


@router.get("/engagement/journey", response_model=UserJourney)
async def get_user_journey(
    limit: int = Query(50),
    scope: AccessScope = Depends(get_scope),
    service: EngagementQueryService = Depends(get_engagement_query_service),
) -> UserJourney:
    """The caller's own most recent events, newest first."""
    return await service.journey(scope, limit=limit)


@router.get("/admin/engagement/stats", response_model=EngagementAdminStatsResponse)
async def get_engagement_admin_stats(
    filters: EventFilter = Depends(engagement_filter),
    scope: AccessScope = Depends(get_scope),
    service: EngagementQueryService = Depends(get_engagement_query_service),
) -> EngagementAdminStatsResponse:
    return await service.admin_stats(scope, filters)


# ── Sales ────────────────────────────────────────────────────────────

@router.post(
    "/sales/track",
    response_model=SalesTransactionTracked,
    status_code=status.HTTP_201_CREATED,
)
async def track_sales_transaction(
    data: SalesTransactionCreate,
    request: Request,
    scope: AccessScope = Depends(get_scope),
    service: IngestionService = Depends(get_ingestion_service),
) -> SalesTransactionTracked:
    transaction_id = await service.track_sales_transaction(
        scope, data, request_metadata(request)
    )
    return SalesTransactionTracked(transaction_id=transaction_id)


@router.put("/sales/update/{transaction_id}", response_model=SalesTransactionUpdated)
async def update_sales_transaction(
    transaction_id: str,
    data: SalesTransactionUpdate,
    scope: AccessScope = Depends(get_scope),
    service: IngestionService = Depends(get_ingestion_service),
) -> SalesTransactionUpdated:
    """Move an owned transaction through its lifecycle or attach refund details."""
    saved = await service.update_sales_transaction(scope, transaction_id, data)
    return SalesTransactionUpdated(transaction_id=saved.transaction_id, status=saved.status)


@router.get("/sales/stats", response_model=SalesStatsResponse)
async def get_sales_stats(
    filters: EventFilter = Depends(sales_filter),
    scope: AccessScope = Depends(get_scope),
    service: SalesQueryService = Depends(get_sales_query_service),
) -> SalesStatsResponse:
    return await service.stats(scope, filters)


@router.get("/admin/sales/stats", response_model=SalesAdminStatsResponse)
async def get_sales_admin_stats(
    filters: EventFilter = Depends(sales_filter),
    scope: AccessScope = Depends(get_scope),
    service: SalesQueryService = Depends(get_sales_query_service),
) -> SalesAdminStatsResponse:
    """Revenue by plan, payment-method mix and this month's recurring revenue."""
    return await service.admin_stats(scope, filters)
