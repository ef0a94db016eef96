"""AI request tracking endpoints."""

from fastapi import APIRouter, Depends, Query, Request, status

from metrics_service.application.interfaces import AIRequestRepository
from metrics_service.application.schemas import (
    AIAdminStatsResponse,
    AIRequestCreate,
    AIRequestHistory,
    AIRequestTracked,
    AIRequestUpdate,
    AIRequestUpdated,
    AIStatsResponse,
)
from metrics_service.application.services import (
    AIRequestQueryService,
    IngestionService,
)
from metrics_service.domain.entities import AccessScope, EventFilter
from metrics_service.infrastructure.dependencies import (
    get_ai_request_query_service,
    get_ingestion_service,
    get_scope,
)
from metrics_service.presentation.api.request_context import event_filter, request_metadata

router = APIRouter(prefix="/ai-tracking", tags=["AI Tracking"])

ai_request_filter = event_filter(AIRequestRepository.dimensions)


@router.post("/track", response_model=AIRequestTracked, status_code=status.HTTP_201_CREATED)
async def track_ai_request(
    data: AIRequestCreate,
    request: Request,
    scope: AccessScope = Depends(get_scope),
    service: IngestionService = Depends(get_ingestion_service),
) -> AIRequestTracked:
    """Record a new AI request; the clock starts now."""
    request_id = await service.track_ai_request(scope, data, request_metadata(request))
    return AIRequestTracked(request_id=request_id)


@router.put("/update/{request_id}", response_model=AIRequestUpdated)
async def update_ai_request(
    request_id: str,
    data: AIRequestUpdate,
    scope: AccessScope = Depends(get_scope),
    service: IngestionService = Depends(get_ingestion_service),
) -> AIRequestUpdated:
    """Apply a status change, tokens, cost, response or error to an owned request."""
    saved = await service.update_ai_request(scope, request_id, data)
    return AIRequestUpdated(request_id=saved.request_id, status=saved.status)


@router.get("/stats", response_model=AIStatsResponse)
async def get_ai_stats(
    filters: EventFilter = Depends(ai_request_filter),
    scope: AccessScope = Depends(get_scope),
    service: AIRequestQueryService = Depends(get_ai_request_query_service),
) -> AIStatsResponse:
    return await service.stats(scope, filters)


@router.get("/history", response_model=AIRequestHistory)
async def get_ai_history(
    page: int = Query(1),
    limit: int = Query(20),
    filters: EventFilter = Depends(ai_request_filter),
    scope: AccessScope = Depends(get_scope),
    service: AIRequestQueryService = Depends(get_ai_request_query_service),
) -> AIRequestHistory:
    """Newest-first paginated history. Prompts and responses are omitted."""
    return await service.history(scope, filters, page=page, limit=limit)


@router.get("/admin/stats", response_model=AIAdminStatsResponse)
async def get_ai_admin_stats(
    filters: EventFilter = Depends(ai_request_filter),
    scope: AccessScope = Depends(get_scope),
    service: AIRequestQueryService = Depends(get_ai_request_query_service),
) -> AIAdminStatsResponse:
    """Stats plus model and feature distributions across all users."""
    return await service.admin_stats(scope, filters)
