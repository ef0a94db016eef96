"""Read-side aggregates over tracked AI requests."""

import logging
import math

from metrics_service.application.interfaces import AIRequestRepository
from metrics_service.application.schemas import (
    AIAdminStatsResponse,
    AIRequestHistory,
    AIRequestStats,
    AIRequestSummary,
    AISeriesPoint,
    AIStatsResponse,
    AppliedFilters,
    FeatureBreakdown,
    ModelBreakdown,
    Pagination,
    TopAIModel,
)
from metrics_service.application.services import aggregation as agg
from metrics_service.application.services.scope_resolver import AccessScopeResolver
from metrics_service.domain.entities import (
    AccessScope,
    AIRequest,
    AIRequestStatus,
    EventFilter,
    TimeBucket,
)
from metrics_service.domain.exceptions import ValidationError

logger = logging.getLogger(__name__)

MAX_HISTORY_LIMIT = 100


def summarize(requests: list[AIRequest]) -> AIRequestStats:
    total = len(requests)
    if total == 0:
        return AIRequestStats()
    durations = [r.timing.duration for r in requests]
    success = sum(1 for r in requests if r.status == AIRequestStatus.COMPLETED)
    total_cost = sum(r.cost for r in requests)
    return AIRequestStats(
        total_requests=total,
        total_tokens=sum(r.tokens.total for r in requests),
        total_cost=total_cost,
        avg_cost=agg.safe_ratio(total_cost, total),
        avg_duration=agg.mean(durations),
        min_duration=agg.minimum(durations),
        max_duration=agg.maximum(durations),
        success_count=success,
        failure_count=sum(1 for r in requests if r.status == AIRequestStatus.FAILED),
        success_rate=agg.safe_ratio(success, total, 100),
    )


class AIRequestQueryService:
    """Stats, history, distributions and series for AI requests."""

    def __init__(self, repository: AIRequestRepository, scope_resolver: AccessScopeResolver):
        self._repository = repository
        self._scopes = scope_resolver

    async def _matching(self, scope: AccessScope, event_filter: EventFilter) -> tuple[EventFilter, list[AIRequest]]:
        agg.check_dimensions(event_filter, self._repository.dimensions)
        narrowed = self._scopes.narrow(scope, event_filter)
        records = await self._repository.find(narrowed)
        logger.debug("AI request query matched %d records (%s)", len(records), narrowed)
        return narrowed, records

    async def stats_row(self, scope: AccessScope, event_filter: EventFilter) -> AIRequestStats:
        _, records = await self._matching(scope, event_filter)
        return await agg.offload(summarize, records)

    async def stats(self, scope: AccessScope, event_filter: EventFilter) -> AIStatsResponse:
        narrowed, records = await self._matching(scope, event_filter)
        return AIStatsResponse(
            stats=await agg.offload(summarize, records), filters=AppliedFilters.of(narrowed)
        )

    async def admin_stats(self, scope: AccessScope, event_filter: EventFilter) -> AIAdminStatsResponse:
        self._scopes.require_elevated(scope, "AI request admin stats")
        narrowed, records = await self._matching(scope, event_filter)

        def build() -> AIAdminStatsResponse:
            models = [
                ModelBreakdown(
                    model=model,
                    count=len(group),
                    avg_duration=agg.mean(r.timing.duration for r in group),
                    total_cost=sum(r.cost for r in group),
                )
                for model, group in agg.group_by(records, lambda r: r.model.value).items()
            ]
            features = [
                FeatureBreakdown(
                    feature=feature,
                    count=len(group),
                    avg_duration=agg.mean(r.timing.duration for r in group),
                )
                for feature, group in agg.group_by(records, lambda r: r.feature.value).items()
            ]
            return AIAdminStatsResponse(
                stats=summarize(records),
                model_distribution=agg.rank(models, lambda m: m.count),
                feature_distribution=agg.rank(features, lambda f: f.count),
                filters=AppliedFilters.of(narrowed),
            )

        return await agg.offload(build)

    async def history(
        self,
        scope: AccessScope,
        event_filter: EventFilter,
        page: int = 1,
        limit: int = 20,
    ) -> AIRequestHistory:
        """Newest-first page of the caller's requests, without prompt or response."""
        if page < 1:
            raise ValidationError.for_field("page", "Page must be a positive integer")
        agg.validate_limit(limit, MAX_HISTORY_LIMIT)
        agg.check_dimensions(event_filter, self._repository.dimensions)

        narrowed = self._scopes.narrow(scope, event_filter)
        records = await self._repository.find(
            narrowed, newest_first=True, skip=(page - 1) * limit, limit=limit
        )
        total = await self._repository.count(narrowed)
        return AIRequestHistory(
            requests=[AIRequestSummary.of(r) for r in records],
            pagination=Pagination(
                page=page,
                limit=limit,
                total=total,
                pages=math.ceil(total / limit),
            ),
        )

    async def series(
        self, scope: AccessScope, event_filter: EventFilter, bucket: TimeBucket
    ) -> list[AISeriesPoint]:
        _, records = await self._matching(scope, event_filter)

        def build() -> list[AISeriesPoint]:
            groups = agg.group_by(records, lambda r: agg.bucket_start(r.timestamp, bucket))
            return [
                AISeriesPoint(
                    bucket=start,
                    count=len(group),
                    total_cost=sum(r.cost for r in group),
                    avg_duration=agg.mean(r.timing.duration for r in group),
                )
                for start, group in sorted(groups.items(), key=lambda item: item[0])
            ]

        return await agg.offload(build)

    async def top_models(
        self, scope: AccessScope, event_filter: EventFilter, limit: int
    ) -> list[TopAIModel]:
        agg.validate_limit(limit)
        _, records = await self._matching(scope, event_filter)

        def build() -> list[TopAIModel]:
            rows = [
                TopAIModel(
                    model=model,
                    count=len(group),
                    avg_duration=agg.mean(r.timing.duration for r in group),
                    total_cost=sum(r.cost for r in group),
                )
                for model, group in agg.group_by(records, lambda r: r.model.value).items()
            ]
            return agg.top_n(rows, lambda row: row.count, limit)

        return await agg.offload(build)
