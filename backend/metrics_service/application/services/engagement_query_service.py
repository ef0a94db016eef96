"""Read-side aggregates over engagement events."""

import logging

from metrics_service.application.interfaces import EngagementEventRepository
from metrics_service.application.schemas import (
    AppliedFilters,
    EngagementAdminStatsResponse,
    EngagementSeriesPoint,
    EngagementStats,
    EngagementStatsResponse,
    EventBreakdown,
    JourneyStep,
    PlanActivity,
    TopFeature,
    TopUser,
    UserJourney,
)
from metrics_service.application.services import aggregation as agg
from metrics_service.application.services.scope_resolver import AccessScopeResolver
from metrics_service.domain.entities import (
    AccessScope,
    EngagementEvent,
    EventFilter,
    TimeBucket,
)

logger = logging.getLogger(__name__)

MAX_JOURNEY_LIMIT = 100


def summarize(events: list[EngagementEvent]) -> EngagementStats:
    if not events:
        return EngagementStats()
    return EngagementStats(
        total_events=len(events),
        unique_users=len({e.user_id for e in events}),
        unique_sessions=len({e.session_id for e in events}),
        total_value=sum(e.value for e in events),
        avg_time_on_page=agg.mean(e.context.time_on_page for e in events),
        avg_scroll_depth=agg.mean(e.context.scroll_depth for e in events),
    )


def event_distribution(events: list[EngagementEvent]) -> list[EventBreakdown]:
    rows = [
        EventBreakdown(
            event=name,
            count=len(group),
            unique_users=len({e.user_id for e in group}),
        )
        for name, group in agg.group_by(events, lambda e: e.event.value).items()
    ]
    return agg.rank(rows, lambda row: row.count)


class EngagementQueryService:
    def __init__(
        self,
        repository: EngagementEventRepository,
        scope_resolver: AccessScopeResolver,
    ):
        self._repository = repository
        self._scopes = scope_resolver

    async def _matching(
        self, scope: AccessScope, event_filter: EventFilter
    ) -> tuple[EventFilter, list[EngagementEvent]]:
        agg.check_dimensions(event_filter, self._repository.dimensions)
        narrowed = self._scopes.narrow(scope, event_filter)
        records = await self._repository.find(narrowed)
        logger.debug("Engagement query matched %d records (%s)", len(records), narrowed)
        return narrowed, records

    async def stats_row(self, scope: AccessScope, event_filter: EventFilter) -> EngagementStats:
        _, records = await self._matching(scope, event_filter)
        return await agg.offload(summarize, records)

    async def stats(self, scope: AccessScope, event_filter: EventFilter) -> EngagementStatsResponse:
        narrowed, records = await self._matching(scope, event_filter)
        return EngagementStatsResponse(
            stats=await agg.offload(summarize, records),
            event_distribution=await agg.offload(event_distribution, records),
            filters=AppliedFilters.of(narrowed),
        )

    async def admin_stats(
        self, scope: AccessScope, event_filter: EventFilter
    ) -> EngagementAdminStatsResponse:
        self._scopes.require_elevated(scope, "engagement admin stats")
        narrowed, records = await self._matching(scope, event_filter)

        def build() -> EngagementAdminStatsResponse:
            by_plan = [
                PlanActivity(
                    plan=plan,
                    total_events=len(group),
                    unique_users=len({e.user_id for e in group}),
                    avg_time_on_page=agg.mean(e.context.time_on_page for e in group),
                )
                for plan, group in agg.group_by(records, lambda e: e.user_plan.value).items()
            ]
            return EngagementAdminStatsResponse(
                stats=summarize(records),
                event_distribution=event_distribution(records),
                activity_by_plan=agg.rank(by_plan, lambda row: row.total_events),
                filters=AppliedFilters.of(narrowed),
            )

        return await agg.offload(build)

    async def journey(self, scope: AccessScope, limit: int = 50) -> UserJourney:
        """The caller's own most recent events, newest first."""
        agg.validate_limit(limit, MAX_JOURNEY_LIMIT)
        own = EventFilter(user_id=scope.user_id)
        records = await self._repository.find(own, newest_first=True, limit=limit)
        return UserJourney(
            journey=[JourneyStep.of(e) for e in records],
            user_id=scope.user_id,
        )

    async def series(
        self, scope: AccessScope, event_filter: EventFilter, bucket: TimeBucket
    ) -> list[EngagementSeriesPoint]:
        _, records = await self._matching(scope, event_filter)

        def build() -> list[EngagementSeriesPoint]:
            groups = agg.group_by(records, lambda e: agg.bucket_start(e.timestamp, bucket))
            return [
                EngagementSeriesPoint(
                    bucket=start,
                    events=len(group),
                    unique_users=len({e.user_id for e in group}),
                )
                for start, group in sorted(groups.items(), key=lambda item: item[0])
            ]

        return await agg.offload(build)

    async def top_features(
        self, scope: AccessScope, event_filter: EventFilter, limit: int
    ) -> list[TopFeature]:
        agg.validate_limit(limit)
        _, records = await self._matching(scope, event_filter)

        def build() -> list[TopFeature]:
            with_feature = [e for e in records if e.feature is not None]
            rows = [
                TopFeature(
                    feature=feature,
                    count=len(group),
                    unique_users=len({e.user_id for e in group}),
                )
                for feature, group in agg.group_by(with_feature, lambda e: e.feature.value).items()
            ]
            return agg.top_n(rows, lambda row: row.count, limit)

        return await agg.offload(build)

    async def top_users(
        self, scope: AccessScope, event_filter: EventFilter, limit: int
    ) -> list[TopUser]:
        self._scopes.require_elevated(scope, "user metrics")
        agg.validate_limit(limit)
        _, records = await self._matching(scope, event_filter)

        def build() -> list[TopUser]:
            rows = [
                TopUser(
                    user_id=user_id,
                    event_count=len(group),
                    last_activity=max(e.timestamp for e in group),
                )
                for user_id, group in agg.group_by(records, lambda e: e.user_id).items()
            ]
            return agg.top_n(rows, lambda row: row.event_count, limit)

        return await agg.offload(build)
