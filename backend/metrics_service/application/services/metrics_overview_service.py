"""Cross-domain views built on the per-domain query services."""

import logging
from datetime import datetime, timedelta

from metrics_service.application.schemas import (
    AIRequestKpis,
    ComparisonMetric,
    ComparisonPeriods,
    ComparisonResponse,
    DashboardKpis,
    DashboardResponse,
    DateRange,
    EngagementKpis,
    PerformanceKpis,
    SalesKpis,
    SummaryResponse,
    TimeSeriesData,
    TopMetric,
    TopMetricsResponse,
)
from metrics_service.application.services import aggregation as agg
from metrics_service.application.services.ai_request_query_service import AIRequestQueryService
from metrics_service.application.services.engagement_query_service import EngagementQueryService
from metrics_service.application.services.performance_query_service import PerformanceQueryService
from metrics_service.application.services.sales_query_service import SalesQueryService
from metrics_service.application.services.scope_resolver import AccessScopeResolver
from metrics_service.domain.clock import Clock, utc_now
from metrics_service.domain.entities import AccessScope, EventFilter, TimeBucket
from metrics_service.domain.exceptions import ValidationError

logger = logging.getLogger(__name__)


class MetricsOverviewService:
    """Dashboard KPIs, time series, top-N rankings and period comparison."""

    def __init__(
        self,
        ai_requests: AIRequestQueryService,
        engagement: EngagementQueryService,
        sales: SalesQueryService,
        performance: PerformanceQueryService,
        scope_resolver: AccessScopeResolver,
        *,
        dashboard_window_days: int = 30,
        clock: Clock = utc_now,
    ):
        self._ai_requests = ai_requests
        self._engagement = engagement
        self._sales = sales
        self._performance = performance
        self._scopes = scope_resolver
        self._window = timedelta(days=dashboard_window_days)
        self._clock = clock

    async def dashboard(self, scope: AccessScope) -> DashboardResponse:
        end = self._clock()
        start = end - self._window
        window = EventFilter(start_date=start, end_date=end)

        ai = await self._ai_requests.stats_row(scope, window)
        engagement = await self._engagement.stats_row(scope, window)
        performance = await self._performance.stats_row(scope, window)
        sales = await self._sales.stats_row(scope, window)

        kpis = DashboardKpis(
            ai_requests=AIRequestKpis(
                total=ai.total_requests,
                success_rate=ai.success_rate,
                avg_response_time=ai.avg_duration,
                total_cost=ai.total_cost,
            ),
            user_engagement=EngagementKpis(
                total_events=engagement.total_events,
                unique_users=engagement.unique_users,
                avg_time_on_page=engagement.avg_time_on_page,
                session_count=engagement.unique_sessions,
            ),
            performance=PerformanceKpis(
                avg_response_time=performance.avg_response_time,
                error_rate=performance.error_rate,
                total_requests=performance.total_requests,
            ),
            sales=SalesKpis(
                total_revenue=sales.total_revenue,
                total_transactions=sales.total_transactions,
                avg_transaction_value=sales.avg_transaction_value,
                success_rate=agg.safe_ratio(
                    sales.successful_transactions, sales.total_transactions, 100
                ),
            ),
        )
        return DashboardResponse(
            kpis=kpis,
            date_range=DateRange(start_date=start, end_date=end),
            is_admin=scope.elevated,
        )

    async def summary(
        self,
        scope: AccessScope,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        group_by: TimeBucket = TimeBucket.DAY,
    ) -> SummaryResponse:
        """AI and engagement series; the window defaults to the last 30 days."""
        end = end_date or self._clock()
        start = start_date or end - self._window
        window = EventFilter(start_date=start, end_date=end)
        return SummaryResponse(
            time_series_data=TimeSeriesData(
                ai_requests=await self._ai_requests.series(scope, window, group_by),
                engagement=await self._engagement.series(scope, window, group_by),
            ),
            date_range=DateRange(start_date=window.start_date, end_date=window.end_date),
            group_by=group_by,
        )

    async def top_metrics(
        self, scope: AccessScope, metric: TopMetric, limit: int = 10
    ) -> TopMetricsResponse:
        agg.validate_limit(limit)
        everything = EventFilter()
        if metric == TopMetric.AI_MODELS:
            rows = await self._ai_requests.top_models(scope, everything, limit)
        elif metric == TopMetric.FEATURES:
            rows = await self._engagement.top_features(scope, everything, limit)
        elif metric == TopMetric.ENDPOINTS:
            rows = await self._performance.top_endpoints(scope, everything, limit)
        elif metric == TopMetric.USERS:
            rows = await self._engagement.top_users(scope, everything, limit)
        else:
            rows = await self._sales.top_revenue(scope, everything, limit)
        return TopMetricsResponse(metric=metric, top_metrics=rows, limit=limit)

    async def comparison(
        self,
        scope: AccessScope,
        metric: ComparisonMetric,
        current: DateRange,
        previous: DateRange,
    ) -> ComparisonResponse:
        """Run one domain's stats over two windows and diff every numeric field."""
        for name, period in (("current", current), ("previous", previous)):
            if period.start_date and period.end_date and period.start_date > period.end_date:
                raise ValidationError.for_field(
                    f"{name}Start", "Period start must not be after its end"
                )
        if metric == ComparisonMetric.SALES:
            self._scopes.require_elevated(scope, "sales metrics")

        stats_row = {
            ComparisonMetric.AI_REQUESTS: self._ai_requests.stats_row,
            ComparisonMetric.ENGAGEMENT: self._engagement.stats_row,
            ComparisonMetric.SALES: self._sales.stats_row,
            ComparisonMetric.PERFORMANCE: self._performance.stats_row,
        }[metric]

        current_row = await stats_row(
            scope, EventFilter(start_date=current.start_date, end_date=current.end_date)
        )
        previous_row = await stats_row(
            scope, EventFilter(start_date=previous.start_date, end_date=previous.end_date)
        )
        current_data = current_row.model_dump(by_alias=True)
        previous_data = previous_row.model_dump(by_alias=True)
        logger.debug("Comparison %s computed for %s", metric.value, scope.user_id)
        return ComparisonResponse(
            metric=metric,
            current=current_data,
            previous=previous_data,
            comparison=agg.compare_numeric(current_data, previous_data),
            periods=ComparisonPeriods(current=current, previous=previous),
        )
