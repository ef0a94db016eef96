"""Read-side aggregates over HTTP performance samples.

Samples are grouped by ``(service, endpoint, method)`` for rankings; a
sample is an error when its status code is 400 or above.
"""

import logging
from dataclasses import dataclass

from metrics_service.application.interfaces import PerformanceSampleRepository, SystemMonitor
from metrics_service.application.schemas import (
    AlertsResponse,
    AlertThresholds,
    AppliedFilters,
    CurrentSystemResponse,
    EndpointAlert,
    EndpointErrorRate,
    EndpointRanking,
    ErrorRatesResponse,
    PerformanceAdminStatsResponse,
    PerformanceStats,
    PerformanceStatsResponse,
    ServicePerformance,
    SlowestEndpointsResponse,
    StatusCodeCount,
    SystemResourceBucket,
    SystemResourcesResponse,
    SystemSchema,
    TopEndpoint,
)
from metrics_service.application.services import aggregation as agg
from metrics_service.application.services.scope_resolver import AccessScopeResolver
from metrics_service.domain.clock import Clock, utc_now
from metrics_service.domain.entities import (
    AccessScope,
    EventFilter,
    PerformanceSample,
    TimeBucket,
)

logger = logging.getLogger(__name__)

DEFAULT_ERROR_RATE_THRESHOLD = 5.0
DEFAULT_RESPONSE_TIME_THRESHOLD = 2000.0


def _endpoint_key(sample: PerformanceSample) -> tuple[str, str, str]:
    return sample.service.value, sample.endpoint, sample.method.value


@dataclass(frozen=True)
class EndpointGroup:
    """Per-endpoint figures computed in one pass over its samples."""

    service: str
    endpoint: str
    method: str
    total_requests: int
    error_count: int
    avg_response_time: float
    p95_response_time: float
    status_counts: dict[int, int]

    @property
    def error_rate(self) -> float:
        return agg.safe_ratio(self.error_count, self.total_requests, 100)

    @classmethod
    def of(cls, key: tuple[str, str, str], samples: list[PerformanceSample]) -> "EndpointGroup":
        service, endpoint, method = key
        times = [s.response_time for s in samples]
        status_counts: dict[int, int] = {}
        for sample in samples:
            status_counts[sample.status_code] = status_counts.get(sample.status_code, 0) + 1
        return cls(
            service=service,
            endpoint=endpoint,
            method=method,
            total_requests=len(samples),
            error_count=sum(1 for s in samples if s.is_error),
            avg_response_time=agg.mean(times),
            p95_response_time=agg.percentile(times, 95),
            status_counts=status_counts,
        )


def endpoint_groups(samples: list[PerformanceSample]) -> list[EndpointGroup]:
    return [
        EndpointGroup.of(key, group)
        for key, group in agg.group_by(samples, _endpoint_key).items()
    ]


def summarize(samples: list[PerformanceSample]) -> PerformanceStats:
    total = len(samples)
    if total == 0:
        return PerformanceStats()
    times = [s.response_time for s in samples]
    errors = sum(1 for s in samples if s.is_error)
    return PerformanceStats(
        total_requests=total,
        avg_response_time=agg.mean(times),
        min_response_time=agg.minimum(times),
        max_response_time=agg.maximum(times),
        p95_response_time=agg.percentile(times, 95),
        p99_response_time=agg.percentile(times, 99),
        success_count=total - errors,
        error_count=errors,
        error_rate=agg.safe_ratio(errors, total, 100),
        total_request_size=sum(s.request_size for s in samples),
        total_response_size=sum(s.response_size for s in samples),
        avg_cpu_usage=agg.mean(s.cpu_usage for s in samples),
        avg_memory_usage=agg.mean(s.memory_usage for s in samples),
        avg_disk_usage=agg.mean(s.disk_usage for s in samples),
    )


def slowest_endpoints(samples: list[PerformanceSample], limit: int) -> list[EndpointRanking]:
    rows = [
        EndpointRanking(
            service=g.service,
            endpoint=g.endpoint,
            method=g.method,
            request_count=g.total_requests,
            avg_response_time=g.avg_response_time,
            error_count=g.error_count,
            error_rate=g.error_rate,
        )
        for g in endpoint_groups(samples)
    ]
    return agg.top_n(rows, lambda row: row.avg_response_time, limit)


def error_rates(samples: list[PerformanceSample]) -> list[EndpointErrorRate]:
    rows = [
        EndpointErrorRate(
            service=g.service,
            endpoint=g.endpoint,
            method=g.method,
            total_requests=g.total_requests,
            error_count=g.error_count,
            error_rate=g.error_rate,
            errors=[
                StatusCodeCount(status_code=code, count=count)
                for code, count in g.status_counts.items()
                if code >= 400
            ],
        )
        for g in endpoint_groups(samples)
    ]
    return agg.rank(rows, lambda row: row.error_rate)


def system_resources(samples: list[PerformanceSample]) -> list[SystemResourceBucket]:
    """Hourly CPU, memory and disk usage for samples that carry a system block."""
    with_system = [s for s in samples if s.system is not None]
    groups = agg.group_by(with_system, lambda s: agg.bucket_start(s.timestamp, TimeBucket.HOUR))
    return [
        SystemResourceBucket(
            bucket=start,
            avg_cpu_usage=agg.mean(s.cpu_usage for s in group),
            avg_memory_usage=agg.mean(s.memory_usage for s in group),
            avg_disk_usage=agg.mean(s.disk_usage for s in group),
            max_cpu_usage=agg.maximum(s.cpu_usage for s in group),
            max_memory_usage=agg.maximum(s.memory_usage for s in group),
            max_disk_usage=agg.maximum(s.disk_usage for s in group),
        )
        for start, group in sorted(groups.items(), key=lambda item: item[0])
    ]


def service_performance(samples: list[PerformanceSample]) -> list[ServicePerformance]:
    rows = []
    for service, group in agg.group_by(samples, lambda s: s.service.value).items():
        errors = sum(1 for s in group if s.is_error)
        rows.append(
            ServicePerformance(
                service=service,
                avg_response_time=agg.mean(s.response_time for s in group),
                total_requests=len(group),
                error_count=errors,
                error_rate=agg.safe_ratio(errors, len(group), 100),
                avg_cpu_usage=agg.mean(s.cpu_usage for s in group),
                avg_memory_usage=agg.mean(s.memory_usage for s in group),
            )
        )
    return agg.rank(rows, lambda row: row.avg_response_time)


class PerformanceQueryService:
    def __init__(
        self,
        repository: PerformanceSampleRepository,
        scope_resolver: AccessScopeResolver,
        system_monitor: SystemMonitor,
        *,
        error_rate_threshold: float = DEFAULT_ERROR_RATE_THRESHOLD,
        response_time_threshold: float = DEFAULT_RESPONSE_TIME_THRESHOLD,
        clock: Clock = utc_now,
    ):
        self._repository = repository
        self._scopes = scope_resolver
        self._monitor = system_monitor
        self._error_rate_threshold = error_rate_threshold
        self._response_time_threshold = response_time_threshold
        self._clock = clock

    async def _matching(
        self, scope: AccessScope, event_filter: EventFilter
    ) -> tuple[EventFilter, list[PerformanceSample]]:
        agg.check_dimensions(event_filter, self._repository.dimensions)
        narrowed = self._scopes.narrow(scope, event_filter)
        records = await self._repository.find(narrowed)
        logger.debug("Performance query matched %d records (%s)", len(records), narrowed)
        return narrowed, records

    async def stats_row(self, scope: AccessScope, event_filter: EventFilter) -> PerformanceStats:
        _, records = await self._matching(scope, event_filter)
        return await agg.offload(summarize, records)

    async def stats(self, scope: AccessScope, event_filter: EventFilter) -> PerformanceStatsResponse:
        narrowed, records = await self._matching(scope, event_filter)
        return PerformanceStatsResponse(
            stats=await agg.offload(summarize, records), filters=AppliedFilters.of(narrowed)
        )

    async def slowest_endpoints(
        self, scope: AccessScope, event_filter: EventFilter, limit: int = 10
    ) -> SlowestEndpointsResponse:
        agg.validate_limit(limit)
        narrowed, records = await self._matching(scope, event_filter)
        return SlowestEndpointsResponse(
            slowest_endpoints=await agg.offload(slowest_endpoints, records, limit),
            filters=AppliedFilters.of(narrowed),
        )

    async def error_rates(self, scope: AccessScope, event_filter: EventFilter) -> ErrorRatesResponse:
        narrowed, records = await self._matching(scope, event_filter)
        return ErrorRatesResponse(
            error_rates=await agg.offload(error_rates, records),
            filters=AppliedFilters.of(narrowed),
        )

    async def system_resources(
        self, scope: AccessScope, event_filter: EventFilter
    ) -> SystemResourcesResponse:
        narrowed, records = await self._matching(scope, event_filter)
        return SystemResourcesResponse(
            system_resources=await agg.offload(system_resources, records),
            filters=AppliedFilters.of(narrowed),
        )

    async def current_system(self) -> CurrentSystemResponse:
        usage = self._monitor.current()
        return CurrentSystemResponse(
            current_metrics=SystemSchema.of(usage), timestamp=self._clock()
        )

    async def admin_stats(
        self, scope: AccessScope, event_filter: EventFilter
    ) -> PerformanceAdminStatsResponse:
        self._scopes.require_elevated(scope, "performance admin stats")
        narrowed, records = await self._matching(scope, event_filter)

        def build() -> PerformanceAdminStatsResponse:
            return PerformanceAdminStatsResponse(
                stats=summarize(records),
                slowest_endpoints=slowest_endpoints(records, agg.MAX_TOP_N),
                error_rates=error_rates(records),
                system_resources=system_resources(records),
                service_performance=service_performance(records),
                filters=AppliedFilters.of(narrowed),
            )

        return await agg.offload(build)

    async def alerts(
        self,
        scope: AccessScope,
        event_filter: EventFilter,
        *,
        error_rate_threshold: float | None = None,
        response_time_threshold: float | None = None,
    ) -> AlertsResponse:
        """Endpoints breaching either threshold.

        A group alerts when its error rate or its p95 response time reaches
        the threshold. Sorted by error rate, then p95 response time, both
        descending.
        """
        self._scopes.require_elevated(scope, "performance alerts")
        error_threshold = (
            self._error_rate_threshold if error_rate_threshold is None else error_rate_threshold
        )
        time_threshold = (
            self._response_time_threshold
            if response_time_threshold is None
            else response_time_threshold
        )
        _, records = await self._matching(scope, event_filter)

        groups = await agg.offload(endpoint_groups, records)
        breaching = [
            g
            for g in groups
            if g.error_rate >= error_threshold or g.p95_response_time >= time_threshold
        ]
        breaching.sort(key=lambda g: (g.error_rate, g.p95_response_time), reverse=True)
        if breaching:
            logger.warning("%d endpoint(s) breaching performance thresholds", len(breaching))

        return AlertsResponse(
            alerts=[
                EndpointAlert(
                    service=g.service,
                    endpoint=g.endpoint,
                    method=g.method,
                    total_requests=g.total_requests,
                    error_count=g.error_count,
                    error_rate=g.error_rate,
                    avg_response_time=g.avg_response_time,
                    p95_response_time=g.p95_response_time,
                )
                for g in breaching
            ],
            thresholds=AlertThresholds(
                error_rate=error_threshold, response_time=time_threshold
            ),
        )

    async def top_endpoints(
        self, scope: AccessScope, event_filter: EventFilter, limit: int
    ) -> list[TopEndpoint]:
        agg.validate_limit(limit)
        _, records = await self._matching(scope, event_filter)
        rows = [
            TopEndpoint(
                service=g.service,
                endpoint=g.endpoint,
                method=g.method,
                count=g.total_requests,
                avg_response_time=g.avg_response_time,
                error_count=g.error_count,
                error_rate=g.error_rate,
            )
            for g in await agg.offload(endpoint_groups, records)
        ]
        return agg.top_n(rows, lambda row: row.count, limit)
