"""Shared fixtures: in-memory repositories, a fixed clock and a fresh registry."""

import copy
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

import pytest

from metrics_service.application.interfaces import (
    AIRequestRepository,
    EngagementEventRepository,
    PerformanceSampleRepository,
    SalesTransactionRepository,
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
from metrics_service.domain.entities import (
    AccessScope,
    CapacityUsage,
    CpuUsage,
    EventFilter,
    SystemUsage,
)
from metrics_service.domain.exceptions import ConflictError
from metrics_service.infrastructure.metrics.live_metrics import RegistryLiveMetrics
from metrics_service.infrastructure.metrics.registry import MetricsRegistry


def _enum_value(value: Any) -> Any:
    return getattr(value, "value", value)


class _InMemoryStore:
    """Mimics the SQL repositories: ordered by timestamp, then insertion."""

    natural_key: str
    getters: dict[str, Callable[[Any], Any]] = {}
    entity_name: str

    def __init__(self):
        self.records: list[Any] = []
        self._next_id = 1

    def _matches(self, record: Any, event_filter: EventFilter) -> bool:
        if event_filter.start_date is not None and record.timestamp < event_filter.start_date:
            return False
        if event_filter.end_date is not None and record.timestamp > event_filter.end_date:
            return False
        if event_filter.user_id is not None and record.user_id != event_filter.user_id:
            return False
        for name, value in event_filter.dimensions.items():
            if _enum_value(self.getters[name](record)) != value:
                return False
        return True

    async def exists(self, natural_key: str) -> bool:
        return any(getattr(r, self.natural_key) == natural_key for r in self.records)

    async def create(self, event):
        key = getattr(event, self.natural_key)
        if await self.exists(key):
            raise ConflictError(self.entity_name, self.natural_key, key)
        stored = copy.deepcopy(event)
        stored.id = self._next_id
        self._next_id += 1
        self.records.append(stored)
        return copy.deepcopy(stored)

    async def find(self, event_filter, *, newest_first=False, skip=0, limit=None):
        rows = [r for r in self.records if self._matches(r, event_filter)]
        rows.sort(key=lambda r: (r.timestamp, r.id), reverse=newest_first)
        rows = rows[skip:]
        if limit is not None:
            rows = rows[:limit]
        return [copy.deepcopy(r) for r in rows]

    async def count(self, event_filter) -> int:
        return sum(1 for r in self.records if self._matches(r, event_filter))

    async def get_owned(self, natural_key: str, user_id: str):
        for record in self.records:
            if getattr(record, self.natural_key) == natural_key and record.user_id == user_id:
                return copy.deepcopy(record)
        return None

    async def update(self, event):
        for index, record in enumerate(self.records):
            if record.id == event.id:
                self.records[index] = copy.deepcopy(event)
                return copy.deepcopy(event)
        raise AssertionError(f"update of unknown record {event.id}")


class FakeAIRequestRepository(_InMemoryStore, AIRequestRepository):
    natural_key = "request_id"
    entity_name = "AIRequest"
    getters = {
        "model": lambda r: r.model,
        "status": lambda r: r.status,
        "feature": lambda r: r.feature,
        "userPlan": lambda r: r.user_plan,
    }


class FakeEngagementEventRepository(_InMemoryStore, EngagementEventRepository):
    natural_key = "event_id"
    entity_name = "EngagementEvent"
    getters = {
        "event": lambda r: r.event,
        "feature": lambda r: r.feature,
        "userPlan": lambda r: r.user_plan,
        "sessionId": lambda r: r.session_id,
    }


class FakeSalesTransactionRepository(_InMemoryStore, SalesTransactionRepository):
    natural_key = "transaction_id"
    entity_name = "SalesTransaction"
    getters = {
        "type": lambda r: r.type,
        "status": lambda r: r.status,
        "plan": lambda r: r.plan,
        "paymentMethod": lambda r: r.payment_method,
        "currency": lambda r: r.currency,
    }


class FakePerformanceSampleRepository(_InMemoryStore, PerformanceSampleRepository):
    natural_key = "request_id"
    entity_name = "PerformanceSample"
    getters = {
        "service": lambda r: r.service,
        "endpoint": lambda r: r.endpoint,
        "method": lambda r: r.method,
        "statusCode": lambda r: r.status_code,
    }


class StaticSystemMonitor(SystemMonitor):
    def current(self) -> SystemUsage:
        return SystemUsage(
            cpu=CpuUsage(usage=12.5, load=[0.5, 0.4, 0.3]),
            memory=CapacityUsage(used=2048, total=8192, percentage=25.0),
            disk=CapacityUsage(used=50, total=200, percentage=25.0),
        )


class SteppingClock:
    """Deterministic clock; every call returns the current instant."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> SteppingClock:
    return SteppingClock(datetime(2024, 5, 15, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def registry() -> MetricsRegistry:
    return MetricsRegistry()


@pytest.fixture
def live_metrics(registry: MetricsRegistry) -> RegistryLiveMetrics:
    return RegistryLiveMetrics(registry)


@pytest.fixture
def repositories():
    return {
        "ai": FakeAIRequestRepository(),
        "engagement": FakeEngagementEventRepository(),
        "sales": FakeSalesTransactionRepository(),
        "performance": FakePerformanceSampleRepository(),
    }


@pytest.fixture
def resolver() -> AccessScopeResolver:
    return AccessScopeResolver(admin_role="admin")


@pytest.fixture
def ingestion(repositories, live_metrics, clock) -> IngestionService:
    return IngestionService(
        ai_requests=repositories["ai"],
        engagement_events=repositories["engagement"],
        sales_transactions=repositories["sales"],
        performance_samples=repositories["performance"],
        live_metrics=live_metrics,
        clock=clock,
    )


@pytest.fixture
def ai_queries(repositories, resolver) -> AIRequestQueryService:
    return AIRequestQueryService(repositories["ai"], resolver)


@pytest.fixture
def engagement_queries(repositories, resolver) -> EngagementQueryService:
    return EngagementQueryService(repositories["engagement"], resolver)


@pytest.fixture
def sales_queries(repositories, resolver, clock) -> SalesQueryService:
    return SalesQueryService(repositories["sales"], resolver, clock=clock)


@pytest.fixture
def performance_queries(repositories, resolver, clock) -> PerformanceQueryService:
    return PerformanceQueryService(
        repositories["performance"], resolver, StaticSystemMonitor(), clock=clock
    )


@pytest.fixture
def overview(
    ai_queries, engagement_queries, sales_queries, performance_queries, resolver, clock
) -> MetricsOverviewService:
    return MetricsOverviewService(
        ai_queries,
        engagement_queries,
        sales_queries,
        performance_queries,
        resolver,
        clock=clock,
    )


@pytest.fixture
def alice() -> AccessScope:
    return AccessScope(user_id="alice")


@pytest.fixture
def bob() -> AccessScope:
    return AccessScope(user_id="bob")


@pytest.fixture
def admin() -> AccessScope:
    return AccessScope(user_id="root", elevated=True)
