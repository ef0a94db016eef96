"""Unit tests for the in-process metrics registry and its live-metrics adapter."""

import math
import threading

import pytest

from metrics_service.domain.entities import (
    AIModel,
    AIRequest,
    AIRequestStatus,
    CacheUsage,
    ConnectionPool,
    DatabaseUsage,
    EngagementEvent,
    EngagementEventType,
    HttpMethod,
    PerformanceSample,
    SalesTransaction,
    ServiceName,
    TokenUsage,
    TransactionStatus,
    TransactionType,
)
from metrics_service.infrastructure.metrics.live_metrics import RegistryLiveMetrics
from metrics_service.infrastructure.metrics.process_metrics import ProcessMetrics
from metrics_service.infrastructure.metrics.registry import MetricsRegistry


# ── Registry ──


def test_counter_increments_per_label_set(registry: MetricsRegistry):
    counter = registry.counter("jobs_total", "Jobs", ("kind",))
    counter.inc({"kind": "a"})
    counter.inc({"kind": "a"}, 2)
    counter.inc({"kind": "b"})

    assert counter.value({"kind": "a"}) == 3
    assert counter.value({"kind": "b"}) == 1
    assert counter.value({"kind": "c"}) == 0


def test_counter_rejects_negative_increment(registry: MetricsRegistry):
    counter = registry.counter("jobs_total", "Jobs")
    with pytest.raises(ValueError):
        counter.inc(amount=-1)


def test_unknown_label_is_rejected(registry: MetricsRegistry):
    counter = registry.counter("jobs_total", "Jobs", ("kind",))
    with pytest.raises(ValueError):
        counter.inc({"flavour": "x"})


def test_gauge_is_last_write_wins(registry: MetricsRegistry):
    gauge = registry.gauge("temperature", "Temperature", ("room",))
    gauge.set(20, {"room": "lab"})
    gauge.set(18.5, {"room": "lab"})
    assert gauge.value({"room": "lab"}) == 18.5
    assert gauge.value({"room": "hall"}) is None


def test_histogram_buckets_are_cumulative(registry: MetricsRegistry):
    histogram = registry.histogram("latency_seconds", "Latency", (), (0.1, 1, 10))
    for value in (0.05, 0.5, 0.7, 5, 50):
        histogram.observe(value)

    snapshot = histogram.value()
    assert snapshot.count == 5
    assert snapshot.sum == pytest.approx(56.25)
    assert snapshot.buckets == ((0.1, 1), (1.0, 3), (10.0, 4), (math.inf, 5))


def test_reregistering_returns_existing_metric(registry: MetricsRegistry):
    first = registry.counter("jobs_total", "Jobs", ("kind",))
    second = registry.counter("jobs_total", "Jobs", ("kind",))
    assert first is second


def test_reregistering_with_different_shape_fails(registry: MetricsRegistry):
    registry.counter("jobs_total", "Jobs", ("kind",))
    with pytest.raises(ValueError):
        registry.gauge("jobs_total", "Jobs", ("kind",))


def test_registries_are_isolated():
    one, two = MetricsRegistry(), MetricsRegistry()
    one.counter("jobs_total", "Jobs").inc()
    assert two.get("jobs_total") is None


def test_concurrent_increments_are_not_lost(registry: MetricsRegistry):
    counter = registry.counter("hits_total", "Hits")

    def work():
        for _ in range(1000):
            counter.inc()

    threads = [threading.Thread(target=work) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert counter.value() == 8000


def test_render_text_exposition(registry: MetricsRegistry):
    registry.counter("jobs_total", "Jobs done", ("kind",)).inc({"kind": "a"})
    registry.histogram("latency_seconds", "Latency", (), (1,)).observe(0.5)

    text = registry.render_text()

    assert "# HELP jobs_total Jobs done" in text
    assert "# TYPE jobs_total counter" in text
    assert 'jobs_total{kind="a"} 1.0' in text
    assert "# TYPE latency_seconds histogram" in text
    assert 'latency_seconds_bucket{le="1.0"} 1' in text
    assert 'latency_seconds_bucket{le="+Inf"} 1' in text
    assert "latency_seconds_sum 0.5" in text
    assert "latency_seconds_count 1" in text
    assert text.endswith("\n")


def test_snapshot_is_a_copy(registry: MetricsRegistry):
    counter = registry.counter("jobs_total", "Jobs")
    counter.inc()
    before = registry.snapshot()
    counter.inc()

    assert [s.value for s in before] == [1.0]
    assert [s.value for s in registry.snapshot()] == [2.0]


# ── Live metrics fan-out ──


def _completed_request() -> AIRequest:
    request = AIRequest(request_id="r1", user_id="u1", model=AIModel.GPT_4, prompt="hi")
    request.status = AIRequestStatus.COMPLETED
    request.tokens = TokenUsage(input=100, output=50)
    request.cost = 0.25
    request.timing.duration = 1500
    return request


def test_ai_completion_records_duration_tokens_and_cost(live_metrics: RegistryLiveMetrics):
    live_metrics.record_ai_request_updated(_completed_request(), newly_completed=True)

    base = {"model": "gpt-4", "user_plan": "free"}
    assert live_metrics.ai_tokens.value({**base, "type": "input"}) == 100
    assert live_metrics.ai_tokens.value({**base, "type": "output"}) == 50
    assert live_metrics.ai_cost.value(base) == 0.25
    duration = live_metrics.ai_duration.value({**base, "feature": "other"})
    assert duration.count == 1
    assert duration.sum == 1.5


def test_ai_update_without_completion_only_counts(live_metrics: RegistryLiveMetrics):
    live_metrics.record_ai_request_updated(_completed_request(), newly_completed=False)

    assert live_metrics.ai_requests.value({
        "model": "gpt-4", "status": "completed", "feature": "other", "user_plan": "free",
    }) == 1
    assert live_metrics.ai_cost.value({"model": "gpt-4", "user_plan": "free"}) == 0


def test_engagement_without_feature_uses_none_label(live_metrics: RegistryLiveMetrics):
    event = EngagementEvent(user_id="u1", session_id="s1", event=EngagementEventType.LOGIN)
    live_metrics.record_engagement(event)

    assert live_metrics.engagement_events.value({
        "event": "login", "feature": "none", "user_plan": "free", "device_type": "desktop",
    }) == 1


def test_revenue_only_grows_for_completed_positive_amounts(live_metrics: RegistryLiveMetrics):
    sale = SalesTransaction(
        transaction_id="t1",
        user_id="u1",
        type=TransactionType.ONE_TIME,
        amount=40,
        status=TransactionStatus.COMPLETED,
    )
    refund = SalesTransaction(
        transaction_id="t2",
        user_id="u1",
        type=TransactionType.REFUND,
        amount=-40,
        status=TransactionStatus.COMPLETED,
    )
    live_metrics.record_sales_transaction(sale, newly_completed=True)
    live_metrics.record_sales_transaction(refund, newly_completed=True)

    assert live_metrics.sales_revenue.value(
        {"type": "one_time", "plan": "free", "currency": "USD"}
    ) == 40
    assert live_metrics.sales_revenue.value(
        {"type": "refund", "plan": "free", "currency": "USD"}
    ) == 0
    assert live_metrics.sales_transactions.value({
        "type": "refund", "status": "completed", "plan": "free", "payment_method": "unknown",
    }) == 1


def test_performance_sample_updates_http_and_resource_metrics(live_metrics: RegistryLiveMetrics):
    sample = PerformanceSample(
        request_id="p1",
        service=ServiceName.AUTH,
        endpoint="/login",
        method=HttpMethod.POST,
        status_code=200,
        response_time=250,
        database=DatabaseUsage(connection_pool=ConnectionPool(active=3, idle=7, total=10)),
        cache=CacheUsage(hit_rate=87.5),
    )
    live_metrics.record_performance_sample(sample)

    labels = {"service": "auth", "endpoint": "/login", "method": "POST", "status_code": "200"}
    assert live_metrics.http_requests.value(labels) == 1
    assert live_metrics.http_duration.value(labels).sum == 0.25
    assert live_metrics.connection_pool.value({"service": "auth", "state": "idle"}) == 7
    assert live_metrics.cache_hit_rate.value({"service": "auth", "cache_type": "redis"}) == 87.5
    assert live_metrics.cpu_usage.value({"service": "auth"}) is None


# ── Process metrics ──


def test_process_metrics_refresh_at_collection(registry):
    now = [1_000.0]
    process = ProcessMetrics(registry, wall_clock=lambda: now[0])

    process.collect()
    first_cpu = process.cpu_seconds.value()
    now[0] += 42.5
    process.collect()

    assert process.start_time.value() == 1_000.0
    assert process.uptime.value() == 42.5
    assert process.cpu_seconds.value() >= first_cpu >= 0
    assert "# TYPE process_resident_memory_bytes gauge" in registry.render_text()
