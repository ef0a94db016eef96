"""Registry-backed implementation of the LiveMetrics port."""

from metrics_service.application.interfaces import LiveMetrics
from metrics_service.domain.entities import (
    AIRequest,
    EngagementEvent,
    PerformanceSample,
    SalesTransaction,
)
from metrics_service.infrastructure.metrics.registry import MetricsRegistry

AI_DURATION_BUCKETS = (0.1, 0.5, 1, 2, 5, 10, 30, 60)
HTTP_DURATION_BUCKETS = (0.01, 0.05, 0.1, 0.5, 1, 2, 5, 10)

_HTTP_LABELS = ("service", "endpoint", "method", "status_code")


class RegistryLiveMetrics(LiveMetrics):
    """Registers the per-domain metric families and updates them per write."""

    def __init__(self, registry: MetricsRegistry):
        self.registry = registry

        self.ai_requests = registry.counter(
            "ai_requests_total",
            "Total number of AI requests",
            ("model", "status", "feature", "user_plan"),
        )
        self.ai_duration = registry.histogram(
            "ai_request_duration_seconds",
            "Duration of AI requests in seconds",
            ("model", "feature", "user_plan"),
            AI_DURATION_BUCKETS,
        )
        self.ai_tokens = registry.counter(
            "ai_request_tokens_total",
            "Total tokens used in AI requests",
            ("model", "type", "user_plan"),
        )
        self.ai_cost = registry.counter(
            "ai_request_cost_total",
            "Total cost of AI requests",
            ("model", "user_plan"),
        )

        self.engagement_events = registry.counter(
            "user_engagement_events_total",
            "Total number of user engagement events",
            ("event", "feature", "user_plan", "device_type"),
        )

        self.sales_transactions = registry.counter(
            "sales_transactions_total",
            "Total number of sales transactions",
            ("type", "status", "plan", "payment_method"),
        )
        self.sales_revenue = registry.counter(
            "sales_revenue_total",
            "Total revenue from sales",
            ("type", "plan", "currency"),
        )

        self.http_duration = registry.histogram(
            "http_request_duration_seconds",
            "Duration of HTTP requests in seconds",
            _HTTP_LABELS,
            HTTP_DURATION_BUCKETS,
        )
        self.http_requests = registry.counter(
            "http_requests_total",
            "Total number of HTTP requests",
            _HTTP_LABELS,
        )
        self.cpu_usage = registry.gauge(
            "system_cpu_usage_percentage", "CPU usage percentage", ("service",)
        )
        self.memory_usage = registry.gauge(
            "system_memory_usage_percentage", "Memory usage percentage", ("service",)
        )
        self.disk_usage = registry.gauge(
            "system_disk_usage_percentage", "Disk usage percentage", ("service",)
        )
        self.connection_pool = registry.gauge(
            "database_connection_pool",
            "Database connection pool status",
            ("service", "state"),
        )
        self.cache_hit_rate = registry.gauge(
            "cache_hit_rate_percentage",
            "Cache hit rate percentage",
            ("service", "cache_type"),
        )

    # -- AI requests ---------------------------------------------------------

    def _count_ai_request(self, request: AIRequest) -> None:
        self.ai_requests.inc({
            "model": request.model.value,
            "status": request.status.value,
            "feature": request.feature.value,
            "user_plan": request.user_plan.value,
        })

    def record_ai_request_created(self, request: AIRequest) -> None:
        self._count_ai_request(request)

    def record_ai_request_updated(self, request: AIRequest, *, newly_completed: bool) -> None:
        self._count_ai_request(request)
        if not newly_completed:
            return

        model, plan = request.model.value, request.user_plan.value
        if request.timing.duration is not None:
            self.ai_duration.observe(
                request.timing.duration / 1000,
                {"model": model, "feature": request.feature.value, "user_plan": plan},
            )
        if request.tokens.input:
            self.ai_tokens.inc({"model": model, "type": "input", "user_plan": plan}, request.tokens.input)
        if request.tokens.output:
            self.ai_tokens.inc({"model": model, "type": "output", "user_plan": plan}, request.tokens.output)
        if request.cost:
            self.ai_cost.inc({"model": model, "user_plan": plan}, request.cost)

    # -- Engagement ----------------------------------------------------------

    def record_engagement(self, event: EngagementEvent) -> None:
        self.engagement_events.inc({
            "event": event.event.value,
            "feature": event.feature.value if event.feature else "none",
            "user_plan": event.user_plan.value,
            "device_type": event.context.device_type.value,
        })

    # -- Sales ---------------------------------------------------------------

    def record_sales_transaction(
        self, transaction: SalesTransaction, *, newly_completed: bool
    ) -> None:
        self.sales_transactions.inc({
            "type": transaction.type.value,
            "status": transaction.status.value,
            "plan": transaction.plan.value,
            "payment_method": (
                transaction.payment_method.value if transaction.payment_method else "unknown"
            ),
        })
        # Refunds and debits can carry negative amounts; revenue only grows.
        if newly_completed and transaction.amount > 0:
            self.sales_revenue.inc(
                {
                    "type": transaction.type.value,
                    "plan": transaction.plan.value,
                    "currency": transaction.currency,
                },
                transaction.amount,
            )

    # -- Performance ---------------------------------------------------------

    def record_performance_sample(self, sample: PerformanceSample) -> None:
        labels = {
            "service": sample.service.value,
            "endpoint": sample.endpoint,
            "method": sample.method.value,
            "status_code": str(sample.status_code),
        }
        self.http_requests.inc(labels)
        self.http_duration.observe(sample.response_time / 1000, labels)

        service = {"service": sample.service.value}
        if sample.cpu_usage is not None:
            self.cpu_usage.set(sample.cpu_usage, service)
        if sample.memory_usage is not None:
            self.memory_usage.set(sample.memory_usage, service)
        if sample.disk_usage is not None:
            self.disk_usage.set(sample.disk_usage, service)

        pool = sample.database.connection_pool if sample.database else None
        if pool is not None:
            for state in ("active", "idle", "total"):
                value = getattr(pool, state)
                if value is not None:
                    self.connection_pool.set(value, {**service, "state": state})

        if sample.cache is not None and sample.cache.hit_rate is not None:
            self.cache_hit_rate.set(sample.cache.hit_rate, {**service, "cache_type": "redis"})
