"""Abstract interface for the process-local live metrics fan-out."""

from abc import ABC, abstractmethod

from metrics_service.domain.entities import (
    AIRequest,
    EngagementEvent,
    PerformanceSample,
    SalesTransaction,
)


class LiveMetrics(ABC):
    """Port: one call per successful durable write, never on failure."""

    @abstractmethod
    def record_ai_request_created(self, request: AIRequest) -> None: ...

    @abstractmethod
    def record_ai_request_updated(
        self, request: AIRequest, *, newly_completed: bool
    ) -> None: ...

    @abstractmethod
    def record_engagement(self, event: EngagementEvent) -> None: ...

    @abstractmethod
    def record_sales_transaction(
        self, transaction: SalesTransaction, *, newly_completed: bool
    ) -> None: ...

    @abstractmethod
    def record_performance_sample(self, sample: PerformanceSample) -> None: ...
