"""Abstract repository interfaces (ports) for the four event domains."""

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from metrics_service.domain.entities import (
    AIRequest,
    EngagementEvent,
    EventFilter,
    PerformanceSample,
    SalesTransaction,
)

E = TypeVar("E")


class EventRepository(ABC, Generic[E]):
    """Port for event persistence, implemented in the infrastructure layer.

    Implementations translate store-level duplicate-key failures into
    ``ConflictError`` and any other store failure into ``UpstreamError``.
    """

    #: Dimension names accepted in ``EventFilter.dimensions``.
    dimensions: frozenset[str] = frozenset()

    @abstractmethod
    async def exists(self, natural_key: str) -> bool:
        """Return True if a record with this natural key is stored."""
        ...

    @abstractmethod
    async def create(self, event: E) -> E:
        """Durably persist a new record and return it with its sequence id."""
        ...

    @abstractmethod
    async def find(
        self,
        event_filter: EventFilter,
        *,
        newest_first: bool = False,
        skip: int = 0,
        limit: int | None = None,
    ) -> list[E]:
        """Return matching records.

        Default ordering is timestamp ascending, ties by insertion order.
        """
        ...

    @abstractmethod
    async def count(self, event_filter: EventFilter) -> int:
        """Count matching records."""
        ...


class AIRequestRepository(EventRepository[AIRequest]):
    dimensions = frozenset({"model", "status", "feature", "userPlan"})

    @abstractmethod
    async def get_owned(self, request_id: str, user_id: str) -> AIRequest | None:
        """Retrieve a request only if it belongs to ``user_id``."""
        ...

    @abstractmethod
    async def update(self, request: AIRequest) -> AIRequest:
        """Re-save a mutated request."""
        ...


class EngagementEventRepository(EventRepository[EngagementEvent]):
    dimensions = frozenset({"event", "feature", "userPlan", "sessionId"})


class SalesTransactionRepository(EventRepository[SalesTransaction]):
    dimensions = frozenset({"type", "status", "plan", "paymentMethod", "currency"})

    @abstractmethod
    async def get_owned(
        self, transaction_id: str, user_id: str
    ) -> SalesTransaction | None:
        """Retrieve a transaction only if it belongs to ``user_id``."""
        ...

    @abstractmethod
    async def update(self, transaction: SalesTransaction) -> SalesTransaction:
        """Re-save a mutated transaction as a whole."""
        ...


class PerformanceSampleRepository(EventRepository[PerformanceSample]):
    dimensions = frozenset({"service", "endpoint", "method", "statusCode"})
