from .common import DeviceType, EventDomain, UserPlan
from .ai_request import (
    AIFeature,
    AIModel,
    AIRequest,
    AIRequestContext,
    AIRequestStatus,
    Complexity,
    RequestError,
    RequestTiming,
    TokenUsage,
)
from .engagement_event import (
    EngagementContext,
    EngagementEvent,
    EngagementEventType,
    EngagementFeature,
)
from .sales_transaction import (
    PaymentMethod,
    RefundDetails,
    SalesContext,
    SalesTransaction,
    SubscriptionDetails,
    SubscriptionInterval,
    TransactionSource,
    TransactionStatus,
    TransactionType,
)
from .performance_sample import (
    CacheUsage,
    CapacityUsage,
    ConnectionPool,
    CpuUsage,
    DatabaseUsage,
    HttpMethod,
    PerformanceContext,
    PerformanceSample,
    ServiceName,
    SystemUsage,
)
from .query import AccessScope, Caller, EventFilter, TimeBucket

__all__ = [
    "DeviceType",
    "EventDomain",
    "UserPlan",
    "AIFeature",
    "AIModel",
    "AIRequest",
    "AIRequestContext",
    "AIRequestStatus",
    "Complexity",
    "RequestError",
    "RequestTiming",
    "TokenUsage",
    "EngagementContext",
    "EngagementEvent",
    "EngagementEventType",
    "EngagementFeature",
    "PaymentMethod",
    "RefundDetails",
    "SalesContext",
    "SalesTransaction",
    "SubscriptionDetails",
    "SubscriptionInterval",
    "TransactionSource",
    "TransactionStatus",
    "TransactionType",
    "CacheUsage",
    "CapacityUsage",
    "ConnectionPool",
    "CpuUsage",
    "DatabaseUsage",
    "HttpMethod",
    "PerformanceContext",
    "PerformanceSample",
    "ServiceName",
    "SystemUsage",
    "AccessScope",
    "Caller",
    "EventFilter",
    "TimeBucket",
]
