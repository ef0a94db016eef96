from .common import ApiModel, AppliedFilters, DateRange, Pagination
from .ai_request import (
    AIAdminStatsResponse,
    AIRequestCreate,
    AIRequestHistory,
    AIRequestStats,
    AIRequestSummary,
    AIRequestTracked,
    AIRequestUpdate,
    AIRequestUpdated,
    AIStatsResponse,
    FeatureBreakdown,
    ModelBreakdown,
    RequestErrorSchema,
    TokenUsageSchema,
)
from .engagement import (
    EngagementAdminStatsResponse,
    EngagementCreate,
    EngagementStats,
    EngagementStatsResponse,
    EngagementTracked,
    EventBreakdown,
    JourneyStep,
    PlanActivity,
    UserJourney,
)
from .sales import (
    CustomerLifetimeValue,
    PaymentMethodBreakdown,
    PlanRevenue,
    RecurringRevenue,
    RefundSchema,
    SalesAdminStatsResponse,
    SalesStats,
    SalesStatsResponse,
    SalesTransactionCreate,
    SalesTransactionTracked,
    SalesTransactionUpdate,
    SalesTransactionUpdated,
    SubscriptionSchema,
)
from .performance import (
    AlertsResponse,
    AlertThresholds,
    CacheSchema,
    CurrentSystemResponse,
    DatabaseSchema,
    EndpointAlert,
    EndpointErrorRate,
    EndpointRanking,
    ErrorRatesResponse,
    PerformanceAdminStatsResponse,
    PerformanceSampleCreate,
    PerformanceSampleTracked,
    PerformanceStats,
    PerformanceStatsResponse,
    ServicePerformance,
    SlowestEndpointsResponse,
    StatusCodeCount,
    SystemResourceBucket,
    SystemResourcesResponse,
    SystemSchema,
)
from .metrics import (
    AIRequestKpis,
    EngagementKpis,
    PerformanceKpis,
    SalesKpis,
    AISeriesPoint,
    ComparisonMetric,
    ComparisonPeriods,
    ComparisonResponse,
    DashboardKpis,
    DashboardResponse,
    EngagementSeriesPoint,
    SummaryResponse,
    TimeSeriesData,
    TopAIModel,
    TopEndpoint,
    TopFeature,
    TopMetric,
    TopMetricsResponse,
    TopRevenue,
    TopUser,
)

__all__ = [
    "ApiModel",
    "AppliedFilters",
    "DateRange",
    "Pagination",
    "AIAdminStatsResponse",
    "AIRequestCreate",
    "AIRequestHistory",
    "AIRequestStats",
    "AIRequestSummary",
    "AIRequestTracked",
    "AIRequestUpdate",
    "AIRequestUpdated",
    "AIStatsResponse",
    "FeatureBreakdown",
    "ModelBreakdown",
    "RequestErrorSchema",
    "TokenUsageSchema",
    "EngagementAdminStatsResponse",
    "EngagementCreate",
    "EngagementStats",
    "EngagementStatsResponse",
    "EngagementTracked",
    "EventBreakdown",
    "JourneyStep",
    "PlanActivity",
    "UserJourney",
    "CustomerLifetimeValue",
    "PaymentMethodBreakdown",
    "PlanRevenue",
    "RecurringRevenue",
    "RefundSchema",
    "SalesAdminStatsResponse",
    "SalesStats",
    "SalesStatsResponse",
    "SalesTransactionCreate",
    "SalesTransactionTracked",
    "SalesTransactionUpdate",
    "SalesTransactionUpdated",
    "SubscriptionSchema",
    "AlertsResponse",
    "AlertThresholds",
    "CacheSchema",
    "CurrentSystemResponse",
    "DatabaseSchema",
    "EndpointAlert",
    "EndpointErrorRate",
    "EndpointRanking",
    "ErrorRatesResponse",
    "PerformanceAdminStatsResponse",
    "PerformanceSampleCreate",
    "PerformanceSampleTracked",
    "PerformanceStats",
    "PerformanceStatsResponse",
    "ServicePerformance",
    "SlowestEndpointsResponse",
    "StatusCodeCount",
    "SystemResourceBucket",
    "SystemResourcesResponse",
    "SystemSchema",
    "AIRequestKpis",
    "EngagementKpis",
    "PerformanceKpis",
    "SalesKpis",
    "AISeriesPoint",
    "ComparisonMetric",
    "ComparisonPeriods",
    "ComparisonResponse",
    "DashboardKpis",
    "DashboardResponse",
    "EngagementSeriesPoint",
    "SummaryResponse",
    "TimeSeriesData",
    "TopAIModel",
    "TopEndpoint",
    "TopFeature",
    "TopMetric",
    "TopMetricsResponse",
    "TopRevenue",
    "TopUser",
]
