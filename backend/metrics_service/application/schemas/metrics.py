"""Pydantic DTOs for cross-domain views: dashboard, series, rankings, comparison."""

from datetime import datetime
from enum import Enum
from typing import Any

from metrics_service.application.schemas.common import ApiModel, DateRange
from metrics_service.domain.entities import TimeBucket


class TopMetric(str, Enum):
    AI_MODELS = "ai-models"
    FEATURES = "features"
    ENDPOINTS = "endpoints"
    USERS = "users"
    REVENUE = "revenue"


class ComparisonMetric(str, Enum):
    AI_REQUESTS = "ai-requests"
    ENGAGEMENT = "engagement"
    SALES = "sales"
    PERFORMANCE = "performance"


# -- Dashboard ---------------------------------------------------------------


class AIRequestKpis(ApiModel):
    total: int = 0
    success_rate: float = 0.0
    avg_response_time: float = 0.0
    total_cost: float = 0.0


class EngagementKpis(ApiModel):
    total_events: int = 0
    unique_users: int = 0
    avg_time_on_page: float = 0.0
    session_count: int = 0


class PerformanceKpis(ApiModel):
    avg_response_time: float = 0.0
    error_rate: float = 0.0
    total_requests: int = 0


class SalesKpis(ApiModel):
    total_revenue: float = 0.0
    total_transactions: int = 0
    avg_transaction_value: float = 0.0
    success_rate: float = 0.0


class DashboardKpis(ApiModel):
    ai_requests: AIRequestKpis
    user_engagement: EngagementKpis
    performance: PerformanceKpis
    sales: SalesKpis


class DashboardResponse(ApiModel):
    kpis: DashboardKpis
    date_range: DateRange
    is_admin: bool


# -- Time series -------------------------------------------------------------


class AISeriesPoint(ApiModel):
    bucket: datetime
    count: int
    total_cost: float
    avg_duration: float


class EngagementSeriesPoint(ApiModel):
    bucket: datetime
    events: int
    unique_users: int


class TimeSeriesData(ApiModel):
    ai_requests: list[AISeriesPoint]
    engagement: list[EngagementSeriesPoint]


class SummaryResponse(ApiModel):
    time_series_data: TimeSeriesData
    date_range: DateRange
    group_by: TimeBucket


# -- Top-N -------------------------------------------------------------------


class TopAIModel(ApiModel):
    model: str
    count: int
    avg_duration: float
    total_cost: float


class TopFeature(ApiModel):
    feature: str
    count: int
    unique_users: int


class TopEndpoint(ApiModel):
    service: str
    endpoint: str
    method: str
    count: int
    avg_response_time: float
    error_count: int
    error_rate: float


class TopUser(ApiModel):
    user_id: str
    event_count: int
    last_activity: datetime


class TopRevenue(ApiModel):
    user_id: str
    total_revenue: float
    transaction_count: int


TopMetricEntry = TopAIModel | TopFeature | TopEndpoint | TopUser | TopRevenue


class TopMetricsResponse(ApiModel):
    metric: TopMetric
    top_metrics: list[TopMetricEntry]
    limit: int


# -- Period comparison -------------------------------------------------------


class ComparisonPeriods(ApiModel):
    current: DateRange
    previous: DateRange


class ComparisonResponse(ApiModel):
    """Both stats rows plus the percentage change of every shared numeric field."""

    metric: ComparisonMetric
    current: dict[str, Any]
    previous: dict[str, Any]
    comparison: dict[str, float]
    periods: ComparisonPeriods
