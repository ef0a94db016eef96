from .scope_resolver import AccessScopeResolver
from .ingestion_service import IngestionService, RequestMetadata
from .ai_request_query_service import AIRequestQueryService
from .engagement_query_service import EngagementQueryService
from .sales_query_service import SalesQueryService
from .performance_query_service import PerformanceQueryService
from .metrics_overview_service import MetricsOverviewService

__all__ = [
    "AccessScopeResolver",
    "IngestionService",
    "RequestMetadata",
    "AIRequestQueryService",
    "EngagementQueryService",
    "SalesQueryService",
    "PerformanceQueryService",
    "MetricsOverviewService",
]
