from .ai_request_repository import SQLAlchemyAIRequestRepository
from .engagement_event_repository import SQLAlchemyEngagementEventRepository
from .sales_transaction_repository import SQLAlchemySalesTransactionRepository
from .performance_sample_repository import SQLAlchemyPerformanceSampleRepository

__all__ = [
    "SQLAlchemyAIRequestRepository",
    "SQLAlchemyEngagementEventRepository",
    "SQLAlchemySalesTransactionRepository",
    "SQLAlchemyPerformanceSampleRepository",
]
