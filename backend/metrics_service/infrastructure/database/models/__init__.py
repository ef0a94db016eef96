from .ai_request import AIRequestModel
from .engagement_event import EngagementEventModel
from .sales_transaction import SalesTransactionModel
from .performance_sample import PerformanceSampleModel

__all__ = [
    "AIRequestModel",
    "EngagementEventModel",
    "SalesTransactionModel",
    "PerformanceSampleModel",
]
