from .base import Base
from .session import engine, async_session_factory, get_db_session
from .models import (
    AIRequestModel,
    EngagementEventModel,
    PerformanceSampleModel,
    SalesTransactionModel,
)

__all__ = [
    "Base",
    "engine",
    "async_session_factory",
    "get_db_session",
    "AIRequestModel",
    "EngagementEventModel",
    "PerformanceSampleModel",
    "SalesTransactionModel",
]
