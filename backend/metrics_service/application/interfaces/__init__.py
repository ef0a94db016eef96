from .event_repository import (
    AIRequestRepository,
    EngagementEventRepository,
    EventRepository,
    PerformanceSampleRepository,
    SalesTransactionRepository,
)
from .identity_provider import IdentityProvider
from .live_metrics import LiveMetrics
from .system_monitor import SystemMonitor

__all__ = [
    "AIRequestRepository",
    "EngagementEventRepository",
    "EventRepository",
    "PerformanceSampleRepository",
    "SalesTransactionRepository",
    "IdentityProvider",
    "LiveMetrics",
    "SystemMonitor",
]
