"""Per-domain retention horizons."""

from dataclasses import dataclass
from datetime import datetime, timedelta

from metrics_service.domain.entities.common import EventDomain


@dataclass(frozen=True)
class RetentionPolicy:
    """How many days each domain's records live before the store purges them.

    AI requests share the engagement horizon.
    """

    engagement_days: int = 90
    sales_days: int = 365
    performance_days: int = 30

    def __post_init__(self) -> None:
        for name in ("engagement_days", "sales_days", "performance_days"):
            if getattr(self, name) < 1:
                raise ValueError(f"{name} must be at least 1 day")

    def horizon_days(self, domain: EventDomain) -> int:
        if domain == EventDomain.SALES:
            return self.sales_days
        if domain == EventDomain.PERFORMANCE:
            return self.performance_days
        return self.engagement_days

    def horizon(self, domain: EventDomain) -> timedelta:
        return timedelta(days=self.horizon_days(domain))

    def cutoff(self, domain: EventDomain, now: datetime) -> datetime:
        """Records with a timestamp strictly before this instant are expired."""
        return now - self.horizon(domain)
