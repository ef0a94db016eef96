"""Domain entities for aggregate queries: filter sets, scopes and buckets."""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any

from metrics_service.domain.clock import as_utc


class TimeBucket(str, Enum):
    """Granularity for time-bucketed series."""

    HOUR = "hour"
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


@dataclass(frozen=True)
class Caller:
    """Verified identity returned by the external auth service."""

    id: str
    role: str = "user"
    plan: str = "free"
    email: str | None = None
    name: str | None = None


@dataclass(frozen=True)
class AccessScope:
    """Actor restriction merged into every query and write.

    ``elevated`` scopes see every actor; standard scopes only ``user_id``.
    """

    user_id: str
    elevated: bool = False


@dataclass(frozen=True)
class EventFilter:
    """Declarative filter set shared by every aggregate query.

    Date bounds are inclusive on the record's primary timestamp. Dimension
    filters are exact-match only.
    """

    start_date: datetime | None = None
    end_date: datetime | None = None
    user_id: str | None = None
    dimensions: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.start_date is not None:
            object.__setattr__(self, "start_date", as_utc(self.start_date))
        if self.end_date is not None:
            object.__setattr__(self, "end_date", as_utc(self.end_date))
        cleaned = {
            key: value.value if isinstance(value, Enum) else value
            for key, value in self.dimensions.items()
            if value is not None
        }
        object.__setattr__(self, "dimensions", cleaned)

    def with_user(self, user_id: str | None) -> "EventFilter":
        return replace(self, user_id=user_id)

    def with_range(
        self, start_date: datetime | None, end_date: datetime | None
    ) -> "EventFilter":
        return replace(self, start_date=start_date, end_date=end_date)

    def with_dimensions(self, **dimensions: Any) -> "EventFilter":
        return replace(self, dimensions={**self.dimensions, **dimensions})
