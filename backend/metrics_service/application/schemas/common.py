"""Shared DTO building blocks."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from metrics_service.domain.entities import EventFilter


class ApiModel(BaseModel):
    """Base DTO: snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        protected_namespaces=(),
        allow_inf_nan=False,
    )


class AppliedFilters(ApiModel):
    """Echo of the effective filter set after scope narrowing."""

    start_date: datetime | None = None
    end_date: datetime | None = None
    user_id: str | None = None
    dimensions: dict[str, Any] = {}

    @classmethod
    def of(cls, event_filter: EventFilter) -> "AppliedFilters":
        return cls(
            start_date=event_filter.start_date,
            end_date=event_filter.end_date,
            user_id=event_filter.user_id,
            dimensions=dict(event_filter.dimensions),
        )


class DateRange(ApiModel):
    start_date: datetime | None = None
    end_date: datetime | None = None


class Pagination(ApiModel):
    page: int
    limit: int
    total: int
    pages: int
