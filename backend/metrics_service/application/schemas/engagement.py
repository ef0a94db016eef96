"""Pydantic DTOs for user-engagement tracking."""

from datetime import datetime

from pydantic import Field, field_validator

from metrics_service.application.schemas.common import ApiModel, AppliedFilters
from metrics_service.domain.entities import (
    DeviceType,
    EngagementEvent,
    EngagementEventType,
    EngagementFeature,
)

MAX_PROPERTIES = 50
MAX_PROPERTY_KEY_LENGTH = 64
MAX_PROPERTY_STRING_LENGTH = 1024


class EngagementCreate(ApiModel):
    """Payload for tracking an engagement event."""

    event: EngagementEventType
    session_id: str = Field(..., min_length=1, max_length=255)
    page: str | None = Field(None, max_length=2048)
    feature: EngagementFeature | None = None
    value: float = 0.0
    properties: dict[str, str | int | float | bool | None] = Field(default_factory=dict)

    @field_validator("properties", mode="before")
    @classmethod
    def _flat_primitive_properties(cls, value):
        """Properties are an open map of primitives, bounded in size."""
        if value is None:
            return {}
        if not isinstance(value, dict):
            raise ValueError("properties must be an object")
        if len(value) > MAX_PROPERTIES:
            raise ValueError(f"properties may hold at most {MAX_PROPERTIES} keys")
        for key, item in value.items():
            if len(str(key)) > MAX_PROPERTY_KEY_LENGTH:
                raise ValueError(
                    f"property key '{str(key)[:20]}...' exceeds {MAX_PROPERTY_KEY_LENGTH} characters"
                )
            if isinstance(item, (dict, list, tuple, set)):
                raise ValueError(f"property '{key}' must be a primitive value")
            if isinstance(item, str) and len(item) > MAX_PROPERTY_STRING_LENGTH:
                raise ValueError(
                    f"property '{key}' exceeds {MAX_PROPERTY_STRING_LENGTH} characters"
                )
        return value


class EngagementTracked(ApiModel):
    message: str = "Engagement event tracked successfully"
    event_id: str


class EngagementStats(ApiModel):
    total_events: int = 0
    unique_users: int = 0
    unique_sessions: int = 0
    total_value: float = 0.0
    avg_time_on_page: float = 0.0
    avg_scroll_depth: float = 0.0


class EventBreakdown(ApiModel):
    event: str
    count: int
    unique_users: int


class PlanActivity(ApiModel):
    plan: str
    total_events: int
    unique_users: int
    avg_time_on_page: float


class JourneyStep(ApiModel):
    event_id: str
    event: EngagementEventType
    feature: EngagementFeature | None = None
    page: str | None = None
    device_type: DeviceType
    browser: str
    os: str
    timestamp: datetime

    @classmethod
    def of(cls, event: EngagementEvent) -> "JourneyStep":
        return cls(
            event_id=event.event_id,
            event=event.event,
            feature=event.feature,
            page=event.page,
            device_type=event.context.device_type,
            browser=event.context.browser,
            os=event.context.os,
            timestamp=event.timestamp,
        )


class UserJourney(ApiModel):
    journey: list[JourneyStep]
    user_id: str


class EngagementStatsResponse(ApiModel):
    stats: EngagementStats
    event_distribution: list[EventBreakdown]
    filters: AppliedFilters


class EngagementAdminStatsResponse(EngagementStatsResponse):
    activity_by_plan: list[PlanActivity]
