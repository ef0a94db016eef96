"""Domain entity for user-engagement events, an append-only log."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from uuid import uuid4

from metrics_service.domain.clock import utc_now
from metrics_service.domain.entities.common import DeviceType, UserPlan

PropertyValue = str | int | float | bool | None


class EngagementEventType(str, Enum):
    PAGE_VIEW = "page_view"
    FEATURE_USAGE = "feature_usage"
    AI_REQUEST = "ai_request"
    SUBSCRIPTION_UPGRADE = "subscription_upgrade"
    SUBSCRIPTION_DOWNGRADE = "subscription_downgrade"
    PAYMENT_SUCCESS = "payment_success"
    PAYMENT_FAILED = "payment_failed"
    LOGIN = "login"
    LOGOUT = "logout"
    REGISTRATION = "registration"
    PROFILE_UPDATE = "profile_update"
    ARTWORK_UPLOAD = "artwork_upload"
    ARTWORK_ANALYSIS = "artwork_analysis"
    PORTFOLIO_VIEW = "portfolio_view"
    MARKET_ANALYSIS = "market_analysis"
    STYLE_RECOMMENDATION = "style_recommendation"
    SEARCH = "search"
    FILTER = "filter"
    EXPORT = "export"
    SHARE = "share"
    FEEDBACK = "feedback"
    SUPPORT_REQUEST = "support_request"


class EngagementFeature(str, Enum):
    ARTWORK_ANALYSIS = "artwork-analysis"
    STYLE_RECOMMENDATION = "style-recommendation"
    MARKET_ANALYSIS = "market-analysis"
    PORTFOLIO_REVIEW = "portfolio-review"
    AI_CHAT = "ai-chat"
    EXPORT = "export"
    SHARE = "share"
    PREMIUM_FEATURES = "premium-features"


@dataclass
class EngagementContext:
    """Client-side context captured at ingest time."""

    user_agent: str | None = None
    ip_address: str | None = None
    referrer: str | None = None
    utm_source: str | None = None
    utm_medium: str | None = None
    utm_campaign: str | None = None
    device_type: DeviceType = DeviceType.DESKTOP
    browser: str = "Unknown"
    os: str = "Unknown"
    screen_resolution: str | None = None
    time_on_page: int = 0  # seconds
    scroll_depth: int = 0  # percentage
    clicks: int = 0
    form_interactions: int = 0


@dataclass
class EngagementEvent:
    """A single user action. Immutable once written."""

    user_id: str
    session_id: str
    event: EngagementEventType
    page: str | None = None
    feature: EngagementFeature | None = None
    value: float = 0.0
    properties: dict[str, PropertyValue] = field(default_factory=dict)
    user_plan: UserPlan = UserPlan.FREE
    context: EngagementContext = field(default_factory=EngagementContext)
    event_id: str = field(default_factory=lambda: str(uuid4()))
    id: int | None = None
    timestamp: datetime = field(default_factory=utc_now)
