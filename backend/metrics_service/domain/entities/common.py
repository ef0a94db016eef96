"""Enumerations shared by more than one event domain."""

from enum import Enum


class UserPlan(str, Enum):
    """Subscription plan of the acting user at ingest time."""

    FREE = "free"
    BASIC = "basic"
    PREMIUM = "premium"


class DeviceType(str, Enum):
    DESKTOP = "desktop"
    MOBILE = "mobile"
    TABLET = "tablet"


class EventDomain(str, Enum):
    """The four independently-keyed event domains."""

    AI_REQUEST = "ai_request"
    ENGAGEMENT = "engagement"
    SALES = "sales"
    PERFORMANCE = "performance"
