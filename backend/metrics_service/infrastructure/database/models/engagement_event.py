"""SQLAlchemy ORM model for user-engagement events."""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Float, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from metrics_service.infrastructure.database.base import Base


class EngagementEventModel(Base):
    """ORM model; maps to the 'engagement_events' table. Rows are never updated."""

    __tablename__ = "engagement_events"
    __table_args__ = (
        Index("ix_engagement_events_user_timestamp", "user_id", "timestamp"),
        Index("ix_engagement_events_event_timestamp", "event", "timestamp"),
        Index("ix_engagement_events_feature_timestamp", "feature", "timestamp"),
        Index("ix_engagement_events_plan_timestamp", "user_plan", "timestamp"),
        Index("ix_engagement_events_session_timestamp", "session_id", "timestamp"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    event_id: Mapped[str] = mapped_column(String(36), nullable=False, unique=True)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    session_id: Mapped[str] = mapped_column(String(255), nullable=False)
    event: Mapped[str] = mapped_column(String(50), nullable=False)
    page: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    feature: Mapped[str | None] = mapped_column(String(50), nullable=True)
    value: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    properties: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)
    user_plan: Mapped[str] = mapped_column(String(20), nullable=False)
    device_type: Mapped[str] = mapped_column(String(20), nullable=False)
    browser: Mapped[str] = mapped_column(String(50), nullable=False)
    os: Mapped[str] = mapped_column(String(50), nullable=False)
    context: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True
    )

    def __repr__(self) -> str:
        return (
            f"<EngagementEventModel(id={self.id}, event_id='{self.event_id}', "
            f"event='{self.event}', user_id='{self.user_id}')>"
        )
