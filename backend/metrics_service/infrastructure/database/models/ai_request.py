"""SQLAlchemy ORM model for tracked AI requests."""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Float, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from metrics_service.infrastructure.database.base import Base


class AIRequestModel(Base):
    """ORM model; maps to the 'ai_requests' table."""

    __tablename__ = "ai_requests"
    __table_args__ = (
        Index("ix_ai_requests_user_timestamp", "user_id", "timestamp"),
        Index("ix_ai_requests_model_timestamp", "model", "timestamp"),
        Index("ix_ai_requests_status_timestamp", "status", "timestamp"),
        Index("ix_ai_requests_feature_timestamp", "feature", "timestamp"),
        Index("ix_ai_requests_plan_timestamp", "user_plan", "timestamp"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    request_id: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    model: Mapped[str] = mapped_column(String(50), nullable=False)
    prompt: Mapped[str] = mapped_column(Text, nullable=False)
    response: Mapped[str | None] = mapped_column(Text, nullable=True)
    feature: Mapped[str] = mapped_column(String(50), nullable=False)
    complexity: Mapped[str] = mapped_column(String(20), nullable=False)
    language: Mapped[str] = mapped_column(String(10), default="en", nullable=False)
    user_plan: Mapped[str] = mapped_column(String(20), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    input_tokens: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    output_tokens: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_tokens: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    cost: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    error: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    start_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    end_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    duration: Mapped[int | None] = mapped_column(Integer, nullable=True)  # ms
    context: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True
    )
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:
        return (
            f"<AIRequestModel(id={self.id}, request_id='{self.request_id}', "
            f"model='{self.model}', status='{self.status}')>"
        )
