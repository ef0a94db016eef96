"""SQLAlchemy ORM model for HTTP performance samples."""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Float, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from metrics_service.infrastructure.database.base import Base


class PerformanceSampleModel(Base):
    """ORM model; maps to the 'performance_samples' table. Write-once."""

    __tablename__ = "performance_samples"
    __table_args__ = (
        Index("ix_performance_samples_user_timestamp", "user_id", "timestamp"),
        Index("ix_performance_samples_service_timestamp", "service", "timestamp"),
        Index("ix_performance_samples_endpoint_timestamp", "endpoint", "timestamp"),
        Index("ix_performance_samples_status_timestamp", "status_code", "timestamp"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    request_id: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    user_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    service: Mapped[str] = mapped_column(String(30), nullable=False)
    endpoint: Mapped[str] = mapped_column(String(2048), nullable=False)
    method: Mapped[str] = mapped_column(String(10), nullable=False)
    status_code: Mapped[int] = mapped_column(Integer, nullable=False)
    response_time: Mapped[float] = mapped_column(Float, nullable=False)  # ms
    request_size: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    response_size: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    error: Mapped[str | None] = mapped_column(Text, nullable=True)
    system: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    database: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    cache: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    context: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True
    )

    def __repr__(self) -> str:
        return (
            f"<PerformanceSampleModel(id={self.id}, request_id='{self.request_id}', "
            f"{self.method} {self.endpoint} -> {self.status_code})>"
        )
