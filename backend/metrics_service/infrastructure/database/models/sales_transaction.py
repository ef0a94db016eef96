"""SQLAlchemy ORM model for sales transactions."""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Float, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from metrics_service.infrastructure.database.base import Base


class SalesTransactionModel(Base):
    """ORM model; maps to the 'sales_transactions' table."""

    __tablename__ = "sales_transactions"
    __table_args__ = (
        Index("ix_sales_transactions_user_timestamp", "user_id", "timestamp"),
        Index("ix_sales_transactions_type_timestamp", "type", "timestamp"),
        Index("ix_sales_transactions_status_timestamp", "status", "timestamp"),
        Index("ix_sales_transactions_plan_timestamp", "plan", "timestamp"),
        Index("ix_sales_transactions_method_timestamp", "payment_method", "timestamp"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    transaction_id: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    amount: Mapped[float] = mapped_column(Float, nullable=False)
    currency: Mapped[str] = mapped_column(String(10), default="USD", nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    payment_method: Mapped[str | None] = mapped_column(String(30), nullable=True)
    plan: Mapped[str] = mapped_column(String(20), nullable=False)
    subscription: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    refund: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    context: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True
    )
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:
        return (
            f"<SalesTransactionModel(id={self.id}, transaction_id='{self.transaction_id}', "
            f"status='{self.status}', amount={self.amount})>"
        )
