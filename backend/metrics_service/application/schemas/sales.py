"""Pydantic DTOs for sales-transaction tracking."""

from datetime import datetime

from pydantic import Field, field_validator

from metrics_service.application.schemas.common import ApiModel, AppliedFilters
from metrics_service.domain.entities import (
    PaymentMethod,
    SubscriptionInterval,
    TransactionStatus,
    TransactionType,
    UserPlan,
)


class SubscriptionSchema(ApiModel):
    start_date: datetime | None = None
    end_date: datetime | None = None
    interval: SubscriptionInterval = SubscriptionInterval.MONTHLY
    auto_renew: bool = True
    trial_end: datetime | None = None


class RefundSchema(ApiModel):
    amount: float | None = Field(None, ge=0)
    reason: str | None = Field(None, max_length=1000)
    processed_at: datetime | None = None


class SalesTransactionCreate(ApiModel):
    """Payload for tracking a sales transaction."""

    transaction_id: str = Field(..., min_length=1, max_length=255)
    type: TransactionType
    amount: float
    currency: str = Field("USD", min_length=3, max_length=10)
    status: TransactionStatus
    payment_method: PaymentMethod | None = None
    plan: UserPlan = UserPlan.FREE
    subscription: SubscriptionSchema | None = None
    refund: RefundSchema | None = None
    description: str | None = Field(None, max_length=1000)
    invoice_number: str | None = Field(None, max_length=100)

    @field_validator("currency")
    @classmethod
    def _upper_currency(cls, value: str) -> str:
        return value.upper()


class SalesTransactionUpdate(ApiModel):
    """Status change and/or refund details for an existing transaction."""

    status: TransactionStatus | None = None
    refund: RefundSchema | None = None


class SalesTransactionTracked(ApiModel):
    message: str = "Sales transaction tracked successfully"
    transaction_id: str


class SalesTransactionUpdated(ApiModel):
    message: str = "Sales transaction updated successfully"
    transaction_id: str
    status: TransactionStatus


class SalesStats(ApiModel):
    total_transactions: int = 0
    total_revenue: float = 0.0
    avg_transaction_value: float = 0.0
    successful_transactions: int = 0
    failed_transactions: int = 0
    refunded_transactions: int = 0
    total_refunds: float = 0.0


class PlanRevenue(ApiModel):
    plan: str
    total_revenue: float
    transaction_count: int
    avg_transaction_value: float


class PaymentMethodBreakdown(ApiModel):
    payment_method: str | None
    count: int
    total_amount: float
    avg_amount: float


class RecurringRevenue(ApiModel):
    month: str
    mrr: float = 0.0
    subscription_count: int = 0


class CustomerLifetimeValue(ApiModel):
    total_spent: float = 0.0
    transaction_count: int = 0
    avg_order_value: float = 0.0
    first_purchase: datetime | None = None
    last_purchase: datetime | None = None


class SalesStatsResponse(ApiModel):
    stats: SalesStats
    revenue_by_plan: list[PlanRevenue]
    customer_lifetime_value: CustomerLifetimeValue
    filters: AppliedFilters


class SalesAdminStatsResponse(ApiModel):
    stats: SalesStats
    revenue_by_plan: list[PlanRevenue]
    monthly_recurring_revenue: RecurringRevenue
    payment_method_distribution: list[PaymentMethodBreakdown]
    filters: AppliedFilters
