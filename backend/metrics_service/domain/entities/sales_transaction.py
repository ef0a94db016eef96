"""Domain entity for sales transactions."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from metrics_service.domain.clock import utc_now
from metrics_service.domain.entities.common import UserPlan
from metrics_service.domain.exceptions import ValidationError


class TransactionType(str, Enum):
    SUBSCRIPTION = "subscription"
    ONE_TIME = "one_time"
    REFUND = "refund"
    CREDIT = "credit"
    DEBIT = "debit"


class TransactionStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class PaymentMethod(str, Enum):
    STRIPE = "stripe"
    PAYPAL = "paypal"
    APPLE_PAY = "apple_pay"
    GOOGLE_PAY = "google_pay"
    BANK_TRANSFER = "bank_transfer"
    CRYPTO = "crypto"


class SubscriptionInterval(str, Enum):
    MONTHLY = "monthly"
    YEARLY = "yearly"
    WEEKLY = "weekly"
    DAILY = "daily"


class TransactionSource(str, Enum):
    WEB = "web"
    MOBILE = "mobile"
    API = "api"
    ADMIN = "admin"


SALES_STATUS_TRANSITIONS: dict[TransactionStatus, frozenset[TransactionStatus]] = {
    TransactionStatus.PENDING: frozenset({
        TransactionStatus.COMPLETED,
        TransactionStatus.FAILED,
        TransactionStatus.CANCELLED,
    }),
    TransactionStatus.COMPLETED: frozenset({TransactionStatus.REFUNDED}),
    TransactionStatus.FAILED: frozenset(),
    TransactionStatus.CANCELLED: frozenset(),
    TransactionStatus.REFUNDED: frozenset(),
}


@dataclass
class SubscriptionDetails:
    start_date: datetime | None = None
    end_date: datetime | None = None
    interval: SubscriptionInterval = SubscriptionInterval.MONTHLY
    auto_renew: bool = True
    trial_end: datetime | None = None


@dataclass
class RefundDetails:
    amount: float | None = None
    reason: str | None = None
    processed_at: datetime | None = None


@dataclass
class SalesContext:
    user_agent: str | None = None
    ip_address: str | None = None
    source: TransactionSource = TransactionSource.WEB
    campaign: str | None = None
    utm_source: str | None = None
    utm_medium: str | None = None
    utm_campaign: str | None = None
    referrer: str | None = None
    description: str | None = None
    invoice_number: str | None = None


@dataclass
class SalesTransaction:
    """A monetary event. Revenue only ever counts completed transactions."""

    transaction_id: str
    user_id: str
    type: TransactionType
    amount: float
    status: TransactionStatus = TransactionStatus.PENDING
    currency: str = "USD"
    payment_method: PaymentMethod | None = None
    plan: UserPlan = UserPlan.FREE
    subscription: SubscriptionDetails | None = None
    refund: RefundDetails | None = None
    context: SalesContext = field(default_factory=SalesContext)
    id: int | None = None
    timestamp: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    @property
    def counts_as_revenue(self) -> bool:
        return self.status == TransactionStatus.COMPLETED

    def transition_to(self, new_status: TransactionStatus) -> bool:
        """Move to ``new_status``. Returns True when the status actually changed."""
        if new_status == self.status and new_status == TransactionStatus.PENDING:
            return False
        if new_status not in SALES_STATUS_TRANSITIONS[self.status]:
            raise ValidationError.for_field(
                "status",
                f"Cannot transition from '{self.status.value}' to '{new_status.value}'",
            )
        self.status = new_status
        return True
