"""Domain entity for tracked AI-model invocations."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from metrics_service.domain.clock import millis_between, utc_now
from metrics_service.domain.entities.common import UserPlan
from metrics_service.domain.exceptions import ValidationError


class AIModel(str, Enum):
    GPT_4 = "gpt-4"
    GPT_35_TURBO = "gpt-3.5-turbo"
    CLAUDE_3 = "claude-3"
    GEMINI_PRO = "gemini-pro"
    CUSTOM = "custom"


class AIFeature(str, Enum):
    ARTWORK_ANALYSIS = "artwork-analysis"
    STYLE_RECOMMENDATION = "style-recommendation"
    MARKET_ANALYSIS = "market-analysis"
    PORTFOLIO_REVIEW = "portfolio-review"
    OTHER = "other"


class Complexity(str, Enum):
    SIMPLE = "simple"
    MEDIUM = "medium"
    COMPLEX = "complex"


class AIRequestStatus(str, Enum):
    """Lifecycle states of an AI request."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in _AI_TERMINAL


_AI_TERMINAL = frozenset({
    AIRequestStatus.COMPLETED,
    AIRequestStatus.FAILED,
    AIRequestStatus.CANCELLED,
})

# Forward-only transitions. Terminal states accept nothing.
AI_STATUS_TRANSITIONS: dict[AIRequestStatus, frozenset[AIRequestStatus]] = {
    AIRequestStatus.PENDING: frozenset({
        AIRequestStatus.PROCESSING,
        AIRequestStatus.CANCELLED,
    }),
    AIRequestStatus.PROCESSING: frozenset({
        AIRequestStatus.COMPLETED,
        AIRequestStatus.FAILED,
        AIRequestStatus.CANCELLED,
    }),
    AIRequestStatus.COMPLETED: frozenset(),
    AIRequestStatus.FAILED: frozenset(),
    AIRequestStatus.CANCELLED: frozenset(),
}


@dataclass
class TokenUsage:
    """Token counts; ``total`` is always derived from input + output."""

    input: int = 0
    output: int = 0

    @property
    def total(self) -> int:
        return self.input + self.output


@dataclass
class RequestTiming:
    start_time: datetime | None = None
    end_time: datetime | None = None
    duration: int | None = None  # ms


@dataclass
class RequestError:
    code: str | None = None
    message: str | None = None
    details: dict[str, Any] | None = None


@dataclass
class AIRequestContext:
    user_agent: str | None = None
    ip_address: str | None = None
    session_id: str | None = None


@dataclass
class AIRequest:
    """One AI-model invocation, created pending and advanced via updates."""

    request_id: str
    user_id: str
    model: AIModel
    prompt: str
    feature: AIFeature = AIFeature.OTHER
    complexity: Complexity = Complexity.MEDIUM
    language: str = "en"
    user_plan: UserPlan = UserPlan.FREE
    status: AIRequestStatus = AIRequestStatus.PENDING
    response: str | None = None
    tokens: TokenUsage = field(default_factory=TokenUsage)
    cost: float = 0.0
    error: RequestError | None = None
    timing: RequestTiming = field(default_factory=RequestTiming)
    context: AIRequestContext = field(default_factory=AIRequestContext)
    id: int | None = None
    timestamp: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    def start(self, now: datetime) -> None:
        """Stamp the creation time; the request begins pending."""
        self.timestamp = now
        self.updated_at = now
        self.status = AIRequestStatus.PENDING
        self.timing = RequestTiming(start_time=now)

    def transition_to(self, new_status: AIRequestStatus, now: datetime) -> bool:
        """Move to ``new_status``. Returns True when the status actually changed.

        Raises:
            ValidationError: if the transition is not allowed.
        """
        if new_status == self.status and not self.status.is_terminal:
            return False
        if new_status not in AI_STATUS_TRANSITIONS[self.status]:
            raise ValidationError.for_field(
                "status",
                f"Cannot transition from '{self.status.value}' to '{new_status.value}'",
            )
        self.status = new_status
        if new_status.is_terminal and self.timing.end_time is None:
            start = self.timing.start_time or self.timestamp
            self.timing.start_time = start
            self.timing.end_time = now
            self.timing.duration = millis_between(start, now)
        return True

    def apply_update(
        self,
        now: datetime,
        *,
        status: AIRequestStatus | None = None,
        response: str | None = None,
        tokens: TokenUsage | None = None,
        cost: float | None = None,
        error: RequestError | None = None,
    ) -> bool:
        """Apply the supplied fields only. Returns True if the status changed."""
        changed = False
        if status is not None:
            changed = self.transition_to(status, now)
        if response is not None:
            self.response = response
        if tokens is not None:
            self.tokens = tokens
        if cost is not None:
            self.cost = cost
        if error is not None:
            self.error = error
        self.updated_at = now
        return changed
