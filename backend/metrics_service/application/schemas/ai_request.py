"""Pydantic DTOs for the AI-request tracking feature."""

from datetime import datetime
from typing import Any

from pydantic import Field

from metrics_service.application.schemas.common import ApiModel, AppliedFilters, Pagination
from metrics_service.domain.entities import (
    AIFeature,
    AIModel,
    AIRequest,
    AIRequestStatus,
    Complexity,
    UserPlan,
)


class TokenUsageSchema(ApiModel):
    """Token counts. A supplied ``total`` is ignored and recomputed."""

    input: int = Field(0, ge=0)
    output: int = Field(0, ge=0)
    total: int | None = Field(None, ge=0)


class RequestErrorSchema(ApiModel):
    code: str | None = Field(None, max_length=100)
    message: str | None = Field(None, max_length=2000)
    details: dict[str, Any] | None = None


class AIRequestCreate(ApiModel):
    """Payload for tracking a new AI request."""

    request_id: str = Field(..., min_length=1, max_length=255, examples=["req-42"])
    model: AIModel
    prompt: str = Field(..., min_length=1, max_length=10000)
    feature: AIFeature = AIFeature.OTHER
    complexity: Complexity = Complexity.MEDIUM
    language: str = Field("en", min_length=1, max_length=10)
    user_plan: UserPlan = UserPlan.FREE


class AIRequestUpdate(ApiModel):
    """Partial update; only supplied fields are applied."""

    status: AIRequestStatus | None = None
    response: str | None = Field(None, max_length=50000)
    tokens: TokenUsageSchema | None = None
    cost: float | None = Field(None, ge=0)
    error: RequestErrorSchema | None = None


class AIRequestTracked(ApiModel):
    message: str = "AI request tracked successfully"
    request_id: str


class AIRequestUpdated(ApiModel):
    message: str = "AI request updated successfully"
    request_id: str
    status: AIRequestStatus


class AIRequestSummary(ApiModel):
    """History row. Prompt and response are never returned."""

    request_id: str
    model: AIModel
    status: AIRequestStatus
    feature: AIFeature
    complexity: Complexity
    language: str
    user_plan: UserPlan
    tokens: TokenUsageSchema
    cost: float
    start_time: datetime | None = None
    end_time: datetime | None = None
    duration: int | None = None
    error: RequestErrorSchema | None = None
    timestamp: datetime

    @classmethod
    def of(cls, request: AIRequest) -> "AIRequestSummary":
        error = None
        if request.error is not None:
            error = RequestErrorSchema(
                code=request.error.code,
                message=request.error.message,
                details=request.error.details,
            )
        return cls(
            request_id=request.request_id,
            model=request.model,
            status=request.status,
            feature=request.feature,
            complexity=request.complexity,
            language=request.language,
            user_plan=request.user_plan,
            tokens=TokenUsageSchema(
                input=request.tokens.input,
                output=request.tokens.output,
                total=request.tokens.total,
            ),
            cost=request.cost,
            start_time=request.timing.start_time,
            end_time=request.timing.end_time,
            duration=request.timing.duration,
            error=error,
            timestamp=request.timestamp,
        )


class AIRequestHistory(ApiModel):
    requests: list[AIRequestSummary]
    pagination: Pagination


class AIRequestStats(ApiModel):
    total_requests: int = 0
    total_tokens: int = 0
    total_cost: float = 0.0
    avg_cost: float = 0.0
    avg_duration: float = 0.0
    min_duration: float = 0.0
    max_duration: float = 0.0
    success_count: int = 0
    failure_count: int = 0
    success_rate: float = 0.0


class ModelBreakdown(ApiModel):
    model: str
    count: int
    avg_duration: float
    total_cost: float


class FeatureBreakdown(ApiModel):
    feature: str
    count: int
    avg_duration: float


class AIStatsResponse(ApiModel):
    stats: AIRequestStats
    filters: AppliedFilters


class AIAdminStatsResponse(ApiModel):
    stats: AIRequestStats
    model_distribution: list[ModelBreakdown]
    feature_distribution: list[FeatureBreakdown]
    filters: AppliedFilters
