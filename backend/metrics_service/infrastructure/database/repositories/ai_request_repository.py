"""Concrete repository for AI requests backed by SQLAlchemy."""

from metrics_service.application.interfaces import AIRequestRepository
from metrics_service.domain.clock import as_utc
from metrics_service.domain.entities import (
    AIFeature,
    AIModel,
    AIRequest,
    AIRequestContext,
    AIRequestStatus,
    Complexity,
    RequestError,
    RequestTiming,
    TokenUsage,
    UserPlan,
)
from metrics_service.domain.exceptions import NotFoundError
from metrics_service.infrastructure.database.models import AIRequestModel
from metrics_service.infrastructure.database.repositories.event_repository import (
    SQLAlchemyEventRepository,
    parse_datetime,
    to_document,
)


class SQLAlchemyAIRequestRepository(
    SQLAlchemyEventRepository[AIRequestModel, AIRequest], AIRequestRepository
):
    """Implements the AIRequestRepository port using SQLAlchemy async sessions."""

    model = AIRequestModel
    entity_name = "AIRequest"
    natural_key_field = "requestId"
    natural_key_column = "request_id"
    dimension_columns = {
        "model": "model",
        "status": "status",
        "feature": "feature",
        "userPlan": "user_plan",
    }

    def _to_entity(self, model: AIRequestModel) -> AIRequest:
        """Map ORM model → domain entity."""
        error = RequestError(**model.error) if model.error else None
        return AIRequest(
            id=model.id,
            request_id=model.request_id,
            user_id=model.user_id,
            model=AIModel(model.model),
            prompt=model.prompt,
            response=model.response,
            feature=AIFeature(model.feature),
            complexity=Complexity(model.complexity),
            language=model.language,
            user_plan=UserPlan(model.user_plan),
            status=AIRequestStatus(model.status),
            tokens=TokenUsage(input=model.input_tokens, output=model.output_tokens),
            cost=model.cost,
            error=error,
            timing=RequestTiming(
                start_time=parse_datetime(model.start_time),
                end_time=parse_datetime(model.end_time),
                duration=model.duration,
            ),
            context=AIRequestContext(**(model.context or {})),
            timestamp=as_utc(model.timestamp),
            updated_at=as_utc(model.updated_at),
        )

    def _to_model(self, entity: AIRequest) -> AIRequestModel:
        """Map domain entity → ORM model (for creation)."""
        model = AIRequestModel(
            request_id=entity.request_id,
            user_id=entity.user_id,
            model=entity.model.value,
            prompt=entity.prompt,
            feature=entity.feature.value,
            complexity=entity.complexity.value,
            language=entity.language,
            user_plan=entity.user_plan.value,
            context=to_document(entity.context),
            timestamp=entity.timestamp,
        )
        self._apply(model, entity)
        return model

    @staticmethod
    def _apply(model: AIRequestModel, entity: AIRequest) -> None:
        """Copy the mutable fields; ``total_tokens`` is always re-derived."""
        model.status = entity.status.value
        model.response = entity.response
        model.input_tokens = entity.tokens.input
        model.output_tokens = entity.tokens.output
        model.total_tokens = entity.tokens.total
        model.cost = entity.cost
        model.error = to_document(entity.error)
        model.start_time = entity.timing.start_time
        model.end_time = entity.timing.end_time
        model.duration = entity.timing.duration
        model.updated_at = entity.updated_at

    async def get_owned(self, request_id: str, user_id: str) -> AIRequest | None:
        model = await self._get_owned(request_id, user_id)
        return self._to_entity(model) if model else None

    async def update(self, request: AIRequest) -> AIRequest:
        model = await self._get_owned(request.request_id, request.user_id)
        if model is None:
            raise NotFoundError(self.entity_name, request.request_id)
        self._apply(model, request)
        return await self._save(model)
