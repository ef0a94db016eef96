"""Concrete repository for engagement events backed by SQLAlchemy."""

from metrics_service.application.interfaces import EngagementEventRepository
from metrics_service.domain.clock import as_utc
from metrics_service.domain.entities import (
    DeviceType,
    EngagementContext,
    EngagementEvent,
    EngagementEventType,
    EngagementFeature,
    UserPlan,
)
from metrics_service.infrastructure.database.models import EngagementEventModel
from metrics_service.infrastructure.database.repositories.event_repository import (
    SQLAlchemyEventRepository,
    to_document,
)

# Stored in their own columns rather than inside the context document.
_CLIENT_FIELDS = ("device_type", "browser", "os")


class SQLAlchemyEngagementEventRepository(
    SQLAlchemyEventRepository[EngagementEventModel, EngagementEvent],
    EngagementEventRepository,
):
    """Append-only store for engagement events."""

    model = EngagementEventModel
    entity_name = "EngagementEvent"
    natural_key_field = "eventId"
    natural_key_column = "event_id"
    dimension_columns = {
        "event": "event",
        "feature": "feature",
        "userPlan": "user_plan",
        "sessionId": "session_id",
    }

    def _to_entity(self, model: EngagementEventModel) -> EngagementEvent:
        context = {
            key: value
            for key, value in (model.context or {}).items()
            if key not in _CLIENT_FIELDS
        }
        return EngagementEvent(
            id=model.id,
            event_id=model.event_id,
            user_id=model.user_id,
            session_id=model.session_id,
            event=EngagementEventType(model.event),
            page=model.page,
            feature=EngagementFeature(model.feature) if model.feature else None,
            value=model.value,
            properties=dict(model.properties or {}),
            user_plan=UserPlan(model.user_plan),
            context=EngagementContext(
                device_type=DeviceType(model.device_type),
                browser=model.browser,
                os=model.os,
                **context,
            ),
            timestamp=as_utc(model.timestamp),
        )

    def _to_model(self, entity: EngagementEvent) -> EngagementEventModel:
        context = to_document(entity.context)
        for key in _CLIENT_FIELDS:
            context.pop(key, None)
        return EngagementEventModel(
            event_id=entity.event_id,
            user_id=entity.user_id,
            session_id=entity.session_id,
            event=entity.event.value,
            page=entity.page,
            feature=entity.feature.value if entity.feature else None,
            value=entity.value,
            properties=dict(entity.properties),
            user_plan=entity.user_plan.value,
            device_type=entity.context.device_type.value,
            browser=entity.context.browser,
            os=entity.context.os,
            context=context,
            timestamp=entity.timestamp,
        )
