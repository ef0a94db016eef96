"""Concrete repository for HTTP performance samples backed by SQLAlchemy."""

from typing import Any

from metrics_service.application.interfaces import PerformanceSampleRepository
from metrics_service.domain.clock import as_utc
from metrics_service.domain.entities import (
    CacheUsage,
    CapacityUsage,
    ConnectionPool,
    CpuUsage,
    DatabaseUsage,
    DeviceType,
    HttpMethod,
    PerformanceContext,
    PerformanceSample,
    ServiceName,
    SystemUsage,
    UserPlan,
)
from metrics_service.infrastructure.database.models import PerformanceSampleModel
from metrics_service.infrastructure.database.repositories.event_repository import (
    SQLAlchemyEventRepository,
    to_document,
)


def _system(document: dict[str, Any] | None) -> SystemUsage | None:
    if document is None:
        return None
    cpu, memory, disk = document.get("cpu"), document.get("memory"), document.get("disk")
    return SystemUsage(
        cpu=CpuUsage(**cpu) if cpu else None,
        memory=CapacityUsage(**memory) if memory else None,
        disk=CapacityUsage(**disk) if disk else None,
    )


def _database(document: dict[str, Any] | None) -> DatabaseUsage | None:
    if document is None:
        return None
    pool = document.get("connection_pool")
    return DatabaseUsage(
        query_time=document.get("query_time"),
        query_count=document.get("query_count"),
        connection_pool=ConnectionPool(**pool) if pool else None,
    )


def _context(document: dict[str, Any] | None) -> PerformanceContext:
    context = dict(document or {})
    context["user_plan"] = UserPlan(context.get("user_plan", "free"))
    context["device_type"] = DeviceType(context.get("device_type", "desktop"))
    return PerformanceContext(**context)


class SQLAlchemyPerformanceSampleRepository(
    SQLAlchemyEventRepository[PerformanceSampleModel, PerformanceSample],
    PerformanceSampleRepository,
):
    """Write-once store for performance samples."""

    model = PerformanceSampleModel
    entity_name = "PerformanceSample"
    natural_key_field = "requestId"
    natural_key_column = "request_id"
    dimension_columns = {
        "service": "service",
        "endpoint": "endpoint",
        "method": "method",
        "statusCode": "status_code",
    }

    def _to_entity(self, model: PerformanceSampleModel) -> PerformanceSample:
        return PerformanceSample(
            id=model.id,
            request_id=model.request_id,
            service=ServiceName(model.service),
            endpoint=model.endpoint,
            method=HttpMethod(model.method),
            status_code=model.status_code,
            response_time=model.response_time,
            user_id=model.user_id,
            request_size=model.request_size,
            response_size=model.response_size,
            error=model.error,
            system=_system(model.system),
            database=_database(model.database),
            cache=CacheUsage(**model.cache) if model.cache else None,
            context=_context(model.context),
            timestamp=as_utc(model.timestamp),
        )

    def _to_model(self, entity: PerformanceSample) -> PerformanceSampleModel:
        return PerformanceSampleModel(
            request_id=entity.request_id,
            user_id=entity.user_id,
            service=entity.service.value,
            endpoint=entity.endpoint,
            method=entity.method.value,
            status_code=entity.status_code,
            response_time=entity.response_time,
            request_size=entity.request_size,
            response_size=entity.response_size,
            error=entity.error,
            system=to_document(entity.system),
            database=to_document(entity.database),
            cache=to_document(entity.cache),
            context=to_document(entity.context),
            timestamp=entity.timestamp,
        )
