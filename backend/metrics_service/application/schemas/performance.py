"""Pydantic DTOs for HTTP performance samples and their rankings."""

from datetime import datetime

from pydantic import Field

from metrics_service.application.schemas.common import ApiModel, AppliedFilters
from metrics_service.domain.entities import (
    CacheUsage,
    CapacityUsage,
    ConnectionPool,
    CpuUsage,
    DatabaseUsage,
    HttpMethod,
    ServiceName,
    SystemUsage,
)


class CpuSchema(ApiModel):
    usage: float | None = Field(None, ge=0)
    load: list[float] | None = None


class CapacitySchema(ApiModel):
    used: float | None = Field(None, ge=0)
    total: float | None = Field(None, ge=0)
    percentage: float | None = Field(None, ge=0, le=100)


class SystemSchema(ApiModel):
    cpu: CpuSchema | None = None
    memory: CapacitySchema | None = None
    disk: CapacitySchema | None = None

    def to_entity(self) -> SystemUsage:
        return SystemUsage(
            cpu=CpuUsage(**self.cpu.model_dump()) if self.cpu else None,
            memory=CapacityUsage(**self.memory.model_dump()) if self.memory else None,
            disk=CapacityUsage(**self.disk.model_dump()) if self.disk else None,
        )

    @classmethod
    def of(cls, usage: SystemUsage) -> "SystemSchema":
        return cls.model_validate(usage, from_attributes=True)


class ConnectionPoolSchema(ApiModel):
    active: int | None = Field(None, ge=0)
    idle: int | None = Field(None, ge=0)
    total: int | None = Field(None, ge=0)


class DatabaseSchema(ApiModel):
    query_time: float | None = Field(None, ge=0)
    query_count: int | None = Field(None, ge=0)
    connection_pool: ConnectionPoolSchema | None = None

    def to_entity(self) -> DatabaseUsage:
        pool = None
        if self.connection_pool is not None:
            pool = ConnectionPool(**self.connection_pool.model_dump())
        return DatabaseUsage(
            query_time=self.query_time,
            query_count=self.query_count,
            connection_pool=pool,
        )


class CacheSchema(ApiModel):
    hits: int | None = Field(None, ge=0)
    misses: int | None = Field(None, ge=0)
    hit_rate: float | None = Field(None, ge=0, le=100)

    def to_entity(self) -> CacheUsage:
        return CacheUsage(**self.model_dump())


class PerformanceSampleCreate(ApiModel):
    """Payload for tracking one observed HTTP request."""

    request_id: str | None = Field(None, min_length=1, max_length=255)
    service: ServiceName
    endpoint: str = Field(..., min_length=1, max_length=2048)
    method: HttpMethod
    status_code: int = Field(..., ge=100, le=599)
    response_time: float = Field(..., ge=0)
    request_size: int = Field(0, ge=0)
    response_size: int = Field(0, ge=0)
    error: str | None = Field(None, max_length=2000)
    system: SystemSchema | None = None
    database: DatabaseSchema | None = None
    cache: CacheSchema | None = None


class PerformanceSampleTracked(ApiModel):
    message: str = "Performance metric tracked successfully"
    request_id: str


class PerformanceStats(ApiModel):
    total_requests: int = 0
    avg_response_time: float = 0.0
    min_response_time: float = 0.0
    max_response_time: float = 0.0
    p95_response_time: float = 0.0
    p99_response_time: float = 0.0
    success_count: int = 0
    error_count: int = 0
    error_rate: float = 0.0
    total_request_size: int = 0
    total_response_size: int = 0
    avg_cpu_usage: float = 0.0
    avg_memory_usage: float = 0.0
    avg_disk_usage: float = 0.0


class EndpointRanking(ApiModel):
    service: str
    endpoint: str
    method: str
    request_count: int
    avg_response_time: float
    error_count: int
    error_rate: float


class StatusCodeCount(ApiModel):
    status_code: int
    count: int


class EndpointErrorRate(ApiModel):
    service: str
    endpoint: str
    method: str
    total_requests: int
    error_count: int
    error_rate: float
    errors: list[StatusCodeCount]


class SystemResourceBucket(ApiModel):
    bucket: datetime
    avg_cpu_usage: float
    avg_memory_usage: float
    avg_disk_usage: float
    max_cpu_usage: float
    max_memory_usage: float
    max_disk_usage: float


class ServicePerformance(ApiModel):
    service: str
    avg_response_time: float
    total_requests: int
    error_count: int
    error_rate: float
    avg_cpu_usage: float
    avg_memory_usage: float


class EndpointAlert(ApiModel):
    service: str
    endpoint: str
    method: str
    total_requests: int
    error_count: int
    error_rate: float
    avg_response_time: float
    p95_response_time: float


class AlertThresholds(ApiModel):
    error_rate: float
    response_time: float


class AlertsResponse(ApiModel):
    alerts: list[EndpointAlert]
    thresholds: AlertThresholds


class CurrentSystemResponse(ApiModel):
    current_metrics: SystemSchema
    timestamp: datetime


class PerformanceStatsResponse(ApiModel):
    stats: PerformanceStats
    filters: AppliedFilters


class SlowestEndpointsResponse(ApiModel):
    slowest_endpoints: list[EndpointRanking]
    filters: AppliedFilters


class ErrorRatesResponse(ApiModel):
    error_rates: list[EndpointErrorRate]
    filters: AppliedFilters


class SystemResourcesResponse(ApiModel):
    system_resources: list[SystemResourceBucket]
    filters: AppliedFilters


class PerformanceAdminStatsResponse(ApiModel):
    stats: PerformanceStats
    slowest_endpoints: list[EndpointRanking]
    error_rates: list[EndpointErrorRate]
    system_resources: list[SystemResourceBucket]
    service_performance: list[ServicePerformance]
    filters: AppliedFilters
