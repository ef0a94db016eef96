"""Domain entity for HTTP performance samples reported by upstream services."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from metrics_service.domain.clock import utc_now
from metrics_service.domain.entities.common import DeviceType, UserPlan

ERROR_STATUS_THRESHOLD = 400


class ServiceName(str, Enum):
    AUTH = "auth"
    DATABASE = "database"
    PAYMENT = "payment"
    METRICS = "metrics"
    FRONTEND = "frontend"
    AI_SERVICE = "ai-service"


class HttpMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"


@dataclass
class CpuUsage:
    usage: float | None = None  # percentage
    load: list[float] | None = None


@dataclass
class CapacityUsage:
    """Memory in MB or disk in GB."""

    used: float | None = None
    total: float | None = None
    percentage: float | None = None


@dataclass
class SystemUsage:
    cpu: CpuUsage | None = None
    memory: CapacityUsage | None = None
    disk: CapacityUsage | None = None


@dataclass
class ConnectionPool:
    active: int | None = None
    idle: int | None = None
    total: int | None = None


@dataclass
class DatabaseUsage:
    query_time: float | None = None  # ms
    query_count: int | None = None
    connection_pool: ConnectionPool | None = None


@dataclass
class CacheUsage:
    hits: int | None = None
    misses: int | None = None
    hit_rate: float | None = None  # percentage


@dataclass
class PerformanceContext:
    user_agent: str | None = None
    ip_address: str | None = None
    user_plan: UserPlan = UserPlan.FREE
    region: str | None = None
    timezone: str | None = None
    browser: str = "Unknown"
    os: str = "Unknown"
    device_type: DeviceType = DeviceType.DESKTOP


@dataclass
class PerformanceSample:
    """One observed HTTP request. Write-once."""

    request_id: str
    service: ServiceName
    endpoint: str
    method: HttpMethod
    status_code: int
    response_time: float  # ms
    user_id: str | None = None
    request_size: int = 0
    response_size: int = 0
    error: str | None = None
    system: SystemUsage | None = None
    database: DatabaseUsage | None = None
    cache: CacheUsage | None = None
    context: PerformanceContext = field(default_factory=PerformanceContext)
    id: int | None = None
    timestamp: datetime = field(default_factory=utc_now)

    @property
    def is_error(self) -> bool:
        return self.status_code >= ERROR_STATUS_THRESHOLD

    @property
    def cpu_usage(self) -> float | None:
        if self.system and self.system.cpu:
            return self.system.cpu.usage
        return None

    @property
    def memory_usage(self) -> float | None:
        if self.system and self.system.memory:
            return self.system.memory.percentage
        return None

    @property
    def disk_usage(self) -> float | None:
        if self.system and self.system.disk:
            return self.system.disk.percentage
        return None
