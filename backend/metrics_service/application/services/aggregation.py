"""Pure aggregation helpers shared by the query services.

Every helper works on records already ordered by timestamp ascending, ties
by insertion order. Grouping preserves first appearance, and ranking uses a
stable sort, so equal metrics keep the order in which their groups first
showed up.

Query services run these CPU-bound passes through ``offload``, off the
event loop.
"""

import math
from datetime import datetime, timedelta
from typing import Any, Callable, Hashable, Iterable, TypeVar

from starlette.concurrency import run_in_threadpool

from metrics_service.domain.entities import EventFilter, TimeBucket
from metrics_service.domain.exceptions import ValidationError

T = TypeVar("T")
K = TypeVar("K", bound=Hashable)

MAX_TOP_N = 50


async def offload(func: Callable[..., T], *args: Any) -> T:
    """Run one aggregation pass on the worker threadpool."""
    return await run_in_threadpool(func, *args)


def percentile(values: Iterable[float], p: float) -> float:
    """Deterministic percentile: sorted value at ``min(ceil(p/100*n), n-1)``."""
    ordered = sorted(values)
    n = len(ordered)
    if n == 0:
        return 0.0
    index = min(math.ceil(p * n / 100), n - 1)
    return float(ordered[index])


def safe_ratio(numerator: float, denominator: float, scale: float = 1.0) -> float:
    if not denominator:
        return 0.0
    return numerator / denominator * scale


def mean(values: Iterable[float | None]) -> float:
    """Average of the present values; records lacking the field are ignored."""
    present = [v for v in values if v is not None]
    if not present:
        return 0.0
    return sum(present) / len(present)


def maximum(values: Iterable[float | None]) -> float:
    present = [v for v in values if v is not None]
    return float(max(present)) if present else 0.0


def minimum(values: Iterable[float | None]) -> float:
    present = [v for v in values if v is not None]
    return float(min(present)) if present else 0.0


def percentage_change(current: float, previous: float) -> float:
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return (current - previous) / previous * 100


def compare_numeric(
    current: dict[str, Any], previous: dict[str, Any]
) -> dict[str, float]:
    """Percentage change for every numeric field present in both rows."""
    changes: dict[str, float] = {}
    for key, value in current.items():
        other = previous.get(key)
        if _is_number(value) and _is_number(other):
            changes[key] = percentage_change(value, other)
    return changes


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def bucket_start(timestamp: datetime, bucket: TimeBucket) -> datetime:
    """Truncate ``timestamp`` to the start of its bucket. Weeks start Monday."""
    if bucket == TimeBucket.HOUR:
        return timestamp.replace(minute=0, second=0, microsecond=0)
    day = timestamp.replace(hour=0, minute=0, second=0, microsecond=0)
    if bucket == TimeBucket.DAY:
        return day
    if bucket == TimeBucket.WEEK:
        return day - timedelta(days=day.weekday())
    return day.replace(day=1)


def group_by(records: Iterable[T], key: Callable[[T], K]) -> dict[K, list[T]]:
    """Group records, keeping groups in order of first appearance."""
    groups: dict[K, list[T]] = {}
    for record in records:
        groups.setdefault(key(record), []).append(record)
    return groups


def rank(rows: Iterable[T], metric: Callable[[T], float]) -> list[T]:
    """Sort descending by ``metric``; ties keep their incoming order."""
    return sorted(rows, key=metric, reverse=True)


def top_n(rows: Iterable[T], metric: Callable[[T], float], limit: int) -> list[T]:
    return rank(rows, metric)[:limit]


def validate_limit(limit: int, upper: int = MAX_TOP_N, field: str = "limit") -> int:
    if limit < 1 or limit > upper:
        raise ValidationError.for_field(field, f"Limit must be between 1 and {upper}")
    return limit


def check_dimensions(event_filter: EventFilter, allowed: frozenset[str]) -> None:
    """Reject dimension filters the domain does not define."""
    unknown = sorted(set(event_filter.dimensions) - allowed)
    if unknown:
        raise ValidationError.for_field(
            "dimensions", f"Unknown dimension(s): {', '.join(unknown)}"
        )
