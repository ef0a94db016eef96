"""In-process metrics registry with Prometheus text exposition.

Each metric owns a lock around its own samples; the registry lock is only
held while registering. Snapshots copy each metric's state under that
metric's lock and never mutate anything.
"""

import math
import threading
from dataclasses import dataclass
from typing import Iterable

CONTENT_TYPE = "text/plain; version=0.0.4; charset=utf-8"

LabelValues = tuple[str, ...]


@dataclass(frozen=True)
class HistogramValue:
    """Cumulative bucket counts (``le`` → count), plus sum and count."""

    buckets: tuple[tuple[float, int], ...]
    sum: float
    count: int


@dataclass(frozen=True)
class MetricSample:
    name: str
    kind: str
    labels: dict[str, str]
    value: float | HistogramValue


def _escape(value: str) -> str:
    return value.replace("\\", "\\\\").replace("\n", "\\n").replace('"', '\\"')


def _format_labels(pairs: Iterable[tuple[str, str]]) -> str:
    parts = [f'{name}="{_escape(value)}"' for name, value in pairs]
    return "{" + ",".join(parts) + "}" if parts else ""


def _format_value(value: float) -> str:
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    return repr(float(value))


class _Metric:
    kind = "untyped"

    def __init__(self, name: str, documentation: str, label_names: Iterable[str] = ()):
        self.name = name
        self.documentation = documentation
        self.label_names = tuple(label_names)
        self._lock = threading.Lock()

    def _key(self, labels: dict[str, str] | None) -> LabelValues:
        labels = labels or {}
        unknown = set(labels) - set(self.label_names)
        if unknown:
            raise ValueError(f"{self.name}: unknown label(s) {sorted(unknown)}")
        return tuple(str(labels.get(name, "")) for name in self.label_names)

    def _labels(self, key: LabelValues) -> dict[str, str]:
        return dict(zip(self.label_names, key))

    def samples(self) -> list[MetricSample]:
        raise NotImplementedError

    def export(self) -> list[str]:
        lines = [
            f"# HELP {self.name} {_escape(self.documentation)}",
            f"# TYPE {self.name} {self.kind}",
        ]
        for sample in self.samples():
            labels = _format_labels(sample.labels.items())
            lines.append(f"{self.name}{labels} {_format_value(sample.value)}")
        return lines


class Counter(_Metric):
    """Monotonic per-label-set total."""

    kind = "counter"

    def __init__(self, name: str, documentation: str, label_names: Iterable[str] = ()):
        super().__init__(name, documentation, label_names)
        self._values: dict[LabelValues, float] = {}

    def inc(self, labels: dict[str, str] | None = None, amount: float = 1.0) -> None:
        if amount < 0:
            raise ValueError(f"{self.name}: counters can only increase")
        key = self._key(labels)
        with self._lock:
            self._values[key] = self._values.get(key, 0.0) + float(amount)

    def value(self, labels: dict[str, str] | None = None) -> float:
        key = self._key(labels)
        with self._lock:
            return self._values.get(key, 0.0)

    def samples(self) -> list[MetricSample]:
        with self._lock:
            items = list(self._values.items())
        return [MetricSample(self.name, self.kind, self._labels(k), v) for k, v in items]


class Gauge(_Metric):
    """Last-write-wins value per label set."""

    kind = "gauge"

    def __init__(self, name: str, documentation: str, label_names: Iterable[str] = ()):
        super().__init__(name, documentation, label_names)
        self._values: dict[LabelValues, float] = {}

    def set(self, value: float, labels: dict[str, str] | None = None) -> None:
        key = self._key(labels)
        with self._lock:
            self._values[key] = float(value)

    def value(self, labels: dict[str, str] | None = None) -> float | None:
        key = self._key(labels)
        with self._lock:
            return self._values.get(key)

    def samples(self) -> list[MetricSample]:
        with self._lock:
            items = list(self._values.items())
        return [MetricSample(self.name, self.kind, self._labels(k), v) for k, v in items]


class Histogram(_Metric):
    """Bucketed observations with running sum and count per label set."""

    kind = "histogram"

    def __init__(
        self,
        name: str,
        documentation: str,
        label_names: Iterable[str] = (),
        buckets: Iterable[float] = (0.1, 0.5, 1, 5, 10),
    ):
        super().__init__(name, documentation, label_names)
        bounds = sorted(float(b) for b in buckets)
        if not bounds or not math.isinf(bounds[-1]):
            bounds.append(math.inf)
        self.buckets = tuple(bounds)
        # per label set: [per-bucket counts (non-cumulative)], sum, count
        self._values: dict[LabelValues, tuple[list[int], float, int]] = {}

    def observe(self, value: float, labels: dict[str, str] | None = None) -> None:
        key = self._key(labels)
        with self._lock:
            counts, total, count = self._values.get(key, ([0] * len(self.buckets), 0.0, 0))
            for index, bound in enumerate(self.buckets):
                if value <= bound:
                    counts[index] += 1
                    break
            self._values[key] = (counts, total + value, count + 1)

    def value(self, labels: dict[str, str] | None = None) -> HistogramValue | None:
        key = self._key(labels)
        with self._lock:
            state = self._values.get(key)
            if state is None:
                return None
            return self._freeze(*state)

    def _freeze(self, counts: list[int], total: float, count: int) -> HistogramValue:
        cumulative, running = [], 0
        for bound, n in zip(self.buckets, counts):
            running += n
            cumulative.append((bound, running))
        return HistogramValue(buckets=tuple(cumulative), sum=total, count=count)

    def samples(self) -> list[MetricSample]:
        with self._lock:
            items = [(k, self._freeze(*state)) for k, state in self._values.items()]
        return [MetricSample(self.name, self.kind, self._labels(k), v) for k, v in items]

    def export(self) -> list[str]:
        lines = [
            f"# HELP {self.name} {_escape(self.documentation)}",
            f"# TYPE {self.name} {self.kind}",
        ]
        for sample in self.samples():
            base = list(sample.labels.items())
            for bound, count in sample.value.buckets:
                labels = _format_labels(base + [("le", _format_value(bound))])
                lines.append(f"{self.name}_bucket{labels} {count}")
            labels = _format_labels(base)
            lines.append(f"{self.name}_sum{labels} {_format_value(sample.value.sum)}")
            lines.append(f"{self.name}_count{labels} {sample.value.count}")
        return lines


class MetricsRegistry:
    """A named set of metrics. Construct one per process (or per test)."""

    def __init__(self) -> None:
        self._metrics: dict[str, _Metric] = {}
        self._lock = threading.Lock()

    def _register(self, metric: _Metric) -> _Metric:
        with self._lock:
            existing = self._metrics.get(metric.name)
            if existing is None:
                self._metrics[metric.name] = metric
                return metric
        if type(existing) is not type(metric) or existing.label_names != metric.label_names:
            raise ValueError(f"Metric {metric.name} already registered with a different shape")
        return existing

    def counter(self, name: str, documentation: str, label_names: Iterable[str] = ()) -> Counter:
        return self._register(Counter(name, documentation, label_names))

    def gauge(self, name: str, documentation: str, label_names: Iterable[str] = ()) -> Gauge:
        return self._register(Gauge(name, documentation, label_names))

    def histogram(
        self,
        name: str,
        documentation: str,
        label_names: Iterable[str] = (),
        buckets: Iterable[float] = (0.1, 0.5, 1, 5, 10),
    ) -> Histogram:
        return self._register(Histogram(name, documentation, label_names, buckets))

    def get(self, name: str) -> _Metric | None:
        with self._lock:
            return self._metrics.get(name)

    def _all(self) -> list[_Metric]:
        with self._lock:
            return list(self._metrics.values())

    def snapshot(self) -> list[MetricSample]:
        """Flat, read-only copy of every sample currently held."""
        samples: list[MetricSample] = []
        for metric in self._all():
            samples.extend(metric.samples())
        return samples

    def render_text(self) -> str:
        """Prometheus text exposition format 0.0.4."""
        lines: list[str] = []
        for metric in self._all():
            lines.extend(metric.export())
        return "\n".join(lines) + "\n"
