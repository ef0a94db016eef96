"""Default process metrics, refreshed each time the registry is scraped."""

import os
import time
from collections.abc import Callable

from metrics_service.infrastructure.metrics.registry import MetricsRegistry

_STATM = "/proc/self/statm"


def _resident_memory_bytes() -> float | None:
    """Current RSS from procfs; None where procfs is unavailable."""
    try:
        with open(_STATM) as statm:
            resident_pages = int(statm.read().split()[1])
        return float(resident_pages * os.sysconf("SC_PAGE_SIZE"))
    except (OSError, ValueError, IndexError, AttributeError):
        return None


class ProcessMetrics:
    """CPU time, resident memory, start time and uptime of this process."""

    def __init__(self, registry: MetricsRegistry, wall_clock: Callable[[], float] = time.time):
        self._wall_clock = wall_clock
        self._started_at = wall_clock()
        self._cpu_seen = 0.0

        self.cpu_seconds = registry.counter(
            "process_cpu_seconds_total", "Total user and system CPU time spent in seconds"
        )
        self.resident_memory = registry.gauge(
            "process_resident_memory_bytes", "Resident memory size in bytes"
        )
        self.start_time = registry.gauge(
            "process_start_time_seconds", "Start time of the process since unix epoch in seconds"
        )
        self.uptime = registry.gauge("process_uptime_seconds", "Process uptime in seconds")
        self.start_time.set(self._started_at)

    def collect(self) -> None:
        times = os.times()
        cpu = times.user + times.system
        if cpu > self._cpu_seen:
            self.cpu_seconds.inc(amount=cpu - self._cpu_seen)
            self._cpu_seen = cpu

        rss = _resident_memory_bytes()
        if rss is not None:
            self.resident_memory.set(rss)
        self.uptime.set(max(self._wall_clock() - self._started_at, 0.0))
