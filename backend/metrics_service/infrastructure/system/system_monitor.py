"""Host resource monitor backed by the standard library."""

import os
import shutil

from metrics_service.application.interfaces import SystemMonitor
from metrics_service.domain.entities import CapacityUsage, CpuUsage, SystemUsage

_MB = 1024 * 1024
_GB = 1024 * _MB


def _percentage(used: float, total: float) -> float:
    return round(used / total * 100, 2) if total else 0.0


class HostSystemMonitor(SystemMonitor):
    """Reads load average, physical memory and disk usage of this host.

    CPU usage is the 1-minute load average normalised by core count. Memory
    figures are in MB and disk figures in GB.
    """

    def __init__(self, disk_path: str = "/"):
        self._disk_path = disk_path

    def current(self) -> SystemUsage:
        return SystemUsage(cpu=self._cpu(), memory=self._memory(), disk=self._disk())

    @staticmethod
    def _cpu() -> CpuUsage:
        try:
            load = list(os.getloadavg())
        except (AttributeError, OSError):
            return CpuUsage(usage=0.0, load=[])
        cores = os.cpu_count() or 1
        return CpuUsage(usage=round(min(load[0] / cores, 1.0) * 100, 2), load=load)

    @staticmethod
    def _memory() -> CapacityUsage:
        try:
            page_size = os.sysconf("SC_PAGE_SIZE")
            total = os.sysconf("SC_PHYS_PAGES") * page_size
            available = os.sysconf("SC_AVPHYS_PAGES") * page_size
        except (AttributeError, ValueError, OSError):
            return CapacityUsage(used=0.0, total=0.0, percentage=0.0)
        used = total - available
        return CapacityUsage(
            used=round(used / _MB, 2),
            total=round(total / _MB, 2),
            percentage=_percentage(used, total),
        )

    def _disk(self) -> CapacityUsage:
        usage = shutil.disk_usage(self._disk_path)
        return CapacityUsage(
            used=round(usage.used / _GB, 2),
            total=round(usage.total / _GB, 2),
            percentage=_percentage(usage.used, usage.total),
        )
