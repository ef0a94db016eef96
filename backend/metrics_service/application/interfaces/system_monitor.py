"""Abstract interface for reading this host's resource usage."""

from abc import ABC, abstractmethod

from metrics_service.domain.entities import SystemUsage


class SystemMonitor(ABC):
    @abstractmethod
    def current(self) -> SystemUsage:
        """Return a point-in-time reading of CPU, memory and disk usage."""
        ...
