"""Memory usage introspection."""

import time
from dataclasses import dataclass, field
from typing import Optional, Protocol, runtime_checkable

import psutil

from cachewatch.config import MonitorConfig


class IntrospectionUnavailable(RuntimeError):
    """The host cannot report memory usage right now."""


@dataclass(frozen=True)
class MemoryUsage:
    """A single memory usage snapshot."""
    used_bytes: int
    total_bytes: int
    limit_bytes: Optional[int] = None
    timestamp: float = field(default_factory=time.time)

    @property
    def ratio(self) -> float:
        """Fraction of total memory in use."""
        return self.used_bytes / self.total_bytes

    @property
    def used_mb(self) -> float:
        return self.used_bytes / (1024 ** 2)

    @property
    def total_mb(self) -> float:
        return self.total_bytes / (1024 ** 2)

    def __str__(self) -> str:
        return (f"Memory: {self.ratio * 100:.1f}% used "
                f"({self.used_mb:.1f}/{self.total_mb:.1f} MB)")


@runtime_checkable
class MemoryProvider(Protocol):
    """Anything that can take a memory usage snapshot."""

    def read(self) -> Optional[MemoryUsage]:
        """Return current usage, None or raise IntrospectionUnavailable if unknown."""
        ...


class PsutilMemoryProvider:
    """
    Report this process's resident memory against system memory.

    Args:
        memory_limit: Cap on total memory in bytes (None for system total)
    """

    def __init__(self, memory_limit: Optional[int] = None):
        self.memory_limit = memory_limit
        self._process: Optional[psutil.Process] = None

    def _get_process(self) -> psutil.Process:
        if self._process is None:
            self._process = psutil.Process()
        return self._process

    def read(self) -> MemoryUsage:
        try:
            used = self._get_process().memory_info().rss
            total = psutil.virtual_memory().total
        except (psutil.Error, OSError) as e:
            raise IntrospectionUnavailable(f"psutil could not read memory usage: {e}") from e

        if self.memory_limit is not None:
            total = min(total, self.memory_limit)

        return MemoryUsage(
            used_bytes=used,
            total_bytes=total,
            limit_bytes=self.memory_limit,
        )


class UnavailableMemoryProvider:
    """Provider for hosts without memory introspection."""

    def read(self) -> Optional[MemoryUsage]:
        raise IntrospectionUnavailable("Memory usage information is not available.")


def default_provider(config: Optional[MonitorConfig] = None) -> PsutilMemoryProvider:
    """Build the psutil provider from configuration."""
    config = config or MonitorConfig.get_instance()
    return PsutilMemoryProvider(memory_limit=config.memory_limit)
