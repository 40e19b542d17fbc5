"""Memory monitoring and cache clearing under pressure."""

from cachewatch.memory.participant import CacheParticipant
from cachewatch.memory.introspection import (
    IntrospectionUnavailable,
    MemoryProvider,
    MemoryUsage,
    PsutilMemoryProvider,
    UnavailableMemoryProvider,
    default_provider,
)
from cachewatch.memory.scheduler import IntervalTimer
from cachewatch.memory.monitor import (
    MemoryMonitor,
    MonitorStats,
    get_monitor,
)
from cachewatch.memory.participants import (
    MappingCacheParticipant,
    GarbageCollectionParticipant,
    CallbackParticipant,
)

__all__ = [
    "CacheParticipant",
    "IntrospectionUnavailable",
    "MemoryProvider",
    "MemoryUsage",
    "PsutilMemoryProvider",
    "UnavailableMemoryProvider",
    "default_provider",
    "IntervalTimer",
    "MemoryMonitor",
    "MonitorStats",
    "get_monitor",
    "MappingCacheParticipant",
    "GarbageCollectionParticipant",
    "CallbackParticipant",
]
