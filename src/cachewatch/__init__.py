"""
cachewatch: clear registered caches when the process runs short of memory.

A single process-wide MemoryMonitor samples memory usage on a background
timer. When usage crosses the configured threshold, every registered
CacheParticipant is asked to release its cache.
"""

import logging

from cachewatch.config import MonitorConfig
from cachewatch.memory import (
    CacheParticipant,
    IntrospectionUnavailable,
    MemoryMonitor,
    MemoryUsage,
    get_monitor,
)

__version__ = "0.1.0"
__license__ = "Apache-2.0"

__all__ = [
    "MonitorConfig",
    "CacheParticipant",
    "IntrospectionUnavailable",
    "MemoryMonitor",
    "MemoryUsage",
    "get_monitor",
]

logging.getLogger(__name__).addHandler(logging.NullHandler())
