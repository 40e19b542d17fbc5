"""Ready-made cache participants."""

import gc
import time
import logging
from typing import Any, Callable, MutableMapping, Optional

from cachewatch.memory.monitor import MemoryMonitor
from cachewatch.memory.participant import CacheParticipant

logger = logging.getLogger(__name__)


class _MonitoredParticipant(CacheParticipant):
    """Registers itself on construction and deregisters on request_detach()."""

    def __init__(self, monitor: Optional[MemoryMonitor] = None):
        self.monitor = monitor if monitor is not None else MemoryMonitor.get_instance()
        self.monitor.register(self)

    def request_detach(self) -> None:
        self.monitor.deregister(self)


class MappingCacheParticipant(_MonitoredParticipant):
    """Empty a caller-owned mapping under memory pressure."""

    def __init__(self,
                 mapping: MutableMapping[Any, Any],
                 monitor: Optional[MemoryMonitor] = None):
        self.mapping = mapping
        self.clear_count = 0
        super().__init__(monitor)

    def release_cache(self) -> None:
        size = len(self.mapping)
        self.mapping.clear()
        self.clear_count += 1
        logger.debug(f"Cleared {size} cached entries")


class GarbageCollectionParticipant(_MonitoredParticipant):
    """Trigger garbage collection under memory pressure."""

    def __init__(self,
                 min_interval: float = 5.0,
                 generation: int = 2,
                 monitor: Optional[MemoryMonitor] = None):
        self.min_interval = min_interval
        self.generation = generation
        self._last_gc = 0.0
        super().__init__(monitor)

    def release_cache(self) -> None:
        now = time.monotonic()

        # Don't GC too frequently
        if self._last_gc and now - self._last_gc < self.min_interval:
            return

        self._last_gc = now
        collected = gc.collect(self.generation)
        logger.debug(f"Garbage collection freed {collected} objects")


class CallbackParticipant(_MonitoredParticipant):
    """Call a function under memory pressure."""

    def __init__(self,
                 callback: Callable[[], Any],
                 monitor: Optional[MemoryMonitor] = None):
        self.callback = callback
        super().__init__(monitor)

    def release_cache(self) -> None:
        self.callback()
