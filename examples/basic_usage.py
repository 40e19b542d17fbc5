#!/usr/bin/env python3
"""
Basic usage examples for cachewatch.
"""

import logging
import time

from cachewatch import CacheParticipant, MemoryMonitor, MonitorConfig
from cachewatch.memory import (
    GarbageCollectionParticipant,
    MappingCacheParticipant,
    MemoryUsage,
)


class ImageCache(CacheParticipant):
    """A cache that frees its buffers when memory runs low."""

    def __init__(self, monitor: MemoryMonitor):
        self.monitor = monitor
        self.buffers = {}
        monitor.register(self)

    def load(self, name: str) -> bytes:
        if name not in self.buffers:
            self.buffers[name] = b"\0" * 1024 * 1024
        return self.buffers[name]

    def release_cache(self) -> None:
        print(f"  ImageCache: dropping {len(self.buffers)} buffers")
        self.buffers.clear()

    def request_detach(self) -> None:
        self.monitor.deregister(self)


class ScriptedProvider:
    """Pretend memory usage climbs by 10% each sample."""

    def __init__(self):
        self.used = 500

    def read(self) -> MemoryUsage:
        self.used = min(self.used + 100, 1000)
        return MemoryUsage(used_bytes=self.used, total_bytes=1000)


def example_custom_participant():
    """Example: implement CacheParticipant and watch it get cleared."""
    print("\n=== Custom Participant Example ===")

    monitor = MemoryMonitor(
        config=MonitorConfig(sample_interval_ms=200, threshold_ratio=0.8),
        provider=ScriptedProvider(),
    )
    cache = ImageCache(monitor)
    for i in range(5):
        cache.load(f"image_{i}.png")

    print(f"Cached buffers: {len(cache.buffers)}")
    time.sleep(1.0)
    print(f"Cached buffers after memory pressure: {len(cache.buffers)}")
    print(f"Monitor stats: {monitor.stats.to_dict()}")

    cache.request_detach()
    monitor.stop_sampling()


def example_ready_made_participants():
    """Example: attach existing dicts and the garbage collector."""
    print("\n=== Ready-made Participants Example ===")

    MonitorConfig.set_defaults(sample_interval_ms=5000, threshold_ratio=0.9)
    monitor = MemoryMonitor.get_instance()

    lookup = {i: str(i) for i in range(1000)}
    # The monitor holds weak references, so keep the participants alive
    participants = [
        MappingCacheParticipant(lookup, monitor=monitor),
        GarbageCollectionParticipant(monitor=monitor),
    ]

    print(f"Registered participants: {len(participants)}")
    print(f"Sampling every {monitor.sample_interval_ms} ms above {monitor.threshold_ratio:.0%}")

    # Force a release regardless of current usage
    monitor.release_all()
    print(f"Lookup entries after release: {len(lookup)}")

    MemoryMonitor.reset_instance()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    example_custom_participant()
    example_ready_made_participants()
