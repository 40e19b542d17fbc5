"""Memory monitoring and cache clearing under pressure."""

import atexit
import functools
import logging
import threading
import weakref
from dataclasses import dataclass, asdict
from typing import Any, Callable, Dict, List, Optional

from cachewatch.config import MonitorConfig
from cachewatch.memory.introspection import (
    IntrospectionUnavailable,
    MemoryProvider,
    MemoryUsage,
    default_provider,
)
from cachewatch.memory.participant import CacheParticipant
from cachewatch.memory.scheduler import IntervalTimer

logger = logging.getLogger(__name__)

TimerFactory = Callable[[float, Callable[[], None]], Any]


@dataclass
class MonitorStats:
    """Counters describing what the monitor has done so far."""
    cycles: int = 0
    skipped_cycles: int = 0
    broadcasts: int = 0
    release_failures: int = 0

    def to_dict(self) -> Dict[str, int]:
        """Convert to dictionary."""
        return asdict(self)


class MemoryMonitor:
    """
    Process-wide coordinator that clears registered caches under memory pressure.

    Every `sample_interval_ms` the monitor reads memory usage and, when the
    used/total ratio is strictly above `threshold_ratio`, calls
    `release_cache()` on every registered participant.

    Use `MemoryMonitor.get_instance()` for the process-wide monitor. Direct
    construction is meant for tests and embedding with a custom provider.
    """

    _instance: Optional['MemoryMonitor'] = None
    _instance_lock = threading.Lock()

    def __init__(self,
                 config: Optional[MonitorConfig] = None,
                 provider: Optional[MemoryProvider] = None,
                 timer_factory: Optional[TimerFactory] = None):
        """
        Initialize the monitor and start sampling.

        Args:
            config: Monitor settings (None for the process-wide defaults)
            provider: Memory usage source (None for psutil)
            timer_factory: Builds the periodic timer from (interval_seconds, callback)
        """
        self.config = config or MonitorConfig.get_instance()
        self.config.apply_logging()
        self.provider = provider if provider is not None else default_provider(self.config)
        self.stats = MonitorStats()
        self.last_usage: Optional[MemoryUsage] = None

        self._timer_factory = timer_factory or IntervalTimer
        # id(participant) -> weak reference, so membership is by identity
        self._participants: Dict[int, 'weakref.ref[CacheParticipant]'] = {}
        self._lock = threading.RLock()
        self._cycle_lock = threading.RLock()
        self._timer: Optional[Any] = None
        self._generation = 0

        self.start_sampling()

    @classmethod
    def get_instance(cls) -> 'MemoryMonitor':
        """Return the process-wide monitor, creating and starting it on first use."""
        if cls._instance is None:
            with cls._instance_lock:
                if cls._instance is None:
                    instance = cls()
                    atexit.register(instance.stop_sampling)
                    cls._instance = instance
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Stop and forget the process-wide monitor; the next get_instance() builds a new one."""
        with cls._instance_lock:
            instance, cls._instance = cls._instance, None
        if instance is not None:
            instance.stop_sampling()
            atexit.unregister(instance.stop_sampling)

    @property
    def sample_interval_ms(self) -> int:
        return self.config.sample_interval_ms

    @property
    def threshold_ratio(self) -> float:
        return self.config.threshold_ratio

    @property
    def is_sampling(self) -> bool:
        return self._timer is not None

    # Registry

    def register(self, participant: CacheParticipant) -> None:
        """
        Register a participant. Registering twice has no further effect.

        Participants are tracked by identity through weak references, so
        they need not be hashable but must support weakref.
        """
        key = id(participant)
        with self._lock:
            if self._lookup(key) is participant:
                return
            self._participants[key] = weakref.ref(
                participant, functools.partial(self._forget, key))
        logger.debug(f"Registered cache participant {participant!r}")

    def deregister(self, participant: CacheParticipant) -> None:
        """Deregister a participant. Unknown participants are ignored."""
        key = id(participant)
        with self._lock:
            if self._lookup(key) is not participant:
                return
            del self._participants[key]
        logger.debug(f"Deregistered cache participant {participant!r}")

    def _lookup(self, key: int) -> Optional[CacheParticipant]:
        ref = self._participants.get(key)
        return ref() if ref is not None else None

    def _forget(self, key: int, ref: 'weakref.ref[CacheParticipant]') -> None:
        # Weakref callback: the participant was garbage collected
        with self._lock:
            if self._participants.get(key) is ref:
                del self._participants[key]

    def participants(self) -> List[CacheParticipant]:
        """Snapshot of the currently registered participants, in registration order."""
        with self._lock:
            refs = list(self._participants.copy().values())
        live = [ref() for ref in refs]
        return [p for p in live if p is not None]

    def __contains__(self, participant: object) -> bool:
        with self._lock:
            return self._lookup(id(participant)) is participant

    def __len__(self) -> int:
        return len(self.participants())

    # Sampling lifecycle

    def start_sampling(self) -> None:
        """Start the periodic memory check. No-op if already sampling."""
        with self._lock:
            if self._timer is not None:
                return
            self._generation += 1
            callback = functools.partial(self._on_tick, self._generation)
            timer = self._timer_factory(self.config.sample_interval, callback)
            timer.start()
            self._timer = timer
        logger.debug(f"Memory sampling started every {self.sample_interval_ms} ms")

    def stop_sampling(self) -> None:
        """Stop the periodic memory check. No-op if already stopped."""
        with self._lock:
            timer, self._timer = self._timer, None
            self._generation += 1
        if timer is not None:
            timer.cancel()
            logger.debug("Memory sampling stopped")

    def _on_tick(self, generation: int) -> None:
        # Ticks from a cancelled timer are dropped
        if generation != self._generation:
            return
        try:
            self.check_memory_usage_once()
        except Exception:
            logger.exception("Memory check failed")

    # Checking and clearing

    def check_memory_usage_once(self) -> bool:
        """
        Run one sampling cycle.

        Returns:
            True if usage was above the threshold and caches were cleared
        """
        with self._cycle_lock:
            with self._lock:
                self.stats.cycles += 1
            usage = self._read_usage()
            if usage is None:
                with self._lock:
                    self.stats.skipped_cycles += 1
                return False

            self.last_usage = usage
            if usage.ratio > self.threshold_ratio:
                logger.warning(f"Global memory usage high ({usage}), clearing all caches.")
                self.release_all()
                return True
            return False

    def _read_usage(self) -> Optional[MemoryUsage]:
        try:
            usage = self.provider.read()
        except IntrospectionUnavailable as e:
            logger.warning(f"Skipping memory check: {e}")
            return None

        if usage is None:
            logger.warning("Skipping memory check: memory usage information is not available.")
            return None
        if usage.total_bytes <= 0:
            logger.warning(f"Skipping memory check: invalid total memory {usage.total_bytes}")
            return None
        return usage

    def release_all(self) -> int:
        """
        Call release_cache() on every registered participant.

        A participant that raises is logged and skipped; the rest are still
        notified. A participant deregistered before its turn is not called.

        Returns:
            Number of participants notified
        """
        notified = 0
        for participant in self.participants():
            if participant not in self:
                continue
            notified += 1
            try:
                participant.release_cache()
            except Exception:
                with self._lock:
                    self.stats.release_failures += 1
                logger.exception(f"Cache participant {participant!r} failed to release memory")

        with self._lock:
            self.stats.broadcasts += 1
        return notified


def get_monitor() -> MemoryMonitor:
    """Return the process-wide memory monitor."""
    return MemoryMonitor.get_instance()
