"""Background interval timer for periodic sampling."""

import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class IntervalTimer:
    """
    Call a function every `interval` seconds on a daemon thread.

    The thread never keeps the interpreter alive, and cancel() takes
    effect immediately instead of waiting out the current interval.
    """

    def __init__(self,
                 interval: float,
                 callback: Callable[[], None],
                 name: str = "cachewatch-sampler"):
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self.interval = interval
        self.callback = callback
        self.name = name
        self._stopped = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_active(self) -> bool:
        return self._thread is not None and not self._stopped.is_set()

    def start(self) -> None:
        """Start firing. A timer can only be started once."""
        if self._thread is not None:
            raise RuntimeError("IntervalTimer already started")
        self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
        self._thread.start()

    def cancel(self) -> None:
        """Stop firing. A callback already running is allowed to finish."""
        self._stopped.set()

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout)

    def _run(self) -> None:
        while not self._stopped.wait(self.interval):
            try:
                self.callback()
            except Exception:
                # Keep ticking on callback errors
                logger.exception(f"Interval callback {self.name} failed")
