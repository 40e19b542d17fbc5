"""The contract for objects whose caches the monitor can clear."""

from abc import ABC, abstractmethod


class CacheParticipant(ABC):
    """
    Abstract base class for cache-owning objects.

    Implementations decide what releasing memory means for them (emptying
    a dict, dropping buffers, closing pooled resources). The monitor holds
    participants through weak references only, so registering never keeps
    an object alive.
    """

    @abstractmethod
    def release_cache(self) -> None:
        """
        Release cached memory now.

        Called by the monitor when memory usage crosses its threshold.
        Must be safe to call at any time after registration.
        """
        pass

    @abstractmethod
    def request_detach(self) -> None:
        """Ask to stop being managed, usually by deregistering from the monitor."""
        pass
