"""
Configuration management for the cache monitor.
"""

import os
import logging
from dataclasses import dataclass, replace
from typing import Any, Callable, ClassVar, Optional, Tuple

logger = logging.getLogger(__name__)

# (field, environment variable, parser)
_ENV_OVERRIDES: Tuple[Tuple[str, str, Callable[[str], Any]], ...] = (
    ("sample_interval_ms", "CACHEWATCH_SAMPLE_INTERVAL_MS", int),
    ("threshold_ratio", "CACHEWATCH_THRESHOLD_RATIO", float),
    ("memory_limit", "CACHEWATCH_MEMORY_LIMIT", int),
    ("log_level", "CACHEWATCH_LOG_LEVEL", str),
)


@dataclass
class MonitorConfig:
    """Settings the memory monitor is constructed with."""

    # Sampling
    sample_interval_ms: int = 10000
    threshold_ratio: float = 0.8  # Clear caches above 80% usage

    # Memory limit in bytes (None for system total, which rarely triggers clearing)
    memory_limit: Optional[int] = None

    # Logging
    log_level: Optional[str] = None

    _instance: ClassVar[Optional['MonitorConfig']] = None

    def __post_init__(self):
        """Validate settings."""
        if isinstance(self.sample_interval_ms, bool) or not isinstance(self.sample_interval_ms, int):
            raise ValueError(f"sample_interval_ms must be an integer, got {self.sample_interval_ms!r}")
        if self.sample_interval_ms <= 0:
            raise ValueError(f"sample_interval_ms must be positive, got {self.sample_interval_ms}")
        if not 0 < self.threshold_ratio <= 1:
            raise ValueError(f"threshold_ratio must be in (0, 1], got {self.threshold_ratio}")
        if self.memory_limit is not None and self.memory_limit <= 0:
            raise ValueError(f"memory_limit must be positive, got {self.memory_limit}")
        if self.log_level is not None:
            self.log_level = self.log_level.upper()
            if not isinstance(logging.getLevelName(self.log_level), int):
                raise ValueError(f"Unknown log level: {self.log_level}")

    @property
    def sample_interval(self) -> float:
        """Sampling interval in seconds."""
        return self.sample_interval_ms / 1000.0

    @classmethod
    def from_env(cls, base: Optional['MonitorConfig'] = None) -> 'MonitorConfig':
        """
        Build config from environment variables, overlaying a base config.

        Supported variables:
            CACHEWATCH_SAMPLE_INTERVAL_MS, CACHEWATCH_THRESHOLD_RATIO,
            CACHEWATCH_MEMORY_LIMIT, CACHEWATCH_LOG_LEVEL

        A value that does not parse or fails validation is ignored with a
        warning and the base value is kept.
        """
        config = base or cls()
        for name, env_name, parse in _ENV_OVERRIDES:
            raw = os.getenv(env_name)
            if raw is None:
                continue
            try:
                config = replace(config, **{name: parse(raw)})
            except ValueError as e:
                logger.warning(f"Ignoring {env_name}={raw!r}: {e}")
        return config

    @classmethod
    def get_instance(cls) -> 'MonitorConfig':
        """Get the process-wide default configuration."""
        if cls._instance is None:
            cls._instance = cls.from_env()
        return cls._instance

    @classmethod
    def set_defaults(cls, **kwargs) -> 'MonitorConfig':
        """
        Replace the process-wide defaults.

        Only a monitor constructed afterwards picks up the new values.
        Unknown keys raise TypeError, invalid values raise ValueError.
        """
        cls._instance = replace(cls.get_instance(), **kwargs)
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Forget the process-wide defaults so they are re-read from the environment."""
        cls._instance = None

    def apply_logging(self) -> None:
        """Apply the configured level to the package logger."""
        if self.log_level is not None:
            logging.getLogger("cachewatch").setLevel(self.log_level)
