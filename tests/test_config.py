#!/usr/bin/env python3
"""
Tests for MonitorConfig defaults, validation and environment overrides.
"""

import logging
import os
import unittest
from unittest import mock

from cachewatch import MonitorConfig


class TestMonitorConfig(unittest.TestCase):
    """Test MonitorConfig."""

    def setUp(self):
        MonitorConfig.reset()

    def tearDown(self):
        MonitorConfig.reset()
        logging.getLogger("cachewatch").setLevel(logging.NOTSET)

    def test_defaults(self):
        config = MonitorConfig()

        self.assertEqual(config.sample_interval_ms, 10000)
        self.assertEqual(config.threshold_ratio, 0.8)
        self.assertIsNone(config.memory_limit)
        self.assertEqual(config.sample_interval, 10.0)

    def test_rejects_invalid_interval(self):
        for value in (0, -5, 1.5, True):
            with self.subTest(value=value):
                with self.assertRaises(ValueError):
                    MonitorConfig(sample_interval_ms=value)

    def test_rejects_invalid_threshold(self):
        for value in (0, -0.1, 1.01, 2):
            with self.subTest(value=value):
                with self.assertRaises(ValueError):
                    MonitorConfig(threshold_ratio=value)

    def test_accepts_threshold_of_one(self):
        self.assertEqual(MonitorConfig(threshold_ratio=1.0).threshold_ratio, 1.0)

    def test_rejects_invalid_memory_limit(self):
        with self.assertRaises(ValueError):
            MonitorConfig(memory_limit=0)

    def test_rejects_unknown_log_level(self):
        with self.assertRaises(ValueError):
            MonitorConfig(log_level="chatty")

    def test_log_level_is_normalized_and_applied(self):
        config = MonitorConfig(log_level="debug")
        self.assertEqual(config.log_level, "DEBUG")

        config.apply_logging()
        self.assertEqual(logging.getLogger("cachewatch").level, logging.DEBUG)

    def test_from_env_overrides(self):
        env = {
            "CACHEWATCH_SAMPLE_INTERVAL_MS": "500",
            "CACHEWATCH_THRESHOLD_RATIO": "0.65",
            "CACHEWATCH_MEMORY_LIMIT": "1048576",
            "CACHEWATCH_LOG_LEVEL": "warning",
        }
        with mock.patch.dict(os.environ, env):
            config = MonitorConfig.from_env()

        self.assertEqual(config.sample_interval_ms, 500)
        self.assertEqual(config.threshold_ratio, 0.65)
        self.assertEqual(config.memory_limit, 1048576)
        self.assertEqual(config.log_level, "WARNING")

    def test_from_env_ignores_malformed_numbers(self):
        base = MonitorConfig(sample_interval_ms=2000, threshold_ratio=0.7)
        env = {
            "CACHEWATCH_SAMPLE_INTERVAL_MS": "often",
            "CACHEWATCH_THRESHOLD_RATIO": "high",
        }
        with mock.patch.dict(os.environ, env):
            with self.assertLogs("cachewatch.config", level="WARNING") as logs:
                config = MonitorConfig.from_env(base)

        self.assertEqual(config.sample_interval_ms, 2000)
        self.assertEqual(config.threshold_ratio, 0.7)
        self.assertEqual(len(logs.output), 2)

    def test_from_env_ignores_out_of_range_values(self):
        env = {
            "CACHEWATCH_THRESHOLD_RATIO": "1.5",
            "CACHEWATCH_SAMPLE_INTERVAL_MS": "-10",
            "CACHEWATCH_MEMORY_LIMIT": "0",
            "CACHEWATCH_LOG_LEVEL": "chatty",
        }
        with mock.patch.dict(os.environ, env):
            with self.assertLogs("cachewatch.config", level="WARNING") as logs:
                config = MonitorConfig.from_env()

        self.assertEqual(config, MonitorConfig())
        self.assertEqual(len(logs.output), 4)
        self.assertIn("CACHEWATCH_THRESHOLD_RATIO", logs.output[1])

    def test_bad_env_keeps_valid_overrides(self):
        env = {
            "CACHEWATCH_THRESHOLD_RATIO": "1.5",
            "CACHEWATCH_SAMPLE_INTERVAL_MS": "250",
        }
        with mock.patch.dict(os.environ, env):
            with self.assertLogs("cachewatch.config", level="WARNING"):
                config = MonitorConfig.get_instance()

        self.assertEqual(config.sample_interval_ms, 250)
        self.assertEqual(config.threshold_ratio, 0.8)

    def test_get_instance_is_shared(self):
        self.assertIs(MonitorConfig.get_instance(), MonitorConfig.get_instance())

    def test_set_defaults(self):
        config = MonitorConfig.set_defaults(threshold_ratio=0.5)

        self.assertIs(MonitorConfig.get_instance(), config)
        self.assertEqual(config.threshold_ratio, 0.5)

    def test_set_defaults_rejects_unknown_keys(self):
        with self.assertRaises(TypeError):
            MonitorConfig.set_defaults(chunk_strategy="sqrt_n")

    def test_set_defaults_validates(self):
        with self.assertRaises(ValueError):
            MonitorConfig.set_defaults(sample_interval_ms=-1)
        self.assertEqual(MonitorConfig.get_instance().sample_interval_ms, 10000)


if __name__ == "__main__":
    unittest.main()
