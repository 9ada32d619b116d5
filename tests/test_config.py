import unittest

from richtext.config import GOLDEN_RATIO, CacheConfig, FetchConfig
from richtext.errors import ConfigurationError


class TestCacheConfig(unittest.TestCase):
    def test_defaults(self):
        cfg = CacheConfig().validate()
        self.assertEqual(cfg.ttl, 3600.0)
        self.assertEqual(cfg.failure_ttl, 60.0)
        self.assertEqual(cfg.max_attempts, 3)
        self.assertEqual(cfg.backoff_factor, GOLDEN_RATIO)
        self.assertFalse(cfg.serve_stale)

    def test_invalid_values(self):
        for changes in (
            {"ttl": 0},
            {"failure_ttl": 7200},
            {"max_attempts": 0},
            {"degraded_threshold": 1.5},
            {"degraded_ttl_factor": 0},
            {"key_prefix": "a:b"},
        ):
            with self.subTest(changes=changes):
                with self.assertRaises(ConfigurationError):
                    CacheConfig().with_overrides(**changes)

    def test_from_env(self):
        cfg = CacheConfig.from_env({"RTE_CACHE_TTL": "120", "RTE_CACHE_FAILURE_TTL": "5", "RTE_SERVE_STALE": "yes", "RTE_CACHE_PREFIX": "app"})
        self.assertEqual(cfg.ttl, 120.0)
        self.assertEqual(cfg.failure_ttl, 5.0)
        self.assertTrue(cfg.serve_stale)
        self.assertEqual(cfg.key_prefix, "app")

    def test_from_env_rejects_garbage(self):
        with self.assertRaises(ConfigurationError):
            CacheConfig.from_env({"RTE_FETCH_MAX_ATTEMPTS": "three"})


class TestFetchConfig(unittest.TestCase):
    def test_from_env(self):
        cfg = FetchConfig.from_env({"RTE_USER_AGENT": "Bot/2", "RTE_MAX_REDIRECTS": "0"})
        self.assertEqual(cfg.user_agent, "Bot/2")
        self.assertEqual(cfg.max_redirects, 0)

    def test_invalid(self):
        with self.assertRaises(ConfigurationError):
            FetchConfig(max_bytes=0).validate()


if __name__ == "__main__":
    unittest.main()
