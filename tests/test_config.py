"""
tests/test_config.py
Test cases for configuration settings
"""

import json
import os
import tempfile
import unittest
from unittest.mock import patch

from config.settings import (
    Config,
    get_config,
    DevelopmentConfig,
    ProductionConfig,
    TestingConfig,
)


class TestConfigClass(unittest.TestCase):
    """Test Config defaults and environment overrides"""

    def setUp(self):
        Config._config_data = None
        self._env = patch.dict(os.environ, {"CONFIG_PATH": "/nonexistent/openfx-config.json"})
        self._env.start()
        for key in (
            "QUOTE_PROVIDER",
            "QUOTE_FAILURE_POLICY",
            "PRICE_REFRESH_INTERVAL",
            "JWT_SECRET",
            "JWT_EXPIRES_HOURS",
            "ALLOW_REGISTRATION",
            "FINNHUB_API_KEY",
            "PORT",
        ):
            os.environ.pop(key, None)

    def tearDown(self):
        self._env.stop()
        Config._config_data = None

    def test_defaults(self):
        self.assertEqual(Config.JWT_EXPIRES_HOURS(), 6)
        self.assertEqual(Config.QUOTE_PROVIDER(), "finnhub")
        self.assertEqual(Config.QUOTE_FAILURE_POLICY(), "abort")
        self.assertEqual(Config.PRICE_REFRESH_INTERVAL(), 30)
        self.assertEqual(Config.NEWS_CACHE_TTL(), 300)
        self.assertEqual(Config.FX_CACHE_TTL(), 3600)
        self.assertEqual(Config.API_PORT(), 4000)
        self.assertTrue(Config.ALLOW_REGISTRATION())

    def test_environment_overrides(self):
        with patch.dict(
            os.environ,
            {
                "QUOTE_PROVIDER": "Yahoo",
                "QUOTE_FAILURE_POLICY": "PLACEHOLDER",
                "ALLOW_REGISTRATION": "false",
                "PORT": "8080",
            },
        ):
            self.assertEqual(Config.QUOTE_PROVIDER(), "yahoo")
            self.assertEqual(Config.QUOTE_FAILURE_POLICY(), "placeholder")
            self.assertFalse(Config.ALLOW_REGISTRATION())
            self.assertEqual(Config.API_PORT(), 8080)

    def test_database_url_from_path(self):
        with patch.dict(os.environ, {"DATABASE_PATH": "data/x.db"}):
            os.environ.pop("DATABASE_URL", None)
            self.assertEqual(Config.DATABASE_URL(), "sqlite:///data/x.db")

    def test_cache_size_from_file_defaults(self):
        self.assertEqual(Config.CACHE_MAX_ENTRIES(), 256)

    def test_config_file_is_loaded(self):
        with tempfile.NamedTemporaryFile("w", suffix=".json", delete=False) as f:
            defaults = Config._get_default_config()
            defaults["quotes"]["refresh_interval_minutes"] = 5
            json.dump(defaults, f)

        try:
            with patch.dict(os.environ, {"CONFIG_PATH": f.name}):
                Config._config_data = None
                self.assertEqual(Config.PRICE_REFRESH_INTERVAL(), 5)
        finally:
            os.unlink(f.name)

    def test_validate_config(self):
        issues = Config.validate_config()
        self.assertIn("FINNHUB_API_KEY not set", issues)
        self.assertIn("JWT_SECRET not set, using development secret", issues)

        with patch.dict(
            os.environ,
            {"FINNHUB_API_KEY": "key", "JWT_SECRET": "secret", "QUOTE_FAILURE_POLICY": "retry"},
        ):
            self.assertEqual(Config.validate_config(), ["Invalid quote failure policy: retry"])


class TestEnvironmentConfigs(unittest.TestCase):
    """Test environment-specific configurations"""

    def test_flags(self):
        self.assertTrue(DevelopmentConfig.DEBUG)
        self.assertFalse(ProductionConfig.DEBUG)
        self.assertTrue(TestingConfig.TESTING)
        self.assertFalse(ProductionConfig.TESTING)

    def test_testing_config_uses_fast_hashing(self):
        self.assertEqual(TestingConfig.BCRYPT_ROUNDS(), 4)

    def test_get_config_by_environment(self):
        for env, expected in (
            ("development", DevelopmentConfig),
            ("testing", TestingConfig),
            ("production", ProductionConfig),
        ):
            with patch.dict(os.environ, {"FLASK_ENV": env}):
                self.assertIs(get_config(), expected)
