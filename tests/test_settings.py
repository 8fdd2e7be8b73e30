import os
import unittest
from unittest import mock

from urlvault.errors import ConfigError
from urlvault.extraction.download import DEFAULT_USER_AGENT
from urlvault.settings import load_settings


class TestSettings(unittest.TestCase):
    @mock.patch.dict(os.environ, {"FETCH_TIMEOUT": "", "FETCH_USER_AGENT": "", "CORS_ORIGINS": ""})
    def test_defaults(self):
        settings = load_settings(storage_root="/srv/vault")
        self.assertEqual(settings.storage_root, "/srv/vault")
        self.assertIsNone(settings.fetch_timeout)
        self.assertEqual(settings.user_agent, DEFAULT_USER_AGENT)
        self.assertTrue(settings.cors_origins)

    @mock.patch.dict(os.environ, {"FETCH_TIMEOUT": "12.5", "CORS_ORIGINS": "https://a.example, https://b.example"})
    def test_values_from_environment(self):
        settings = load_settings()
        self.assertEqual(settings.fetch_timeout, 12.5)
        self.assertEqual(settings.cors_origins, ["https://a.example", "https://b.example"])

    @mock.patch.dict(os.environ, {"FETCH_TIMEOUT": "soon"})
    def test_invalid_timeout(self):
        with self.assertRaises(ConfigError):
            load_settings()

    @mock.patch.dict(os.environ, {"RATELIMIT_ENABLED": "false"})
    def test_rate_limit_toggle(self):
        self.assertFalse(load_settings().ratelimit_enabled)


if __name__ == "__main__":
    unittest.main()
