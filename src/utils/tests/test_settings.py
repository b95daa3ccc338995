"""Tests for environment-driven settings."""

import unittest
from datetime import timedelta
from unittest.mock import patch

from utils import settings as settings_module
from utils.settings import load_settings

BASE_ENV = {"MAGICLINK_SECRET_KEY": "settings-test-secret-0123"}


class TestLoadSettings(unittest.TestCase):

    def setUp(self):
        # A developer's .env must not leak into the tests
        patcher = patch.object(settings_module, 'load_dotenv')
        patcher.start()
        self.addCleanup(patcher.stop)

    def load(self, **env) -> settings_module.Settings:
        with patch.dict('os.environ', {**BASE_ENV, **env}, clear=True):
            return load_settings()

    def test_defaults(self):
        settings = self.load()
        self.assertEqual(settings.challenge_expiry, timedelta(hours=1))
        self.assertEqual(settings.session_expiry, timedelta(days=1))
        self.assertEqual(settings.storage, 'memory')
        self.assertEqual(settings.cookie_name, 'MLCOOKIE')
        self.assertIsNone(settings.mongo_url)

    def test_overrides(self):
        settings = self.load(
            MAGICLINK_CHALLENGE_EXPIRY_SECONDS="600",
            MAGICLINK_SESSION_EXPIRY_SECONDS="0",
            MAGICLINK_STORAGE=" SQL ",
            DATABASE_URL="postgresql://db/auth",
            PUBLIC_BASE_URL="https://example.com/",
        )
        self.assertEqual(settings.challenge_expiry, timedelta(minutes=10))
        self.assertEqual(settings.session_expiry, timedelta(0))
        self.assertEqual(settings.storage, 'sql')
        self.assertEqual(settings.database_url, "postgresql://db/auth")
        self.assertEqual(settings.public_base_url, "https://example.com")

    def test_blank_number_uses_default(self):
        self.assertEqual(self.load(MAGICLINK_COOKIE_MAX_AGE=" ").cookie_max_age, 3600)

    def test_secret_is_required(self):
        with patch.dict('os.environ', {}, clear=True):
            with self.assertRaises(ValueError) as ctx:
                load_settings()
        self.assertIn("MAGICLINK_SECRET_KEY", str(ctx.exception))

    def test_bad_number(self):
        with self.assertRaises(ValueError) as ctx:
            self.load(MAGICLINK_SESSION_EXPIRY_SECONDS="1h")
        self.assertIn("MAGICLINK_SESSION_EXPIRY_SECONDS", str(ctx.exception))

    def test_unknown_storage(self):
        with self.assertRaises(ValueError):
            self.load(MAGICLINK_STORAGE="redis")

    def test_repr_hides_secret(self):
        self.assertNotIn(BASE_ENV["MAGICLINK_SECRET_KEY"], repr(self.load()))


if __name__ == '__main__':
    unittest.main()
