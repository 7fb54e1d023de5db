"""Tests for settings loading."""

import unittest

from keyword_news.config import Settings, load_settings
from keyword_news.errors import ConfigError


class TestLoadSettings(unittest.TestCase):

    def test_defaults(self):
        settings = load_settings({})
        self.assertEqual(settings.sheet_name, "news")
        self.assertEqual(settings.deep_sheet_name, "deep")
        self.assertEqual(settings.app_id, "default-app-id")
        self.assertEqual(settings.group_by, "hour")
        self.assertFalse(settings.has_supabase)
        self.assertFalse(settings.has_gemini)

    def test_environment_values_are_cleaned(self):
        settings = load_settings({
            "GOOGLE_SHEET_ID": ' "abc123" ',
            "SUPABASE_URL": "https://x.supabase.co",
            "SUPABASE_KEY": "'secret'",
            "RETRY_BASE_DELAY": "0.25",
            "GROUP_BY": "date",
        })
        self.assertEqual(settings.sheet_id, "abc123")
        self.assertEqual(settings.supabase_key, "secret")
        self.assertEqual(settings.retry_base_delay, 0.25)
        self.assertEqual(settings.group_by, "date")
        self.assertTrue(settings.has_supabase)

    def test_json_config_overrides_environment(self):
        settings = load_settings({
            "APP_ID": "from-env",
            "KEYWORD_NEWS_CONFIG": '{"app_id": "from-json", "unknown_key": 1}',
        })
        self.assertEqual(settings.app_id, "from-json")

    def test_unparsable_json_is_fatal(self):
        with self.assertRaises(ConfigError):
            load_settings({"KEYWORD_NEWS_CONFIG": "{app_id: nope"})

    def test_json_must_be_object(self):
        with self.assertRaises(ConfigError):
            load_settings({"KEYWORD_NEWS_CONFIG": "[1, 2]"})

    def test_invalid_values(self):
        with self.assertRaises(ConfigError):
            load_settings({"GROUP_BY": "week"})
        with self.assertRaises(ConfigError):
            load_settings({"RETRY_BASE_DELAY": "soon"})

    def test_settings_are_frozen(self):
        with self.assertRaises(Exception):
            Settings().app_id = "x"


if __name__ == "__main__":
    unittest.main()
