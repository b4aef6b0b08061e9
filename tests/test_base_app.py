import unittest
import json
import os
import shutil
import tempfile
from unittest.mock import MagicMock, patch

import requests

from xlfsync.base_app import BaseAppTranslations


class TestBaseAppTranslations(unittest.TestCase):
    def setUp(self):
        self.cache_dir = tempfile.mkdtemp()
        self.session = MagicMock()

    def tearDown(self):
        shutil.rmtree(self.cache_dir, ignore_errors=True)

    def test_cached_file_is_used(self):
        with open(os.path.join(self.cache_dir, "sv-se.json"), "w", encoding="utf-8") as f:
            json.dump({"Customer": ["Kund"]}, f)
        base_app = BaseAppTranslations(self.cache_dir, "https://example.com/files", self.session)

        self.assertEqual(base_app.get_map("sv-SE"), {"Customer": ["Kund"]})
        self.session.get.assert_not_called()
        self.assertEqual(list(base_app.local_files()), ["sv-se.json"])

    def test_corrupt_cached_file_returns_none(self):
        with open(os.path.join(self.cache_dir, "sv-se.json"), "w", encoding="utf-8") as f:
            f.write("{truncated")
        base_app = BaseAppTranslations(self.cache_dir, "https://example.com/files", self.session)

        self.assertIsNone(base_app.get_map("sv-SE"))
        self.session.get.assert_not_called()

    def test_missing_file_is_downloaded(self):
        response = MagicMock()
        response.content = json.dumps({"Vendor": ["Leverantör"]}).encode("utf-8")
        self.session.get.return_value = response
        base_app = BaseAppTranslations(os.path.join(self.cache_dir, "sub"), "https://example.com/files", self.session)

        result = base_app.get_map("sv-SE")

        self.assertEqual(result, {"Vendor": ["Leverantör"]})
        self.session.get.assert_called_once_with("https://example.com/files/sv-se.json", timeout=60)
        self.assertTrue(os.path.exists(base_app.local_path("sv-SE")))

    def test_download_failure_returns_none(self):
        self.session.get.side_effect = requests.ConnectionError("offline")
        base_app = BaseAppTranslations(self.cache_dir, "https://example.com/files/", self.session)

        self.assertIsNone(base_app.get_map("da-DK"))

    def test_http_error_returns_none(self):
        response = MagicMock()
        response.raise_for_status.side_effect = requests.HTTPError("404")
        self.session.get.return_value = response
        base_app = BaseAppTranslations(self.cache_dir, "https://example.com/files/", self.session)

        self.assertIsNone(base_app.get_map("da-DK"))
        self.assertFalse(os.path.exists(base_app.local_path("da-DK")))

    def test_default_session(self):
        with patch("xlfsync.base_app.requests.Session") as session_cls:
            base_app = BaseAppTranslations(self.cache_dir, "https://example.com/files/")
        self.assertIs(base_app.session, session_cls.return_value)


if __name__ == "__main__":
    unittest.main()
