import unittest
from unittest.mock import patch, MagicMock

import cache
from cache import CacheService
from services.drive_file_service import drive_files_cache_key


class TestCacheService(unittest.TestCase):
    """Tests for the Redis cache service"""

    def _patched_config(self, **values):
        defaults = {"USE_MOCK_DRIVE": False, "REDIS_CACHE_ENABLED": True, "REDIS_DEFAULT_TTL": 60}
        defaults.update(values)
        return patch.multiple(cache.config, **defaults)

    def test_cache_disabled_in_mock_mode(self):
        with self._patched_config(USE_MOCK_DRIVE=True):
            self.assertFalse(CacheService().enabled)

    def test_cache_disabled_when_redis_cache_enabled_false(self):
        with self._patched_config(REDIS_CACHE_ENABLED=False):
            self.assertFalse(CacheService().enabled)

    def test_cache_operations_when_disabled(self):
        with self._patched_config(REDIS_CACHE_ENABLED=False):
            service = CacheService()
            self.assertIsNone(service.get_from_cache("k"))
            self.assertFalse(service.set_in_cache("k", {"data": "value"}))
            self.assertFalse(service.delete_key("k"))

    @patch("cache.redis.from_url")
    def test_cache_set_and_get(self, mock_from_url):
        mock_client = MagicMock()
        mock_client.get.return_value = '[{"id": 1, "file_name": "invoice.pdf"}]'
        mock_from_url.return_value = mock_client

        with self._patched_config():
            service = CacheService()
            self.assertTrue(service.enabled)

            self.assertTrue(service.set_in_cache("drive_files:ACC-001", [{"id": 1}]))
            mock_client.setex.assert_called_once_with("drive_files:ACC-001", 60, '[{"id": 1}]')

            self.assertEqual(service.get_from_cache("drive_files:ACC-001")[0]["file_name"], "invoice.pdf")

    @patch("cache.redis.from_url")
    def test_delete_key(self, mock_from_url):
        mock_client = MagicMock()
        mock_client.delete.return_value = 1
        mock_from_url.return_value = mock_client

        with self._patched_config():
            service = CacheService()
            self.assertTrue(service.delete_key(drive_files_cache_key("ACC-001")))
            mock_client.delete.assert_called_once_with("drive_files:ACC-001")

    @patch("cache.redis.from_url")
    def test_connection_failure_disables_cache(self, mock_from_url):
        mock_client = MagicMock()
        mock_client.ping.side_effect = ConnectionError("refused")
        mock_from_url.return_value = mock_client

        with self._patched_config():
            service = CacheService()
            self.assertFalse(service.enabled)
            self.assertIsNone(service.client)

    @patch("cache.redis.from_url")
    def test_get_error_returns_none(self, mock_from_url):
        mock_client = MagicMock()
        mock_client.get.side_effect = RuntimeError("connection lost")
        mock_from_url.return_value = mock_client

        with self._patched_config():
            service = CacheService()
            self.assertIsNone(service.get_from_cache("drive_files:ACC-001"))


if __name__ == "__main__":
    unittest.main()
