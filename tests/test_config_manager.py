"""
Unit Tests for the Configuration Manager
"""

import os
import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from shopsync.config_manager import (
    ConfigManager,
    resolve_store_settings,
    resolve_stores
)


CONFIG_YAML = """
shopify:
  base_url: ${TEST_SHOP_URL:-https://main.example.com/admin/api/2024-01}
  access_token: ${TEST_SHOP_TOKEN}
  stores: [North, South]
sync:
  success_log_limit: 5
"""


class TestConfigManager(unittest.TestCase):
    """Test YAML loading with environment substitution."""

    def setUp(self):
        self.config_dir = tempfile.mkdtemp()
        Path(self.config_dir, 'config.yaml').write_text(CONFIG_YAML, encoding='utf-8')
        ConfigManager._instance = None

    def tearDown(self):
        ConfigManager._instance = None
        shutil.rmtree(self.config_dir)

    def load(self, **env):
        env['CONFIG_DIR'] = self.config_dir
        with patch.dict(os.environ, env):
            return ConfigManager()

    def test_env_substitution(self):
        config = self.load(TEST_SHOP_TOKEN='shpat_secret')

        shopify = config.get_shopify_config()
        self.assertEqual(shopify['access_token'], 'shpat_secret')
        self.assertEqual(shopify['base_url'], 'https://main.example.com/admin/api/2024-01')

    def test_unresolved_placeholder_left_visible(self):
        with patch.dict(os.environ, {}, clear=False):
            os.environ.pop('TEST_SHOP_TOKEN', None)
            config = self.load()

        self.assertEqual(config.get_shopify_config()['access_token'], '${TEST_SHOP_TOKEN}')

    def test_sections(self):
        config = self.load(TEST_SHOP_TOKEN='x')

        self.assertEqual(config.get_stores(), ['North', 'South'])
        self.assertEqual(config.get_sync_config()['success_log_limit'], 5)
        self.assertEqual(config.get_scheduler_config(), {})

    def test_singleton(self):
        self.assertIs(self.load(TEST_SHOP_TOKEN='x'), ConfigManager())


class TestStoreResolution(unittest.TestCase):
    """Test store list and per-store settings."""

    def test_default_store(self):
        self.assertEqual(resolve_stores({}), ['Default'])
        self.assertEqual(resolve_stores({'stores': None}), ['Default'])

    def test_store_override_wins(self):
        config = {
            'base_url': 'https://main.example.com/',
            'access_token': 'global',
            'store_settings': {'Outlet': {'access_token': 'outlet'}}
        }

        settings = resolve_store_settings(config, 'Outlet')

        self.assertEqual(settings, {'base_url': 'https://main.example.com/', 'access_token': 'outlet'})

    def test_global_fallback(self):
        settings = resolve_store_settings({'access_token': 'global'}, 'Unknown')

        self.assertEqual(settings['access_token'], 'global')
        self.assertIsNone(settings['base_url'])


if __name__ == '__main__':
    unittest.main()
