"""Shared fixtures for autoload analyzer tests."""

import pytest

from autoload_analyzer.engine import AutoloadManager
from autoload_analyzer.store import Autoload, SettingsStore


@pytest.fixture
def store():
    """In-memory settings store, closed after the test."""
    s = SettingsStore(":memory:")
    yield s
    s.close()


@pytest.fixture
def manager(store):
    """AutoloadManager over the in-memory store."""
    return AutoloadManager(store)


@pytest.fixture
def seeded_store(store):
    """Store with a realistic mix of core, plugin and transient options."""
    store.add_option("siteurl", "https://example.com")
    store.add_option("active_plugins", '["my-plugin/my-plugin.php", "akismet/akismet.php"]')
    store.add_option("wp_user_roles", "r" * 2048)
    store.add_option("_transient_feed_cache", "f" * 300)
    store.add_option("my_plugin_cache", "c" * 5000)
    store.add_option("akismet_strictness", "1")
    store.add_option("orphaned_setting", "o" * 40)
    store.add_option("old_plugin_data", "d" * 100, autoload=Autoload.SKIP)
    store.add_option("stale_cache", "s" * 10, autoload=Autoload.SKIP)
    return store


@pytest.fixture
def file_store(tmp_path):
    """File-backed store for tests that cross threads (TestClient)."""
    s = SettingsStore(str(tmp_path / "options.db"))
    yield s
    s.close()
