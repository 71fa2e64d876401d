"""Tests for option source classification and grouping."""

from types import SimpleNamespace

from autoload_analyzer.classifier import (
    UNKNOWN_SOURCE,
    classify,
    group_by_source,
    plugin_slug,
)


class TestPrefixRules:

    def test_core_prefix(self):
        assert classify("wp_foo") == "WordPress Core"

    def test_transients(self):
        assert classify("_transient_bar") == "Transients"
        assert classify("_site_transient_update_core") == "Site Transients"

    def test_widgets_and_theme(self):
        assert classify("widget_recent-posts") == "Widgets"
        assert classify("theme_mods_twentytwenty") == "Theme Settings"

    def test_plugin_bookkeeping(self):
        assert classify("active_plugins") == "Active Plugins"
        assert classify("recently_activated") == "Recently Activated Plugins"
        assert classify("uninstall_plugins") == "Plugin Uninstall Hooks"

    def test_prefix_rules_beat_plugin_match(self):
        """A wp_ option mentioning a plugin slug is still core."""
        assert classify("wp_akismet_stats", ["akismet/akismet.php"]) == "WordPress Core"

    def test_prefix_must_be_at_start(self):
        assert classify("my_wp_thing") == UNKNOWN_SOURCE


class TestPluginMatching:

    def test_hyphenated_slug(self):
        assert classify("my-plugin-settings", ["my-plugin/my-plugin.php"]) == "Plugin: my-plugin"

    def test_hyphen_to_underscore_variant(self):
        assert classify("my_plugin_cache", ["my-plugin/my-plugin.php"]) == "Plugin: my-plugin"

    def test_underscore_to_hyphen_variant(self):
        assert classify("cool-tool-opts", ["cool_tool/main.php"]) == "Plugin: cool_tool"

    def test_case_insensitive(self):
        assert classify("Akismet_Strictness", ["akismet/akismet.php"]) == "Plugin: akismet"

    def test_first_plugin_in_order_wins(self):
        plugins = ["seo/seo.php", "seo-pro/seo-pro.php"]
        assert classify("seo-pro_settings", plugins) == "Plugin: seo"
        assert classify("seo-pro_settings", list(reversed(plugins))) == "Plugin: seo-pro"

    def test_single_file_plugin(self):
        assert plugin_slug("hello.php") == "hello.php"
        assert classify("hello.php_state", ["hello.php"]) == "Plugin: hello.php"

    def test_empty_slug_skipped(self):
        assert classify("anything", ["/weird.php"]) == UNKNOWN_SOURCE

    def test_unknown(self):
        assert classify("totally_unrelated_key", []) == "Unknown source"
        assert classify("totally_unrelated_key", ["akismet/akismet.php"]) == "Unknown source"


def test_group_by_source_keeps_order():
    rows = [
        SimpleNamespace(name="my_plugin_cache"),
        SimpleNamespace(name="wp_user_roles"),
        SimpleNamespace(name="orphan"),
        SimpleNamespace(name="my-plugin-version"),
    ]
    groups = group_by_source(rows, ["my-plugin/my-plugin.php"])

    assert list(groups) == ["Plugin: my-plugin", "WordPress Core", UNKNOWN_SOURCE]
    assert [r.name for r in groups["Plugin: my-plugin"]] == ["my_plugin_cache", "my-plugin-version"]


def test_group_by_source_empty():
    assert group_by_source([], []) == {}
