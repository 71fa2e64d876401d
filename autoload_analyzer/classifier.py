"""Guess which plugin or subsystem owns an option.

Known prefixes are checked first (order matters, first match wins), then
the option name is compared against the slugs of active plugins.

>>> classify("wp_user_roles")
'WordPress Core'
>>> classify("woocommerce_version", ["woocommerce/woocommerce.php"])
'Plugin: woocommerce'
"""

from typing import Iterable, Sequence, TypeVar

UNKNOWN_SOURCE = "Unknown source"

# (prefix, label) pairs, checked in order
PREFIX_RULES = [
    ("wp_", "WordPress Core"),
    ("_transient_", "Transients"),
    ("_site_transient_", "Site Transients"),
    ("widget_", "Widgets"),
    ("theme_mods_", "Theme Settings"),
    ("active_plugins", "Active Plugins"),
    ("recently_activated", "Recently Activated Plugins"),
    ("uninstall_plugins", "Plugin Uninstall Hooks"),
]

T = TypeVar("T")


def plugin_slug(plugin: str) -> str:
    """Directory part of a plugin identifier.

    >>> plugin_slug("akismet/akismet.php")
    'akismet'
    >>> plugin_slug("hello.php")
    'hello.php'
    """
    return plugin.split("/", 1)[0]


def slug_variants(slug: str) -> list[str]:
    """Spellings a plugin might use for its option names.

    >>> slug_variants("my-plugin")
    ['my-plugin', 'my_plugin', 'my-plugin']
    """
    return [slug, slug.replace("-", "_"), slug.replace("_", "-")]


def classify(name: str, active_plugins: Sequence[str] = ()) -> str:
    """Return the source label for option *name*.

    >>> classify("_transient_feed_cache")
    'Transients'
    >>> classify("my-plugin-settings", ["my-plugin/my-plugin.php"])
    'Plugin: my-plugin'
    >>> classify("totally_unrelated_key", [])
    'Unknown source'
    """
    for prefix, label in PREFIX_RULES:
        if name.startswith(prefix):
            return label

    lowered = name.lower()
    for plugin in active_plugins:
        slug = plugin_slug(plugin)
        if not slug:
            continue
        for variant in slug_variants(slug):
            if variant.lower() in lowered:
                return f"Plugin: {slug}"

    return UNKNOWN_SOURCE


def group_by_source(
    rows: Iterable[T], active_plugins: Sequence[str] = ()
) -> dict[str, list[T]]:
    """Group rows (anything with a ``name`` attribute) by source label.

    Groups keep the order in which their first row appears, and rows keep
    their input order inside each group.
    """
    groups: dict[str, list[T]] = {}
    for row in rows:
        label = classify(row.name, active_plugins)
        groups.setdefault(label, []).append(row)
    return groups
