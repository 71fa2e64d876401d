"""Core options the analyzer must never modify or delete.

These belong to the host application itself; flipping or removing one of
them can take the whole site down. The list is fixed per release.

>>> is_protected("siteurl")
True
>>> is_protected("my_plugin_cache")
False
"""

CORE_OPTIONS = frozenset({
    "siteurl", "home", "blogname", "blogdescription", "users_can_register",
    "admin_email", "start_of_week", "use_balanceTags", "use_smilies",
    "require_name_email", "comments_notify", "posts_per_rss", "rss_use_excerpt",
    "mailserver_url", "mailserver_login", "mailserver_pass", "mailserver_port",
    "default_category", "default_comment_status", "default_ping_status",
    "default_pingback_flag", "posts_per_page", "date_format", "time_format",
    "links_updated_date_format", "comment_moderation", "moderation_notify",
    "permalink_structure", "rewrite_rules", "hack_file", "blog_charset",
    "moderation_keys", "active_plugins", "category_base", "ping_sites",
    "comment_max_links", "gmt_offset", "default_email_category", "recently_edited",
    "template", "stylesheet", "comment_registration", "html_type", "use_trackback",
    "default_role", "db_version", "uploads_use_yearmonth_folders", "upload_path",
    "blog_public", "default_link_category", "show_on_front", "tag_base",
    "show_avatars", "avatar_rating", "upload_url_path", "thumbnail_size_w",
    "thumbnail_size_h", "thumbnail_crop", "medium_size_w", "medium_size_h",
    "avatar_default", "large_size_w", "large_size_h", "image_default_link_type",
    "image_default_size", "image_default_align", "close_comments_for_old_posts",
    "close_comments_days_old", "thread_comments", "thread_comments_depth",
    "page_comments", "comments_per_page", "default_comments_page", "comment_order",
    "sticky_posts", "widget_categories", "widget_text", "widget_rss",
    "uninstall_plugins", "timezone_string", "page_for_posts", "page_on_front",
    "default_post_format", "link_manager_enabled", "finished_splitting_shared_terms",
    "site_icon", "medium_large_size_w", "medium_large_size_h",
    "wp_page_for_privacy_policy", "show_comments_cookies_opt_in", "initial_db_version",
})


def is_protected(name: str) -> bool:
    """True if *name* is a core option. Exact, case-sensitive match.

    >>> is_protected("SITEURL")
    False
    """
    return name in CORE_OPTIONS
