"""
Autoload Analyzer - inspect and manage autoloaded rows in a settings table.

Lists options grouped by the plugin or subsystem that owns them, shows how
much data each one loads on every request, and lets an operator switch the
autoload flag or remove rows that are no longer autoloaded:
  autoload-analyzer list         - grouped listing with sizes
  autoload-analyzer disable NAME - stop autoloading an option
  autoload-analyzer dashboard    - JSON API for the admin UI
"""

__version__ = "1.3.0"

__all__ = [
    "__version__",
]
