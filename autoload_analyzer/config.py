"""Environment-driven configuration for the analyzer."""

import os
import re
from pathlib import Path
from typing import Optional

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8321
DEFAULT_TABLE_PREFIX = "wp_"

_PREFIX_RE = re.compile(r"^[A-Za-z0-9_]*$")


def default_db_path() -> str:
    """Return default database path: ~/.autoload-analyzer/options.db"""
    return str(Path.home() / ".autoload-analyzer" / "options.db")


class AnalyzerConfig:
    """Settings for the store, the dashboard server and the admin gate.

    >>> cfg = AnalyzerConfig(db_path=":memory:")
    >>> cfg.options_table
    'wp_options'
    """

    def __init__(
        self,
        db_path: Optional[str] = None,
        table_prefix: str = DEFAULT_TABLE_PREFIX,
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
        admin_token: Optional[str] = None,
    ):
        if not _PREFIX_RE.match(table_prefix):
            raise ValueError(
                f"Invalid table prefix {table_prefix!r}: use letters, digits and underscores"
            )
        if not 1 <= port <= 65535:
            raise ValueError(f"Invalid port {port}: must be between 1 and 65535")

        self.db_path = db_path or default_db_path()
        self.table_prefix = table_prefix
        self.host = host
        self.port = port
        self.admin_token = admin_token or None

    @property
    def options_table(self) -> str:
        return f"{self.table_prefix}options"

    @classmethod
    def from_env(cls) -> "AnalyzerConfig":
        """Build config from AOA_* environment variables.

        Raises ValueError when a variable holds an unusable value.
        """
        raw_port = os.environ.get("AOA_PORT", str(DEFAULT_PORT))
        try:
            port = int(raw_port)
        except ValueError:
            raise ValueError(f"AOA_PORT must be an integer, got {raw_port!r}")

        return cls(
            db_path=os.environ.get("AOA_DB_PATH") or None,
            table_prefix=os.environ.get("AOA_TABLE_PREFIX", DEFAULT_TABLE_PREFIX),
            host=os.environ.get("AOA_HOST", DEFAULT_HOST),
            port=port,
            admin_token=os.environ.get("AOA_ADMIN_TOKEN"),
        )
