"""SQLite settings store.

One key-value table (``<prefix>options``) with an autoload flag per row,
laid out like the host application's own options table. The store also
keeps an in-memory snapshot of every autoloaded option (the aggregate
cache) which callers must invalidate after changing autoload flags.

WAL mode for concurrent reads, single writer lock for atomic writes.
"""

import json
import logging
import sqlite3
import threading
from contextlib import contextmanager
from enum import Enum
from pathlib import Path
from typing import Iterator, Optional

from pydantic import BaseModel

from autoload_analyzer.config import DEFAULT_TABLE_PREFIX, default_db_path

logger = logging.getLogger(__name__)

ACTIVE_PLUGINS_OPTION = "active_plugins"


class SettingsStoreError(Exception):
    """The backing database could not be opened, read or written."""


class Autoload(str, Enum):
    """Autoload flag as stored in the options table."""

    LOAD = "yes"
    SKIP = "no"


class OptionRecord(BaseModel):
    """Pydantic v2 model for an options row, without its value."""

    name: str
    size: int = 0
    autoload: Autoload


SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS {table} (
    option_id INTEGER PRIMARY KEY AUTOINCREMENT,
    option_name TEXT NOT NULL UNIQUE,
    option_value TEXT NOT NULL DEFAULT '',
    autoload TEXT NOT NULL DEFAULT 'yes'
);

CREATE INDEX IF NOT EXISTS idx_{table}_autoload ON {table}(autoload);
"""

# Byte length of the stored value, not character count
_SIZE_EXPR = "LENGTH(CAST(option_value AS BLOB))"


class SettingsStore:
    """SQLite options table with an aggregate cache of autoloaded rows.

    >>> store = SettingsStore(":memory:")
    >>> store.table
    'wp_options'
    >>> store.query(Autoload.LOAD)
    []
    """

    def __init__(self, db_path: Optional[str] = None, table_prefix: str = DEFAULT_TABLE_PREFIX):
        if db_path is None:
            db_path = default_db_path()

        self.db_path = db_path
        self.table = f"{table_prefix}options"
        self._write_lock = threading.Lock()
        self._local = threading.local()
        self._alloptions: Optional[dict[str, str]] = None

        # Create parent dir + file if needed (skip for :memory:)
        if db_path != ":memory:" and not Path(db_path).exists():
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
            Path(db_path).touch()

        self._init_schema()

    # ------------------------------------------------------------------
    # Connection helpers
    # ------------------------------------------------------------------

    def _get_connection(self) -> sqlite3.Connection:
        if not hasattr(self._local, "connection") or self._local.connection is None:
            conn = sqlite3.connect(self.db_path, timeout=30.0, check_same_thread=False)
            conn.execute("PRAGMA journal_mode=WAL")
            conn.row_factory = sqlite3.Row
            self._local.connection = conn
        return self._local.connection

    @contextmanager
    def _writer(self) -> Iterator[sqlite3.Connection]:
        with self._write_lock:
            try:
                conn = self._get_connection()
            except sqlite3.Error as exc:
                raise SettingsStoreError(str(exc)) from exc
            try:
                yield conn
                conn.commit()
            except sqlite3.Error as exc:
                conn.rollback()
                raise SettingsStoreError(str(exc)) from exc
            except Exception:
                conn.rollback()
                raise

    @contextmanager
    def _reader(self) -> Iterator[sqlite3.Connection]:
        try:
            yield self._get_connection()
        except sqlite3.Error as exc:
            raise SettingsStoreError(str(exc)) from exc

    def _init_schema(self) -> None:
        with self._writer() as conn:
            conn.executescript(SCHEMA_SQL.format(table=self.table))

    def close(self) -> None:
        if hasattr(self._local, "connection") and self._local.connection:
            self._local.connection.close()
            self._local.connection = None

    # ==================================================================
    # Reads
    # ==================================================================

    def query(self, autoload: Autoload) -> list[OptionRecord]:
        """Options with the given autoload flag, largest first.

        >>> store = SettingsStore(":memory:")
        >>> store.add_option("big", "x" * 10)
        >>> store.add_option("small", "x")
        >>> [r.name for r in store.query(Autoload.LOAD)]
        ['big', 'small']
        """
        with self._reader() as conn:
            cursor = conn.execute(
                f"""SELECT option_name AS name, {_SIZE_EXPR} AS size, autoload
                    FROM {self.table}
                    WHERE autoload = ?
                    ORDER BY size DESC, option_name ASC""",
                (Autoload(autoload).value,),
            )
            return [OptionRecord(**dict(row)) for row in cursor.fetchall()]

    def get_option(self, name: str) -> Optional[OptionRecord]:
        """Get one option row (without its value) by name.

        >>> SettingsStore(":memory:").get_option("nonexistent") is None
        True
        """
        with self._reader() as conn:
            cursor = conn.execute(
                f"""SELECT option_name AS name, {_SIZE_EXPR} AS size, autoload
                    FROM {self.table} WHERE option_name = ?""",
                (name,),
            )
            row = cursor.fetchone()
            return OptionRecord(**dict(row)) if row else None

    def get_value(self, name: str) -> Optional[str]:
        """Raw stored value of an option.

        >>> store = SettingsStore(":memory:")
        >>> store.add_option("theme", "dark")
        >>> store.get_value("theme")
        'dark'
        """
        with self._reader() as conn:
            cursor = conn.execute(
                f"SELECT option_value FROM {self.table} WHERE option_name = ?", (name,)
            )
            row = cursor.fetchone()
            return row["option_value"] if row else None

    def load_autoloaded_options(self) -> dict[str, str]:
        """All autoloaded name/value pairs, served from the aggregate cache.

        >>> store = SettingsStore(":memory:")
        >>> store.add_option("a", "1")
        >>> store.load_autoloaded_options()
        {'a': '1'}
        """
        cached = self._alloptions
        if cached is not None:
            return dict(cached)

        with self._reader() as conn:
            cursor = conn.execute(
                f"SELECT option_name, option_value FROM {self.table} WHERE autoload = ?",
                (Autoload.LOAD.value,),
            )
            snapshot = {row["option_name"]: row["option_value"] for row in cursor.fetchall()}
        self._alloptions = snapshot
        return dict(snapshot)

    def invalidate_aggregate_cache(self) -> None:
        """Drop the autoloaded-options snapshot; the next read rebuilds it."""
        self._alloptions = None

    def list_active_plugins(self) -> list[str]:
        """Active plugin identifiers (``slug/file.php``) in stored order.

        Read from the ``active_plugins`` option, a JSON array. Missing or
        corrupt values yield an empty list.

        >>> store = SettingsStore(":memory:")
        >>> store.list_active_plugins()
        []
        >>> store.add_option("active_plugins", '["akismet/akismet.php"]')
        >>> store.list_active_plugins()
        ['akismet/akismet.php']
        """
        raw = self.get_value(ACTIVE_PLUGINS_OPTION)
        if not raw:
            return []
        try:
            plugins = json.loads(raw)
        except (json.JSONDecodeError, TypeError):
            logger.debug("active_plugins is not valid JSON, ignoring")
            return []
        if not isinstance(plugins, list):
            return []
        return [p for p in plugins if isinstance(p, str)]

    # ==================================================================
    # Writes
    # ==================================================================

    def add_option(self, name: str, value: str, autoload: Autoload = Autoload.LOAD) -> None:
        """Insert or replace an option row (seeding and imports)."""
        with self._writer() as conn:
            conn.execute(
                f"""INSERT INTO {self.table} (option_name, option_value, autoload)
                    VALUES (?, ?, ?)
                    ON CONFLICT(option_name) DO UPDATE SET
                        option_value = excluded.option_value,
                        autoload = excluded.autoload""",
                (name, value, Autoload(autoload).value),
            )
        self.invalidate_aggregate_cache()

    def update_autoload(self, name: str, autoload: Autoload) -> int:
        """Set the autoload flag. Returns the number of rows actually changed.

        A row that already carries the target flag counts as unchanged.

        >>> store = SettingsStore(":memory:")
        >>> store.add_option("opt", "v")
        >>> store.update_autoload("opt", Autoload.SKIP)
        1
        >>> store.update_autoload("opt", Autoload.SKIP)
        0
        """
        flag = Autoload(autoload).value
        with self._writer() as conn:
            cursor = conn.execute(
                f"UPDATE {self.table} SET autoload = ? WHERE option_name = ? AND autoload <> ?",
                (flag, name, flag),
            )
            return cursor.rowcount

    def delete_row(self, name: str, only_disabled: bool = False) -> bool:
        """Delete an option row.

        With *only_disabled* the row is removed only while its autoload flag
        is 'no', checked in the same statement as the delete.

        >>> store = SettingsStore(":memory:")
        >>> store.add_option("tmp", "val")
        >>> store.delete_row("tmp", only_disabled=True)
        False
        >>> store.delete_row("tmp")
        True
        >>> store.delete_row("tmp")
        False
        """
        guard = ""
        params: tuple = (name,)
        if only_disabled:
            guard = " AND autoload = ?"
            params = (name, Autoload.SKIP.value)
        with self._writer() as conn:
            cursor = conn.execute(
                f"DELETE FROM {self.table} WHERE option_name = ?" + guard, params
            )
            return cursor.rowcount > 0
