"""Autoload manager: listing, toggling and deleting options.

The manager holds no state of its own. The settings store and the
active-plugin source are injected, so every operation can be exercised
against an in-memory store. Callers are expected to have checked the admin
capability already; the manager only does domain validation.

Single operations raise an ``AutoloadError`` subclass on failure. Bulk
operations never raise for a single bad item: each item lands in exactly
one bucket of the returned ``BulkResult``.
"""

import logging
from enum import Enum
from typing import Iterable, Optional, Protocol

from pydantic import BaseModel, computed_field

from autoload_analyzer.classifier import group_by_source
from autoload_analyzer.core_options import is_protected
from autoload_analyzer.errors import (
    InvalidStateError,
    NotFoundError,
    ProtectedError,
    StoreError,
    ValidationError,
)
from autoload_analyzer.formatting import format_bytes
from autoload_analyzer.store import Autoload, OptionRecord, SettingsStore, SettingsStoreError

logger = logging.getLogger(__name__)

# Skip reasons reported by bulk operations
REASON_EMPTY = "empty"
REASON_PROTECTED = "protected"
REASON_NOT_FOUND = "not found"
REASON_AUTOLOAD_ENABLED = "autoload enabled"


class Direction(str, Enum):
    """Which way a toggle moves the autoload flag."""

    ENABLE = "enable"
    DISABLE = "disable"

    @property
    def target(self) -> Autoload:
        """Autoload value this direction writes.

        >>> Direction.DISABLE.target
        <Autoload.SKIP: 'no'>
        """
        return Autoload.LOAD if self is Direction.ENABLE else Autoload.SKIP


class PluginSource(Protocol):
    def list_active_plugins(self) -> list[str]: ...


class OptionStore(Protocol):
    """What the manager needs from a settings store.

    Implementations raise ``SettingsStoreError`` for any backend failure.
    """

    def query(self, autoload: Autoload) -> list[OptionRecord]: ...

    def get_option(self, name: str) -> Optional[OptionRecord]: ...

    def update_autoload(self, name: str, autoload: Autoload) -> int: ...

    def delete_row(self, name: str, only_disabled: bool = False) -> bool: ...

    def invalidate_aggregate_cache(self) -> None: ...


# ---------------------------------------------------------------------------
# Pydantic v2 result models
# ---------------------------------------------------------------------------


class BulkIssue(BaseModel):
    name: str
    reason: str


class BulkResult(BaseModel):
    """Outcome of one bulk request.

    >>> r = BulkResult(action="delete")
    >>> r.ok, r.message
    (False, 'No options were deleted')
    """

    action: str
    succeeded: int = 0
    unchanged: list[str] = []
    skipped: list[BulkIssue] = []
    failed: list[BulkIssue] = []

    @computed_field
    @property
    def ok(self) -> bool:
        """Failure-level only when nothing at all succeeded."""
        return self.succeeded > 0

    @computed_field
    @property
    def message(self) -> str:
        verb = {
            "enable": "Autoload enabled for",
            "disable": "Autoload disabled for",
            "delete": "Deleted",
        }.get(self.action, "Processed")
        if not self.ok:
            none_verb = "deleted" if self.action == "delete" else "changed"
            return f"No options were {none_verb}"
        text = f"{verb} {self.succeeded} option(s)"
        extras = []
        if self.unchanged:
            extras.append(f"{len(self.unchanged)} unchanged")
        if self.skipped:
            extras.append(f"{len(self.skipped)} skipped")
        if self.failed:
            extras.append(f"{len(self.failed)} failed")
        if extras:
            text += f" ({', '.join(extras)})"
        return text

    def skip(self, name: str, reason: str) -> None:
        self.skipped.append(BulkIssue(name=name, reason=reason))

    def fail(self, name: str, reason: str) -> None:
        self.failed.append(BulkIssue(name=name, reason=reason))


class OptionRow(BaseModel):
    name: str
    size: int
    size_display: str
    autoload: Autoload
    protected: bool


class SourceGroup(BaseModel):
    source: str
    count: int
    total_size: int
    options: list[OptionRow]


class OptionListing(BaseModel):
    """Options with one autoload flag, grouped by source."""

    autoload: Autoload
    total_count: int
    total_size: int
    total_size_display: str
    groups: list[SourceGroup]


# ---------------------------------------------------------------------------
# Manager
# ---------------------------------------------------------------------------


def _clean_name(name: Optional[str]) -> str:
    """Normalize an incoming option name; blank input becomes ''.

    >>> _clean_name("  my_option ")
    'my_option'
    >>> _clean_name(None)
    ''
    """
    return (name or "").strip()


class AutoloadManager:
    """Validates and applies autoload changes and deletions.

    >>> mgr = AutoloadManager(SettingsStore(":memory:"))
    >>> mgr.list_by_autoload(Autoload.LOAD).total_count
    0
    """

    def __init__(self, store: OptionStore, plugins: Optional[PluginSource] = None):
        self.store = store
        self.plugins = plugins if plugins is not None else store

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    def list_by_autoload(self, autoload: Autoload) -> OptionListing:
        """Options carrying *autoload*, grouped by source, largest first."""
        autoload = Autoload(autoload)
        try:
            records = self.store.query(autoload)
            active_plugins = self.plugins.list_active_plugins()
        except SettingsStoreError as exc:
            logger.warning("Option listing failed: %s", exc)
            raise StoreError(f"Database error: {exc}") from exc

        groups = []
        for source, rows in group_by_source(records, active_plugins).items():
            group_size = sum(r.size for r in rows)
            groups.append(SourceGroup(
                source=source,
                count=len(rows),
                total_size=group_size,
                options=[self._option_row(r) for r in rows],
            ))

        total_size = sum(r.size for r in records)
        return OptionListing(
            autoload=autoload,
            total_count=len(records),
            total_size=total_size,
            total_size_display=format_bytes(total_size),
            groups=groups,
        )

    @staticmethod
    def _option_row(record: OptionRecord) -> OptionRow:
        return OptionRow(
            name=record.name,
            size=record.size,
            size_display=format_bytes(record.size),
            autoload=record.autoload,
            protected=is_protected(record.name),
        )

    # ------------------------------------------------------------------
    # Toggle
    # ------------------------------------------------------------------

    def toggle_autoload(self, name: str, direction: Direction) -> str:
        """Switch one option's autoload flag. Returns a confirmation message."""
        direction = Direction(direction)
        name = _clean_name(name)
        if not name:
            raise ValidationError("Option name is required")
        if is_protected(name):
            raise ProtectedError(f"Core option '{name}' cannot be modified")

        try:
            changed = self.store.update_autoload(name, direction.target)
        except SettingsStoreError as exc:
            logger.warning("Autoload update failed for %s: %s", name, exc)
            raise StoreError(f"Database update failed: {exc}") from exc

        if changed == 0:
            raise NotFoundError(
                f"Option '{name}' not found or autoload is already '{direction.target.value}'"
            )

        self.store.invalidate_aggregate_cache()
        logger.info("Autoload %sd for option %s", direction.value, name)
        if direction is Direction.DISABLE:
            return f"Autoload disabled for option: {name}"
        return f"Autoload enabled for option: {name}"

    def bulk_toggle_autoload(self, names: Iterable[str], direction: Direction) -> BulkResult:
        """Toggle many options; per-item problems are collected, not raised.

        A write that changes nothing is followed by a lookup so a missing row
        is reported as skipped ("not found") and an option already at the
        target flag goes to ``unchanged``.
        """
        direction = Direction(direction)
        result = BulkResult(action=direction.value)

        for raw in names:
            name = _clean_name(raw)
            if not name:
                result.skip(raw or "", REASON_EMPTY)
                continue
            if is_protected(name):
                result.skip(name, REASON_PROTECTED)
                continue

            try:
                changed = self.store.update_autoload(name, direction.target)
                if changed > 0:
                    result.succeeded += 1
                    continue
                exists = self.store.get_option(name) is not None
            except SettingsStoreError as exc:
                logger.warning("Bulk autoload update failed for %s: %s", name, exc)
                result.fail(name, str(exc))
                continue

            if exists:
                result.unchanged.append(name)
            else:
                result.skip(name, REASON_NOT_FOUND)

        if result.succeeded:
            self.store.invalidate_aggregate_cache()
        logger.info(
            "Bulk %s: %d succeeded, %d unchanged, %d skipped, %d failed",
            direction.value,
            result.succeeded,
            len(result.unchanged),
            len(result.skipped),
            len(result.failed),
        )
        return result

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    def delete_option(self, name: str) -> str:
        """Delete one option. Only options with autoload disabled qualify.

        The autoload check is part of the delete statement itself; the row is
        read back only to explain why nothing was deleted.
        """
        name = _clean_name(name)
        if not name:
            raise ValidationError("Option name is required")
        if is_protected(name):
            raise ProtectedError(f"Core option '{name}' cannot be deleted")

        try:
            deleted = self.store.delete_row(name, only_disabled=True)
            record = None if deleted else self.store.get_option(name)
        except SettingsStoreError as exc:
            logger.warning("Delete failed for %s: %s", name, exc)
            raise StoreError(f"Database delete failed: {exc}") from exc

        if not deleted:
            if record is None:
                raise NotFoundError(f"Option '{name}' not found")
            raise InvalidStateError(
                f"Option '{name}' is still autoloaded; disable autoload before deleting it"
            )

        logger.info("Deleted option %s", name)
        return f"Option deleted: {name}"

    def bulk_delete_options(self, names: Iterable[str]) -> BulkResult:
        """Delete many options with the same per-item rules as delete_option."""
        result = BulkResult(action="delete")

        for raw in names:
            name = _clean_name(raw)
            if not name:
                result.skip(raw or "", REASON_EMPTY)
                continue
            if is_protected(name):
                result.skip(name, REASON_PROTECTED)
                continue

            try:
                if self.store.delete_row(name, only_disabled=True):
                    result.succeeded += 1
                    continue
                exists = self.store.get_option(name) is not None
            except SettingsStoreError as exc:
                logger.warning("Bulk delete failed for %s: %s", name, exc)
                result.fail(name, str(exc))
                continue

            result.skip(name, REASON_AUTOLOAD_ENABLED if exists else REASON_NOT_FOUND)

        logger.info(
            "Bulk delete: %d succeeded, %d skipped, %d failed",
            result.succeeded,
            len(result.skipped),
            len(result.failed),
        )
        return result
