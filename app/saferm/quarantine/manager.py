"""Quarantine manager: the command surface used by the CLI.

Drives delete, restore, list, clean and empty on top of the relocation
engine, the metadata store, the space guard and the retention policy.

Delete runs in three phases:

1. Admission: every path is checked against the safety policy, measured
   and checked for per-item space. Then the batch total is checked. No
   mutation happens before all checks pass.
2. Relocation: items are moved in caller order. A record is written only
   after its entry is safely inside the trash directory.
3. Rollback: if cancellation is observed, every item quarantined by this
   batch is moved back, newest first.
"""

from __future__ import annotations

import logging
import os
import shutil
import stat
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

from saferm.core.cancel import CancellationToken
from saferm.core.config import SafermConfig
from saferm.core.lock import QuarantineLock
from saferm.core.paths import (
    ensure_quarantine_dirs,
    get_meta_dir,
    get_quarantine_root,
    get_trash_dir,
)
from saferm.models.audit import AuditLevel, create_audit_event
from saferm.models.record import FileKind, QuarantineRecord
from saferm.models.results import (
    CleanReport,
    DeleteReport,
    EmptyReport,
    ItemResult,
    ItemStatus,
    ListingEntry,
    RestoreReport,
    RestoreResult,
)
from saferm.quarantine import retention
from saferm.quarantine.audit import AuditLog
from saferm.quarantine.errors import (
    InsufficientSpaceError,
    MetadataWriteError,
    OperationInterrupted,
    QuarantineError,
)
from saferm.quarantine.protected import check_path_policy
from saferm.quarantine.relocate import ProgressCallback, Relocator
from saferm.quarantine.short_id import ShortIdAllocator
from saferm.quarantine.space import SpaceGuard
from saferm.quarantine.store import MetadataStore
from saferm.quarantine.walker import DirectoryWalker

logger = logging.getLogger(__name__)

# Leaves room for "_<time_ns>" and ".meta.tmp" under a 255-byte NAME_MAX
TRASH_NAME_MAX_BYTES = 200

ItemCallback = Callable[[ItemResult], None]
ConfirmCallback = Callable[[Path], bool]


@dataclass(frozen=True, slots=True)
class _PlannedItem:
    """An admitted deletion request, not yet relocated."""

    index: int
    path: Path
    kind: FileKind
    size_bytes: int
    lstat: os.stat_result


def kind_of(st: os.stat_result) -> FileKind:
    """Classify an lstat result."""
    if stat.S_ISLNK(st.st_mode):
        return FileKind.SYMLINK
    if stat.S_ISDIR(st.st_mode):
        return FileKind.DIRECTORY
    return FileKind.FILE


class QuarantineManager:
    """Safe-delete operations against one quarantine root.

    Args:
        root: Quarantine root (holds ``trash/``, ``meta/`` and ``.lock``).
        audit: Audit log to record events in (None disables auditing).
        token: Cancellation token observed by delete and restore.
        enable_clone: Allow copy-on-write clones for cross-device moves.
        clock: Source of the current local time.
    """

    def __init__(
        self,
        root: Path,
        *,
        audit: AuditLog | None = None,
        token: CancellationToken | None = None,
        enable_clone: bool = True,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._root = root
        self._trash_dir = get_trash_dir(root)
        self._meta_dir = get_meta_dir(root)
        self._store = MetadataStore(self._meta_dir, self._trash_dir)
        self._space = SpaceGuard(self._trash_dir)
        self._audit = audit
        self._token = token if token is not None else CancellationToken()
        self._enable_clone = enable_clone
        self._clock = clock

    @classmethod
    def from_config(
        cls,
        config: SafermConfig,
        *,
        token: CancellationToken | None = None,
        audit: AuditLog | None = None,
    ) -> QuarantineManager:
        """Build a manager from user settings."""
        return cls(
            get_quarantine_root(config.quarantine_root),
            audit=audit,
            token=token,
            enable_clone=config.enable_clone,
        )

    @property
    def root(self) -> Path:
        return self._root

    @property
    def trash_dir(self) -> Path:
        return self._trash_dir

    @property
    def meta_dir(self) -> Path:
        return self._meta_dir

    @property
    def store(self) -> MetadataStore:
        return self._store

    @property
    def token(self) -> CancellationToken:
        return self._token

    def ensure_layout(self) -> None:
        """Create the quarantine directories with owner-only access.

        Raises:
            RuntimeError: If the directories cannot be created.
        """
        ensure_quarantine_dirs(self._root)

    # =========================================================================
    # delete
    # =========================================================================

    def delete(
        self,
        paths: Sequence[str | Path],
        expire_days: int,
        *,
        force: bool = False,
        on_item: ItemCallback | None = None,
        progress: ProgressCallback | None = None,
    ) -> DeleteReport:
        """Move paths into quarantine.

        Args:
            paths: Paths to delete, processed in order.
            expire_days: Retention window for the new records.
            force: Disable the safety policy (the quarantine area itself
                stays protected).
            on_item: Called after each item is relocated or fails.
            progress: Called with byte counts as data is copied.

        Returns:
            DeleteReport with one ItemResult per path.

        Raises:
            ValueError: If expire_days is negative.
            InsufficientSpaceError: If the batch total does not fit. Nothing
                has been moved when this is raised.
            QuarantineLockedError: If another process holds the lock.
        """
        if expire_days < 0:
            msg = f"expire_days cannot be negative, got {expire_days}"
            raise ValueError(msg)

        self.ensure_layout()
        with QuarantineLock(self._root):
            return self._delete_locked(paths, expire_days, force, on_item, progress)

    def _delete_locked(
        self,
        paths: Sequence[str | Path],
        expire_days: int,
        force: bool,
        on_item: ItemCallback | None,
        progress: ProgressCallback | None,
    ) -> DeleteReport:
        results: dict[int, ItemResult] = {}

        try:
            planned = self._admit(paths, force, results)
        except OperationInterrupted:
            self._emit(AuditLevel.WARN, "User interrupted operation", {"phase": "admission"})
            return self._finish_interrupted(paths, results, [], 0.0)

        total_required = sum(item.size_bytes for item in planned)
        if planned:
            try:
                self._space.check(total_required, single_item=False)
            except InsufficientSpaceError as e:
                self._emit(AuditLevel.ERROR, "Delete command rejected", {"reason": str(e)})
                raise

        self._emit(
            AuditLevel.INFO,
            "Delete command started",
            {
                "paths_count": len(paths),
                "expire_days": expire_days,
                "force": force,
                "items_to_delete": len(planned),
                "skipped": len(results),
                "total_size_bytes": total_required,
            },
        )
        for result in results.values():
            self._emit(
                AuditLevel.WARN,
                "Skipped deletion",
                {"path": result.path, "reason": result.reason, "forced": force},
            )

        allocator = ShortIdAllocator(self._store.short_ids())
        relocator = Relocator(self._token, enable_clone=self._enable_clone, progress=progress)
        moved: list[QuarantineRecord] = []
        started = time.monotonic()

        for item in planned:
            if self._token.cancelled:
                break
            result, record = self._relocate_one(item, expire_days, force, allocator, relocator)
            results[item.index] = result
            if record is not None:
                moved.append(record)
            if on_item is not None:
                on_item(result)

        duration = time.monotonic() - started

        if self._token.cancelled:
            self._emit(AuditLevel.WARN, "User interrupted operation")
            return self._finish_interrupted(paths, results, moved, duration)

        report = DeleteReport(
            items=tuple(results[i] for i in sorted(results)),
            duration_seconds=duration,
        )
        self._emit(
            AuditLevel.INFO,
            "Delete command completed",
            {
                "success_count": report.succeeded,
                "skipped_count": report.skipped,
                "failed_count": report.failed,
                "total_size_bytes": report.total_bytes,
                "duration_ms": int(duration * 1000),
                "throughput_bytes_per_sec": report.throughput,
            },
        )
        return report

    def _admit(
        self,
        paths: Sequence[str | Path],
        force: bool,
        results: dict[int, ItemResult],
    ) -> list[_PlannedItem]:
        """Run the pre-mutation checks for every path.

        Rejected paths are written to ``results`` as skipped items.
        """
        walker = DirectoryWalker(self._token)
        planned: list[_PlannedItem] = []
        seen: set[Path] = set()

        for index, raw_path in enumerate(paths):
            raw = str(raw_path)
            absolute = Path(os.path.abspath(raw))

            def skip(reason: str, path: Path = absolute, idx: int = index) -> None:
                results[idx] = ItemResult(path=str(path), status=ItemStatus.SKIPPED, reason=reason)

            reason = check_path_policy(raw, absolute, self._root, force=force)
            if reason is not None:
                skip(reason)
                continue

            try:
                st = absolute.lstat()
            except FileNotFoundError:
                skip("Not found")
                continue
            except OSError as e:
                skip(str(e))
                continue

            if absolute in seen:
                skip("Duplicate path in request")
                continue

            kind = kind_of(st)
            if kind == FileKind.DIRECTORY:
                try:
                    size = walker.stats(absolute).total_bytes
                except OperationInterrupted:
                    raise
                except QuarantineError as e:
                    skip(str(e))
                    continue
            else:
                size = st.st_size
                if size > 0:
                    try:
                        self._space.check(size, single_item=True)
                    except InsufficientSpaceError as e:
                        skip(str(e))
                        continue

            seen.add(absolute)
            planned.append(
                _PlannedItem(index=index, path=absolute, kind=kind, size_bytes=size, lstat=st)
            )

        return planned

    def _relocate_one(
        self,
        item: _PlannedItem,
        expire_days: int,
        force: bool,
        allocator: ShortIdAllocator,
        relocator: Relocator,
    ) -> tuple[ItemResult, QuarantineRecord | None]:
        """Quarantine one admitted item and commit its record."""
        path_str = str(item.path)
        trash_id = self._new_trash_id(item.path.name)
        trash_path = self._trash_dir / trash_id
        short_id = allocator.allocate(trash_id, item.kind)

        try:
            relocator.move(item.path, trash_path)
        except QuarantineError as e:
            allocator.release(short_id)
            self._compensate(trash_path, item.path)
            reason = "Interrupted" if isinstance(e, OperationInterrupted) else str(e)
            self._emit(AuditLevel.ERROR, "Delete failed", {"path": path_str, "reason": reason})
            return ItemResult(path=path_str, status=ItemStatus.FAILED, reason=reason), None

        record = QuarantineRecord(
            trash_id=trash_id,
            original_path=path_str,
            trash_path=str(trash_path),
            delete_time=self._clock().replace(microsecond=0),
            expire_days=expire_days,
            file_type=item.kind,
            short_id=short_id,
            size_bytes=item.size_bytes,
            permissions=item.lstat.st_mode,
            owner_uid=item.lstat.st_uid,
            owner_gid=item.lstat.st_gid,
        )

        try:
            self._store.save(record)
        except MetadataWriteError as e:
            allocator.release(short_id)
            self._compensate(trash_path, item.path)
            reason = f"Metadata save failed: {e}"
            self._emit(AuditLevel.ERROR, "Delete failed", {"path": path_str, "reason": reason})
            return ItemResult(path=path_str, status=ItemStatus.FAILED, reason=reason), None

        self._emit(
            AuditLevel.INFO,
            "File deleted",
            {
                "action": "delete",
                "short_id": short_id,
                "trash_id": trash_id,
                "original_path": path_str,
                "backup_path": str(trash_path),
                "file_type": item.kind.label,
                "size_bytes": item.size_bytes,
                "permissions": f"{stat.S_IMODE(item.lstat.st_mode):o}",
                "expire_days": expire_days,
                "forced": force,
            },
        )
        result = ItemResult(
            path=path_str,
            status=ItemStatus.SUCCESS,
            short_id=short_id,
            size_bytes=item.size_bytes,
        )
        return result, record

    def _finish_interrupted(
        self,
        paths: Sequence[str | Path],
        results: dict[int, ItemResult],
        moved: list[QuarantineRecord],
        duration: float,
    ) -> DeleteReport:
        """Roll back the batch and build the interrupted report."""
        rolled_back, failures = self._rollback(moved)

        failed_paths = set(failures)
        for index, result in list(results.items()):
            if not result.success:
                continue
            if result.path in failed_paths:
                results[index] = ItemResult(
                    path=result.path,
                    status=ItemStatus.FAILED,
                    reason=f"Rollback failed; still quarantined as {result.short_id}",
                    short_id=result.short_id,
                    size_bytes=result.size_bytes,
                )
            else:
                results[index] = ItemResult(
                    path=result.path,
                    status=ItemStatus.ROLLED_BACK,
                    reason="Interrupted",
                    size_bytes=result.size_bytes,
                )

        for index, raw_path in enumerate(paths):
            if index not in results:
                results[index] = ItemResult(
                    path=os.path.abspath(str(raw_path)),
                    status=ItemStatus.SKIPPED,
                    reason="Not processed (interrupted)",
                )

        self._emit(
            AuditLevel.WARN,
            "Operation interrupted and rolled back",
            {"rolled_back_count": rolled_back, "rollback_failures": failures},
        )
        return DeleteReport(
            items=tuple(results[i] for i in sorted(results)),
            interrupted=True,
            rolled_back=rolled_back,
            rollback_failures=tuple(failures),
            duration_seconds=duration,
        )

    def _rollback(self, moved: list[QuarantineRecord]) -> tuple[int, list[str]]:
        """Return quarantined items to their original paths, newest first.

        A failed item keeps its record so it stays restorable; the rest of
        the sequence continues.

        Returns:
            Tuple of (number rolled back, original paths that failed).
        """
        restorer = Relocator(CancellationToken(), enable_clone=self._enable_clone)
        rolled_back = 0
        failures: list[str] = []

        for record in reversed(moved):
            trash_path = Path(record.trash_path)
            original = Path(record.original_path)
            try:
                restorer.move(trash_path, original)
            except QuarantineError as e:
                logger.error("Rollback of %s failed: %s", original, e)
                failures.append(record.original_path)
                self._emit(
                    AuditLevel.ERROR,
                    "Rollback failed",
                    {"short_id": record.short_id, "original_path": record.original_path, "reason": str(e)},
                )
                continue

            self._store.delete(record.trash_id)
            rolled_back += 1
            self._emit(
                AuditLevel.INFO,
                "Rollback performed",
                {"short_id": record.short_id, "original_path": record.original_path},
            )

        return rolled_back, failures

    def _compensate(self, partial: Path, original: Path) -> None:
        """Move a partially relocated entry back where it came from."""
        if not os.path.lexists(partial):
            return
        restorer = Relocator(CancellationToken(), enable_clone=self._enable_clone)
        try:
            restorer.move(partial, original)
        except QuarantineError as e:
            logger.error("Partial copy of %s left at %s: %s", original, partial, e)
            self._emit(
                AuditLevel.ERROR,
                "Partial relocation could not be undone",
                {"original_path": str(original), "partial_path": str(partial), "reason": str(e)},
            )

    def _new_trash_id(self, name: str) -> str:
        """Derive an unused trash_id from a file name and the clock.

        Long names are cut to TRASH_NAME_MAX_BYTES so the trash entry and
        its metadata file stay within the file-name length limit.
        """
        name = os.fsdecode(os.fsencode(name or "root")[:TRASH_NAME_MAX_BYTES])
        salt = time.time_ns()
        while True:
            trash_id = f"{name}_{salt}"
            if not os.path.lexists(self._trash_dir / trash_id) and not os.path.lexists(
                self._store.record_path(trash_id)
            ):
                return trash_id
            salt += 1

    # =========================================================================
    # restore
    # =========================================================================

    def restore(
        self,
        identifiers: Sequence[str],
        *,
        force: bool = False,
        target: Path | None = None,
        confirm_overwrite: ConfirmCallback | None = None,
    ) -> RestoreReport:
        """Move quarantined items back.

        Args:
            identifiers: Short IDs or trash IDs.
            force: Overwrite existing targets without asking.
            target: Restore location. An existing directory receives the
                item under its original name; any other path is used as is.
            confirm_overwrite: Asked before replacing an existing target
                when force is not set. Without it, existing targets are
                skipped.

        Returns:
            RestoreReport with one result per identifier.

        Raises:
            QuarantineLockedError: If another process holds the lock.
        """
        self.ensure_layout()
        with QuarantineLock(self._root):
            records = self._store.load_all(validate=False)
            relocator = Relocator(self._token, enable_clone=self._enable_clone)
            results: list[RestoreResult] = []

            for identifier in identifiers:
                if self._token.cancelled:
                    results.append(RestoreResult(identifier=identifier, success=False, error="Interrupted"))
                    continue
                results.append(
                    self._restore_one(identifier, records, relocator, force, target, confirm_overwrite)
                )

        return RestoreReport(results=tuple(results))

    def _restore_one(
        self,
        identifier: str,
        records: dict[str, QuarantineRecord],
        relocator: Relocator,
        force: bool,
        target: Path | None,
        confirm_overwrite: ConfirmCallback | None,
    ) -> RestoreResult:
        record = self._store.get(identifier, records)
        if record is None:
            return RestoreResult(
                identifier=identifier,
                success=False,
                error=f"'{identifier}' not found in trash (check with `srm ls`)",
            )

        trash_path = Path(record.trash_path)
        if not os.path.lexists(trash_path):
            self._store.delete(record.trash_id)
            records.pop(record.trash_id, None)
            return RestoreResult(
                identifier=identifier,
                success=False,
                error=f"Trash file missing for '{identifier}'",
            )

        problem = self._store.validate(record)
        if problem is not None:
            self._store.purge(record.trash_id, problem)
            records.pop(record.trash_id, None)
            return RestoreResult(
                identifier=identifier,
                success=False,
                error=f"Invalid record for '{identifier}': {problem}",
            )

        final_target = self._restore_target(record, target)

        if os.path.lexists(final_target):
            if not force and (confirm_overwrite is None or not confirm_overwrite(final_target)):
                return RestoreResult(
                    identifier=identifier,
                    success=False,
                    target=str(final_target),
                    skipped=True,
                )
            try:
                _remove_entry(final_target)
            except OSError as e:
                return RestoreResult(
                    identifier=identifier,
                    success=False,
                    target=str(final_target),
                    error=f"Cannot replace existing target: {e}",
                )

        try:
            final_target.parent.mkdir(parents=True, exist_ok=True)
            relocator.move(trash_path, final_target)
        except (OSError, QuarantineError) as e:
            self._compensate(final_target, trash_path)
            self._emit(
                AuditLevel.ERROR,
                "Restore failed",
                {"short_id": record.short_id, "target": str(final_target), "reason": str(e)},
            )
            return RestoreResult(
                identifier=identifier,
                success=False,
                target=str(final_target),
                error=f"Failed to restore '{identifier}': {e}",
            )

        _apply_ownership(final_target, record)
        self._store.delete(record.trash_id)
        records.pop(record.trash_id, None)

        self._emit(
            AuditLevel.INFO,
            "File restored",
            {
                "action": "restore",
                "short_id": record.short_id,
                "trash_id": record.trash_id,
                "original_path": record.original_path,
                "restored_path": str(final_target),
                "forced": force,
            },
        )
        return RestoreResult(identifier=identifier, success=True, target=str(final_target))

    @staticmethod
    def _restore_target(record: QuarantineRecord, target: Path | None) -> Path:
        original = Path(record.original_path)
        if target is None:
            return original
        target_abs = Path(os.path.abspath(target))
        if target_abs.is_dir():
            return target_abs / original.name
        return target_abs

    # =========================================================================
    # list / clean / empty
    # =========================================================================

    def list_items(
        self,
        *,
        expired_only: bool = False,
        now: datetime | None = None,
    ) -> tuple[list[ListingEntry], list[ListingEntry]]:
        """Partition live records into active and expired entries.

        Args:
            expired_only: Return no active entries.
            now: Reference time (defaults to the clock).

        Returns:
            Tuple of (active, expired).
        """
        records = self._store.load_all()
        active, expired = retention.partition(records.values(), now or self._clock())
        if expired_only:
            return [], expired
        return active, expired

    def clean(self, *, clean_all: bool = False, now: datetime | None = None) -> CleanReport:
        """Permanently delete expired (or all) quarantined items.

        A quarantined copy that cannot be deleted is reported, and its
        record is removed anyway.

        Args:
            clean_all: Remove every item regardless of expiry.
            now: Reference time (defaults to the clock).

        Returns:
            CleanReport listing the removed records.
        """
        self.ensure_layout()
        with QuarantineLock(self._root):
            records = self._store.load_all()
            selected = retention.select_for_cleanup(records.values(), now or self._clock(), clean_all)
            cleaned: list[QuarantineRecord] = []
            disk_errors: list[str] = []

            for record in selected:
                try:
                    _remove_entry(Path(record.trash_path))
                except OSError as e:
                    logger.warning("Cannot delete quarantined copy %s: %s", record.trash_path, e)
                    disk_errors.append(record.trash_path)

                self._store.delete(record.trash_id)
                cleaned.append(record)
                self._emit(
                    AuditLevel.INFO,
                    "Item cleaned from trash",
                    {
                        "action": "clean",
                        "short_id": record.short_id,
                        "trash_id": record.trash_id,
                        "original_path": record.original_path,
                        "size_bytes": record.size_bytes,
                        "cleaned_all": clean_all,
                    },
                )

        return CleanReport(cleaned=tuple(cleaned), disk_errors=tuple(disk_errors))

    def empty(self) -> EmptyReport:
        """Permanently delete everything in the quarantine area.

        Returns:
            EmptyReport with the number and size of removed items.
        """
        self.ensure_layout()
        with QuarantineLock(self._root):
            records = self._store.load_all()
            report = EmptyReport(
                item_count=len(records),
                total_bytes=sum(r.size_bytes for r in records.values()),
            )
            self._emit(
                AuditLevel.WARN,
                "Trash emptied permanently",
                {"action": "empty", "item_count": report.item_count, "total_size_bytes": report.total_bytes},
            )

            for directory in (self._trash_dir, self._meta_dir):
                try:
                    shutil.rmtree(directory)
                except OSError as e:
                    logger.warning("Cannot remove %s: %s", directory, e)
            self.ensure_layout()

        return report

    def _emit(self, level: AuditLevel, message: str, details: dict[str, Any] | None = None) -> None:
        if self._audit is not None:
            self._audit.record(create_audit_event(level, message, details))


def _remove_entry(path: Path) -> None:
    """Permanently delete a file, symlink or directory tree."""
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    elif os.path.lexists(path):
        path.unlink()


def _apply_ownership(path: Path, record: QuarantineRecord) -> None:
    """Re-apply the permission bits and owner captured at deletion."""
    if record.file_type != FileKind.SYMLINK and record.permissions is not None:
        try:
            os.chmod(path, stat.S_IMODE(record.permissions))
        except OSError as e:
            logger.warning("Cannot restore permissions of %s: %s", path, e)

    if record.owner_uid is None or record.owner_gid is None:
        return
    try:
        current = path.lstat()
        if (current.st_uid, current.st_gid) != (record.owner_uid, record.owner_gid):
            os.lchown(path, record.owner_uid, record.owner_gid)
    except PermissionError:
        logger.debug("Not permitted to restore owner of %s", path)
    except OSError as e:
        logger.warning("Cannot restore owner of %s: %s", path, e)
