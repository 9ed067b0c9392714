"""Durable metadata store for quarantined items.

Each record lives in its own ``<trash_id>.meta`` JSON file. Records are
written to ``<trash_id>.meta.tmp``, synced, and renamed into place so a
crash can never leave a half-written file under the final name.

Reading the store validates every record against the trash directory
and purges the ones that no longer describe a real quarantined entry.
"""

import json
import logging
import os
from pathlib import Path

from saferm.models.record import QuarantineRecord
from saferm.quarantine.errors import (
    MetadataCorruptionError,
    MetadataWriteError,
    NotFoundError,
)
from saferm.quarantine.short_id import ShortIdAllocator

logger = logging.getLogger(__name__)

META_SUFFIX = ".meta"
TMP_SUFFIX = ".meta.tmp"


class MetadataStore:
    """Key-value store of QuarantineRecords keyed by trash_id.

    Args:
        meta_dir: Directory holding ``.meta`` records.
        trash_dir: Directory holding the quarantined entries.
    """

    def __init__(self, meta_dir: Path, trash_dir: Path) -> None:
        self._meta_dir = meta_dir
        self._trash_dir = trash_dir

    @property
    def meta_dir(self) -> Path:
        return self._meta_dir

    def record_path(self, trash_id: str) -> Path:
        """Final path of a record."""
        return self._meta_dir / f"{trash_id}{META_SUFFIX}"

    def temp_path(self, trash_id: str) -> Path:
        """Path a record is staged at before the atomic rename."""
        return self._meta_dir / f"{trash_id}{TMP_SUFFIX}"

    def save(self, record: QuarantineRecord) -> Path:
        """Durably write a record.

        Args:
            record: Record to persist.

        Returns:
            Path of the committed record.

        Raises:
            MetadataWriteError: If the record cannot be written.
        """
        tmp_path = self.temp_path(record.trash_id)
        final_path = self.record_path(record.trash_id)

        try:
            fd = os.open(tmp_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(record.to_json())
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, final_path)
        except OSError as e:
            tmp_path.unlink(missing_ok=True)
            msg = f"Failed to save metadata for {record.trash_id}: {e}"
            raise MetadataWriteError(msg) from e

        self._sync_dir()
        return final_path

    def read(self, trash_id: str) -> QuarantineRecord:
        """Read a single record without validating it against the trash.

        Raises:
            NotFoundError: If no record exists for trash_id.
            MetadataCorruptionError: If the record cannot be decoded.
        """
        path = self.record_path(trash_id)
        try:
            content = path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise NotFoundError(f"No metadata for {trash_id}") from e
        except (OSError, UnicodeDecodeError) as e:
            raise MetadataCorruptionError(f"Cannot read {path.name}: {e}") from e

        try:
            return QuarantineRecord.from_json(trash_id, content)
        except (json.JSONDecodeError, KeyError, ValueError, TypeError) as e:
            raise MetadataCorruptionError(f"Cannot parse {path.name}: {e}") from e

    def load_all(self, *, validate: bool = True) -> dict[str, QuarantineRecord]:
        """Enumerate every valid record, purging the invalid ones.

        A record is purged when it cannot be decoded, when its quarantined
        entry is missing, lies outside the trash directory, or sits on a
        different device. Leftover temporary files are removed. Records
        with a missing or duplicated short_id get a fresh one, persisted.

        Args:
            validate: Check records against the trash directory. Restore
                turns this off so it can report a missing copy itself.

        Returns:
            Mapping of trash_id to record.
        """
        if not self._meta_dir.is_dir():
            return {}

        records: dict[str, QuarantineRecord] = {}

        for path in sorted(self._meta_dir.iterdir()):
            name = path.name
            if name.endswith(TMP_SUFFIX):
                logger.warning("Removing unfinished metadata write: %s", name)
                path.unlink(missing_ok=True)
                continue
            if not name.endswith(META_SUFFIX):
                continue

            trash_id = name[: -len(META_SUFFIX)]
            try:
                record = self.read(trash_id)
            except NotFoundError:
                continue
            except MetadataCorruptionError as e:
                self.purge(trash_id, str(e))
                continue

            problem = self.validate(record) if validate else None
            if problem is not None:
                self.purge(trash_id, problem)
                continue

            records[trash_id] = record

        return self._backfill_short_ids(records)

    def validate(self, record: QuarantineRecord) -> str | None:
        """Check that a record describes a live quarantined entry.

        Returns:
            Reason the record is invalid, or None if it is valid.
        """
        trash_path = Path(record.trash_path)
        if not os.path.lexists(trash_path):
            return "quarantined copy is missing"

        try:
            inside = os.path.samefile(trash_path.parent, self._trash_dir)
            same_device = trash_path.lstat().st_dev == self._trash_dir.stat().st_dev
        except OSError as e:
            return f"cannot inspect quarantined copy: {e}"

        if not inside:
            return "quarantined copy is outside the quarantine area"
        if not same_device:
            return "quarantined copy is on a different device"
        return None

    def get(
        self,
        identifier: str,
        records: dict[str, QuarantineRecord] | None = None,
    ) -> QuarantineRecord | None:
        """Look up a record by short_id, falling back to an exact trash_id.

        Args:
            identifier: Short ID or trash ID.
            records: Pre-loaded records (loads the store when None).

        Returns:
            The matching record, or None if nothing matches.
        """
        if records is None:
            records = self.load_all()

        for record in records.values():
            if record.short_id == identifier:
                return record
        return records.get(identifier)

    def short_ids(self, records: dict[str, QuarantineRecord] | None = None) -> set[str]:
        """Short IDs of all live records."""
        if records is None:
            records = self.load_all()
        return {record.short_id for record in records.values()}

    def delete(self, trash_id: str) -> None:
        """Remove a record. Removing an absent record is not an error."""
        self.record_path(trash_id).unlink(missing_ok=True)

    def purge(self, trash_id: str, reason: str) -> None:
        """Remove an invalid record, logging why."""
        logger.warning("Purging invalid metadata %s: %s", trash_id, reason)
        self.delete(trash_id)

    def _backfill_short_ids(
        self, records: dict[str, QuarantineRecord]
    ) -> dict[str, QuarantineRecord]:
        allocator = ShortIdAllocator()
        needs_id: list[str] = []

        for trash_id in sorted(records):
            short_id = records[trash_id].short_id
            if not short_id or not allocator.reserve(short_id):
                needs_id.append(trash_id)

        for trash_id in needs_id:
            record = records[trash_id]
            short_id = allocator.allocate(trash_id, record.file_type)
            record = record.with_short_id(short_id)
            records[trash_id] = record
            try:
                self.save(record)
            except MetadataWriteError as e:
                logger.warning("Cannot persist short ID for %s: %s", trash_id, e)

        return records

    def _sync_dir(self) -> None:
        """Flush the directory entry of a renamed record."""
        try:
            fd = os.open(self._meta_dir, os.O_RDONLY)
        except OSError:
            return
        try:
            os.fsync(fd)
        except OSError as e:
            logger.debug("Cannot sync %s: %s", self._meta_dir, e)
        finally:
            os.close(fd)
