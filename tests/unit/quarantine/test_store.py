"""Unit tests for MetadataStore.

Tests atomic record writes, enumeration with self-healing, short ID
backfill and lookups.
"""

import json
import stat
from datetime import datetime
from pathlib import Path
from unittest.mock import patch

import pytest
from saferm.models.record import FileKind, QuarantineRecord
from saferm.quarantine.errors import MetadataCorruptionError, MetadataWriteError, NotFoundError
from saferm.quarantine.store import MetadataStore


@pytest.fixture
def store(tmp_path: Path) -> MetadataStore:
    meta_dir = tmp_path / "q" / "meta"
    trash_dir = tmp_path / "q" / "trash"
    meta_dir.mkdir(parents=True)
    trash_dir.mkdir(parents=True)
    return MetadataStore(meta_dir, trash_dir)


def quarantine_file(store: MetadataStore, trash_id: str, short_id: str = "") -> QuarantineRecord:
    """Create a trash entry plus a matching (unsaved) record."""
    trash_dir = store.meta_dir.parent / "trash"
    trash_path = trash_dir / trash_id
    trash_path.write_text(trash_id)
    return QuarantineRecord(
        trash_id=trash_id,
        original_path=f"/home/user/{trash_id}",
        trash_path=str(trash_path),
        delete_time=datetime(2026, 2, 1, 9, 30, 0),
        expire_days=7,
        file_type=FileKind.FILE,
        short_id=short_id,
        size_bytes=len(trash_id),
    )


class TestSave:
    """Tests for MetadataStore.save."""

    def test_save_and_read(self, store: MetadataStore) -> None:
        record = quarantine_file(store, "a.txt_1", "fa00001")

        path = store.save(record)

        assert path == store.meta_dir / "a.txt_1.meta"
        assert stat.S_IMODE(path.stat().st_mode) == 0o600
        assert store.read("a.txt_1") == record

    def test_no_temp_file_after_save(self, store: MetadataStore) -> None:
        store.save(quarantine_file(store, "a.txt_1", "fa00001"))
        assert not store.temp_path("a.txt_1").exists()

    def test_failed_rename_leaves_no_record(self, store: MetadataStore) -> None:
        """A failure before the rename never yields a file at the final name."""
        record = quarantine_file(store, "a.txt_1", "fa00001")

        with (
            patch("saferm.quarantine.store.os.replace", side_effect=OSError("disk full")),
            pytest.raises(MetadataWriteError, match="disk full"),
        ):
            store.save(record)

        assert not store.record_path("a.txt_1").exists()
        assert not store.temp_path("a.txt_1").exists()


class TestRead:
    """Tests for MetadataStore.read."""

    def test_missing(self, store: MetadataStore) -> None:
        with pytest.raises(NotFoundError):
            store.read("nothing_1")

    def test_corrupt(self, store: MetadataStore) -> None:
        store.record_path("bad_1").write_text("{not json")
        with pytest.raises(MetadataCorruptionError):
            store.read("bad_1")

    def test_invalid_utf8(self, store: MetadataStore) -> None:
        store.record_path("bad_1").write_bytes(b'{"original_path": "\xff"}')
        with pytest.raises(MetadataCorruptionError, match="Cannot read"):
            store.read("bad_1")


class TestLoadAll:
    """Tests for enumeration and self-healing."""

    def test_returns_valid_records(self, store: MetadataStore) -> None:
        record = quarantine_file(store, "a.txt_1", "fa00001")
        store.save(record)

        assert store.load_all() == {"a.txt_1": record}

    def test_leftover_temp_file_removed(self, store: MetadataStore) -> None:
        """An interrupted write (temp file only) is cleaned up, never loaded."""
        quarantine_file(store, "a.txt_1")
        store.temp_path("a.txt_1").write_text('{"original_path": "/home/u')

        assert store.load_all() == {}
        assert not store.temp_path("a.txt_1").exists()
        assert not store.record_path("a.txt_1").exists()

    def test_corrupt_record_purged(self, store: MetadataStore) -> None:
        store.record_path("bad_1").write_text("garbage")

        assert store.load_all() == {}
        assert not store.record_path("bad_1").exists()

    def test_undecodable_record_purged(self, store: MetadataStore) -> None:
        store.record_path("bad_1").write_bytes(b'{"original_path": "\xff"}')

        assert store.load_all() == {}
        assert not store.record_path("bad_1").exists()

    def test_missing_copy_purged(self, store: MetadataStore) -> None:
        record = quarantine_file(store, "gone_1", "fa00001")
        store.save(record)
        Path(record.trash_path).unlink()

        assert store.load_all() == {}
        assert not store.record_path("gone_1").exists()

    def test_missing_copy_kept_without_validation(self, store: MetadataStore) -> None:
        record = quarantine_file(store, "gone_1", "fa00001")
        store.save(record)
        Path(record.trash_path).unlink()

        assert "gone_1" in store.load_all(validate=False)
        assert store.record_path("gone_1").exists()

    def test_copy_outside_trash_purged(self, store: MetadataStore, tmp_path: Path) -> None:
        """A record pointing outside the trash directory is never trusted."""
        outside = tmp_path / "elsewhere.txt"
        outside.write_text("precious")
        record = quarantine_file(store, "evil_1", "fa00001")
        data = record.to_dict()
        data["trash_path"] = str(outside)
        store.record_path("evil_1").write_text(json.dumps(data))

        assert store.load_all() == {}
        assert outside.read_text() == "precious"

    def test_other_device_purged(self, store: MetadataStore) -> None:
        record = quarantine_file(store, "a.txt_1", "fa00001")
        store.save(record)

        with patch.object(MetadataStore, "validate", return_value="quarantined copy is on a different device"):
            assert store.load_all() == {}

    def test_missing_short_id_backfilled(self, store: MetadataStore) -> None:
        store.save(quarantine_file(store, "a.txt_1", ""))

        records = store.load_all()

        short_id = records["a.txt_1"].short_id
        assert short_id.startswith("f")
        assert store.read("a.txt_1").short_id == short_id

    def test_duplicate_short_ids_repaired(self, store: MetadataStore) -> None:
        store.save(quarantine_file(store, "a.txt_1", "fdup000"))
        store.save(quarantine_file(store, "b.txt_2", "fdup000"))

        records = store.load_all()

        assert records["a.txt_1"].short_id == "fdup000"
        assert records["b.txt_2"].short_id != "fdup000"

    def test_missing_meta_dir(self, tmp_path: Path) -> None:
        assert MetadataStore(tmp_path / "none", tmp_path / "trash").load_all() == {}


class TestLookup:
    """Tests for get and short_ids."""

    def test_get_by_short_id_or_trash_id(self, store: MetadataStore) -> None:
        record = quarantine_file(store, "a.txt_1", "fa00001")
        store.save(record)
        records = store.load_all()

        assert store.get("fa00001", records) == record
        assert store.get("a.txt_1", records) == record
        assert store.get("fzzzzzz", records) is None

    def test_short_ids(self, store: MetadataStore) -> None:
        store.save(quarantine_file(store, "a.txt_1", "fa00001"))
        store.save(quarantine_file(store, "b.txt_1", "fb00001"))

        assert store.short_ids() == {"fa00001", "fb00001"}

    def test_delete_is_idempotent(self, store: MetadataStore) -> None:
        store.save(quarantine_file(store, "a.txt_1", "fa00001"))

        store.delete("a.txt_1")
        store.delete("a.txt_1")

        assert not store.record_path("a.txt_1").exists()
