"""Unit tests for BackupStore."""

import json
import tempfile
from pathlib import Path

import pytest

from rname.errors import BackupCorruptError, BackupIOError, BackupNotFoundError
from rname.processors.backup_store import BackupStore, directory_key


@pytest.fixture
def backup_dir(tmp_path):
    return tmp_path / "backups"


@pytest.fixture
def target_dir(tmp_path):
    directory = tmp_path / "target"
    directory.mkdir()
    return directory


@pytest.fixture
def store(backup_dir):
    return BackupStore(backup_dir=backup_dir)


class TestDirectoryKey:
    """Tests for directory key derivation."""

    def test_strips_non_word_characters(self):
        """Test that only ASCII letters, digits and underscores are kept."""
        assert directory_key("/home/user/my-docs_2024") == "homeusermydocs_2024"

    def test_same_key_for_relative_spellings(self, tmp_path, monkeypatch):
        """Test that different spellings of one directory give the same key."""
        (tmp_path / "sub").mkdir()
        monkeypatch.chdir(tmp_path)

        assert directory_key("sub") == directory_key("./sub/../sub")
        assert directory_key("sub") == directory_key(tmp_path / "sub")

    def test_different_directories_give_different_keys(self, tmp_path):
        """Test that sibling directories do not share a key."""
        assert directory_key(tmp_path / "one") != directory_key(tmp_path / "two")


class TestBackupStore:
    """Tests for BackupStore class."""

    def test_defaults_to_system_temp_directory(self):
        """Test that the temp directory is used when no location is given."""
        store = BackupStore()

        assert store.backup_dir == Path(tempfile.gettempdir())

    def test_path_for_uses_key_and_json_suffix(self, store, backup_dir, target_dir):
        """Test the backup file naming."""
        assert store.path_for(target_dir) == backup_dir / f"{directory_key(target_dir)}.json"

    def test_save_writes_backup_format(self, store, target_dir):
        """Test that save writes the documented JSON layout."""
        path = store.save(target_dir, [("1t2e3s4t5.txt", "_t_e_s_t_.txt")])

        data = json.loads(path.read_text(encoding="utf-8"))
        assert data == {
            "directory": directory_key(target_dir),
            "pairs": [["1t2e3s4t5.txt", "_t_e_s_t_.txt"]],
        }

    def test_save_empty_pairs_still_writes_record(self, store, target_dir):
        """Test that a batch without renames still leaves a record."""
        store.save(target_dir, [])

        assert store.exists(target_dir)
        assert store.load(target_dir).pairs == []

    def test_save_overwrites_previous_record(self, store, target_dir):
        """Test that only the latest batch is kept."""
        store.save(target_dir, [("a.txt", "b.txt")])
        store.save(target_dir, [("c.txt", "d.txt")])

        assert store.load(target_dir).pairs == [("c.txt", "d.txt")]

    def test_load_preserves_pair_order(self, store, target_dir):
        """Test that pairs come back in rename order."""
        pairs = [("c.txt", "z.txt"), ("a.txt", "y.txt"), ("b.txt", "x.txt")]
        store.save(target_dir, pairs)

        assert store.load(target_dir).pairs == pairs

    def test_load_missing_raises_not_found(self, store, target_dir):
        """Test that loading without a record raises BackupNotFoundError."""
        with pytest.raises(BackupNotFoundError, match="Backup not found"):
            store.load(target_dir)

    def test_load_malformed_json_raises_corrupt(self, store, backup_dir, target_dir):
        """Test that unparseable content raises BackupCorruptError."""
        backup_dir.mkdir()
        store.path_for(target_dir).write_text("{not json", encoding="utf-8")

        with pytest.raises(BackupCorruptError):
            store.load(target_dir)

    def test_load_wrong_shape_raises_corrupt(self, store, backup_dir, target_dir):
        """Test that valid JSON with the wrong layout raises BackupCorruptError."""
        backup_dir.mkdir()
        store.path_for(target_dir).write_text('{"pairs": "nope"}', encoding="utf-8")

        with pytest.raises(BackupCorruptError):
            store.load(target_dir)

    def test_load_unsafe_names_raises_corrupt(self, store, backup_dir, target_dir):
        """Test that names pointing outside the directory are rejected."""
        backup_dir.mkdir()
        payload = {"directory": directory_key(target_dir), "pairs": [["a.txt", "../a.txt"]]}
        store.path_for(target_dir).write_text(json.dumps(payload), encoding="utf-8")

        with pytest.raises(BackupCorruptError):
            store.load(target_dir)

    def test_load_key_mismatch_raises_corrupt(self, store, backup_dir, target_dir):
        """Test that a record for another directory is rejected."""
        backup_dir.mkdir()
        payload = {"directory": "somewhereelse", "pairs": []}
        store.path_for(target_dir).write_text(json.dumps(payload), encoding="utf-8")

        with pytest.raises(BackupCorruptError, match="somewhereelse"):
            store.load(target_dir)

    def test_delete_removes_record(self, store, target_dir):
        """Test that delete removes the backup file."""
        store.save(target_dir, [("a.txt", "b.txt")])

        assert store.delete(target_dir) is True
        assert not store.exists(target_dir)

    def test_delete_is_idempotent(self, store, target_dir):
        """Test that deleting a missing record is not an error."""
        assert store.delete(target_dir) is False
        assert store.delete(target_dir) is False

    def test_save_unwritable_location_raises_io_error(self, tmp_path, target_dir):
        """Test that a backup location that cannot be created raises BackupIOError."""
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        store = BackupStore(backup_dir=blocker / "sub")

        with pytest.raises(BackupIOError, match="Cannot write backup file"):
            store.save(target_dir, [("a.txt", "b.txt")])

    def test_load_read_failure_raises_io_error(self, store, target_dir, monkeypatch):
        """Test that an unreadable backup file raises BackupIOError."""
        store.save(target_dir, [("a.txt", "b.txt")])

        def failing_read_text(self, *args, **kwargs):
            raise PermissionError("permission denied")

        monkeypatch.setattr(Path, "read_text", failing_read_text)

        with pytest.raises(BackupIOError, match="Cannot read backup file"):
            store.load(target_dir)

    def test_delete_failure_raises_io_error(self, store, target_dir, monkeypatch):
        """Test that a backup file that cannot be removed raises BackupIOError."""
        store.save(target_dir, [("a.txt", "b.txt")])

        def failing_unlink(self, *args, **kwargs):
            raise PermissionError("permission denied")

        monkeypatch.setattr(Path, "unlink", failing_unlink)

        with pytest.raises(BackupIOError, match="Cannot remove backup file"):
            store.delete(target_dir)
