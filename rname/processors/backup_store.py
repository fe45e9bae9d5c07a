"""Backup store for the most recent rename batch of each directory."""

import logging
import os
import re
import tempfile
from collections.abc import Iterable
from pathlib import Path

from pydantic import ValidationError

from rname.errors import BackupCorruptError, BackupIOError, BackupNotFoundError
from rname.models.rename import RenameRecord


logger = logging.getLogger(__name__)

BACKUP_SUFFIX = ".json"

_KEY_INVALID_CHARS = re.compile(r"[^A-Za-z0-9_]")


def directory_key(directory: str | os.PathLike) -> str:
    """Derive the backup key of a directory from its absolute path.

    Every character outside ``[A-Za-z0-9_]`` is dropped, so ``/home/me/docs``
    becomes ``homemedocs``. ``os.path.abspath`` normalizes ``.`` and ``..``,
    which makes the key independent of how a relative path was spelled.
    """
    return _KEY_INVALID_CHARS.sub("", os.path.abspath(directory))


class BackupStore:
    """Stores one rename record per directory as a JSON file.

    Records live in ``backup_dir`` (the system temp directory by default) under
    ``<directory key>.json``. Saving always overwrites, so only the latest batch
    of a directory can be undone. No locking is done: concurrent invocations
    against the same directory race and the last writer wins.
    """

    def __init__(self, backup_dir: str | os.PathLike | None = None) -> None:
        """Initialize the store.

        Args:
            backup_dir: Directory holding the backup files. Defaults to the
                        system temp directory.
        """
        self.backup_dir = Path(backup_dir) if backup_dir else Path(tempfile.gettempdir())

    def path_for(self, directory: str | os.PathLike) -> Path:
        """Return the backup file path for a directory."""
        return self.backup_dir / f"{directory_key(directory)}{BACKUP_SUFFIX}"

    def exists(self, directory: str | os.PathLike) -> bool:
        return self.path_for(directory).is_file()

    def save(self, directory: str | os.PathLike, pairs: Iterable[tuple[str, str]]) -> Path:
        """Persist the rename pairs of a batch, replacing any previous record.

        Args:
            directory: Directory the batch ran in.
            pairs: (original name, new name) tuples in rename order.

        Returns:
            Path of the written backup file.

        Raises:
            BackupIOError: If the backup file cannot be written.
        """
        record = RenameRecord(directory=directory_key(directory), pairs=list(pairs))
        path = self.path_for(directory)

        try:
            self.backup_dir.mkdir(parents=True, exist_ok=True)
            path.write_text(record.model_dump_json(indent=2), encoding="utf-8")
        except OSError as e:
            raise BackupIOError(f"Cannot write backup file {path}: {e}") from e
        logger.debug("Saved %d pair(s) to %s", len(record), path)

        return path

    def load(self, directory: str | os.PathLike) -> RenameRecord:
        """Load the record stored for a directory.

        Raises:
            BackupNotFoundError: If no record is stored for the directory.
            BackupCorruptError: If the stored record cannot be parsed.
            BackupIOError: If the backup file cannot be read.
        """
        key = directory_key(directory)
        path = self.path_for(directory)
        if not path.is_file():
            raise BackupNotFoundError(f"Backup not found for `{key}`")

        try:
            content = path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise BackupCorruptError(f"Backup file {path} is corrupt: {e}") from e
        except OSError as e:
            raise BackupIOError(f"Cannot read backup file {path}: {e}") from e

        try:
            record = RenameRecord.model_validate_json(content)
        except ValidationError as e:
            raise BackupCorruptError(f"Backup file {path} is corrupt: {e}") from e

        if record.directory != key:
            raise BackupCorruptError(
                f"Backup file {path} belongs to `{record.directory}`, expected `{key}`"
            )

        logger.debug("Loaded %d pair(s) from %s", len(record), path)
        return record

    def delete(self, directory: str | os.PathLike) -> bool:
        """Remove the record of a directory. Missing records are not an error.

        Returns:
            True if a backup file was removed.

        Raises:
            BackupIOError: If an existing backup file cannot be removed.
        """
        path = self.path_for(directory)
        existed = path.is_file()
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise BackupIOError(f"Cannot remove backup file {path}: {e}") from e
        if existed:
            logger.debug("Deleted %s", path)
        return existed
