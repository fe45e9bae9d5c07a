"""Regex-based batch renaming of the entries of a single directory."""

import logging
import os
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from rname.errors import InvalidDirectoryError, InvalidPatternError
from rname.models.rename import (
    RenameEvent,
    RenameOptions,
    RenameReason,
    RenameRecord,
    RenameStatus,
    is_plain_name,
)
from rname.processors.backup_store import directory_key


logger = logging.getLogger(__name__)

EventHandler = Callable[[RenameEvent], None]


def split_name(name: str) -> tuple[str, str | None]:
    """Split an entry name at its last dot.

    Returns:
        (base name, extension). The extension is None when the name has no dot,
        and an empty string when the name ends with one.
    """
    base, dot, extension = name.rpartition(".")
    if not dot:
        return name, None
    return base, extension


def join_name(base: str, extension: str | None) -> str:
    """Reassemble a name split by `split_name`."""
    if extension is None:
        return base
    return f"{base}.{extension}"


def validate_directory(directory: str | os.PathLike) -> Path:
    """Return the absolute path of an existing directory.

    Raises:
        InvalidDirectoryError: If the path is missing or not a directory.
    """
    path = Path(os.path.abspath(directory))
    if not path.is_dir():
        raise InvalidDirectoryError(f"Invalid directory path: {path}")
    return path


def compile_pattern(pattern: str, replacement: str = "") -> re.Pattern:
    """Compile a pattern and check that the replacement template fits it.

    Raises:
        InvalidPatternError: If either the pattern or the replacement is invalid.
    """
    try:
        regex = re.compile(pattern)
        # Substituting into an empty string parses the template without a match.
        regex.sub(replacement, "")
    except re.error as e:
        raise InvalidPatternError(f"Invalid pattern `{pattern}`: {e}") from e
    return regex


@dataclass
class BatchResult:
    """Outcome of a process or undo batch."""

    directory: Path
    events: list[RenameEvent] = field(default_factory=list)
    # Successful (original, new) renames; only process fills these
    pairs: list[tuple[str, str]] = field(default_factory=list)

    def _count(self, status: RenameStatus) -> int:
        return sum(1 for event in self.events if event.status is status)

    @property
    def renamed_count(self) -> int:
        return self._count(RenameStatus.RENAMED)

    @property
    def failed_count(self) -> int:
        return self._count(RenameStatus.FAILED)

    @property
    def skipped_count(self) -> int:
        return self._count(RenameStatus.SKIPPED)

    @property
    def record(self) -> RenameRecord:
        """Backup record for the successful renames of this batch."""
        return RenameRecord(directory=directory_key(self.directory), pairs=list(self.pairs))


class RenameEngine:
    """Renames directory entries by substituting a pattern in their base names."""

    def __init__(self, options: RenameOptions | None = None, on_event: EventHandler | None = None) -> None:
        """Initialize the engine.

        Args:
            options: Batch configuration. Defaults to `RenameOptions()`.
            on_event: Called with every event as soon as it happens.
        """
        self.options = options or RenameOptions()
        self.on_event = on_event

    def process(self, directory: str | os.PathLike, pattern: str, replacement: str = "") -> BatchResult:
        """Rename every entry whose base name matches the pattern.

        All matches in the base name are replaced; the extension is kept. Per-entry
        problems are reported as events and never stop the batch.

        Args:
            directory: Directory whose direct entries are renamed.
            pattern: Regular expression searched for in each base name.
            replacement: Substitution template, may reference groups (``\\1``).

        Returns:
            BatchResult with the successful (original, new) pairs in rename order.

        Raises:
            InvalidDirectoryError: If the directory does not exist.
            InvalidPatternError: If the pattern or replacement is invalid.
        """
        path = validate_directory(directory)
        regex = compile_pattern(pattern, replacement)
        result = BatchResult(directory=path)

        # Snapshot the listing so renamed entries are not visited twice
        entries = list(path.iterdir())
        logger.debug("Scanning %d entries in %s for `%s`", len(entries), path, pattern)

        for entry in entries:
            if not self.options.include_directories and entry.is_dir():
                logger.debug("Skipping directory %s", entry.name)
                continue

            base, extension = split_name(entry.name)
            if regex.search(base) is None:
                continue

            new_base = regex.sub(replacement, base)
            new_name = join_name(new_base, extension)

            if self.options.skip_if_result_blank and not new_base.strip():
                event = self._skip(entry.name, new_name, RenameReason.BLANK_RESULT)
            elif new_name == entry.name:
                event = self._skip(entry.name, new_name, RenameReason.UNCHANGED)
            else:
                event = self._rename(path, entry.name, new_name)

            self._report(result, event)
            if event.status is RenameStatus.RENAMED:
                result.pairs.append((entry.name, new_name))

        return result

    def undo(self, directory: str | os.PathLike, record: RenameRecord) -> BatchResult:
        """Rename every recorded entry back to its original name.

        Pairs are replayed in record order and failures do not stop the replay.
        The backup record itself is left alone.

        Raises:
            InvalidDirectoryError: If the directory does not exist.
        """
        path = validate_directory(directory)
        result = BatchResult(directory=path)

        for original, renamed in record.pairs:
            self._report(result, self._rename(path, renamed, original))

        return result

    def _rename(self, directory: Path, old_name: str, new_name: str) -> RenameEvent:
        """Rename one entry without overwriting anything."""
        source = directory / old_name
        target = directory / new_name

        if not is_plain_name(new_name):
            return self._fail(old_name, new_name, RenameReason.INVALID_NAME)

        # exists() itself raises for names the filesystem cannot represent
        try:
            if not (source.exists() or source.is_symlink()):
                return self._fail(old_name, new_name, RenameReason.SOURCE_MISSING)
            if target.exists() or target.is_symlink():
                return self._fail(old_name, new_name, RenameReason.NAME_COLLISION)
            source.rename(target)
        except (OSError, ValueError) as e:
            return self._fail(old_name, new_name, RenameReason.IO_FAILURE, detail=str(e))

        return RenameEvent(source=old_name, target=new_name, status=RenameStatus.RENAMED)

    def _skip(self, source: str, target: str, reason: RenameReason) -> RenameEvent:
        return RenameEvent(source=source, target=target, status=RenameStatus.SKIPPED, reason=reason)

    def _fail(self, source: str, target: str, reason: RenameReason, detail: str = "") -> RenameEvent:
        return RenameEvent(source=source, target=target, status=RenameStatus.FAILED, reason=reason, detail=detail)

    def _report(self, result: BatchResult, event: RenameEvent) -> None:
        result.events.append(event)
        logger.debug("%s", event)
        if self.on_event is not None:
            self.on_event(event)
