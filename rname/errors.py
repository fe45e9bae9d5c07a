"""Invocation-level errors.

Per-file problems (collisions, missing sources, failed moves) are not raised;
they are reported as ``RenameEvent`` objects so a batch always runs to the end.
"""


class RnameError(Exception):
    """Base class for errors that abort a whole invocation."""


class InvalidDirectoryError(RnameError, NotADirectoryError):
    """The target path does not exist or is not a directory."""


class InvalidPatternError(RnameError, ValueError):
    """The pattern or its replacement template cannot be compiled."""


class BackupNotFoundError(RnameError, FileNotFoundError):
    """No backup record is stored for the directory."""


class BackupCorruptError(RnameError, ValueError):
    """The stored backup record cannot be parsed."""


class BackupIOError(RnameError, OSError):
    """The backup file could not be written, read or removed."""
