"""Rename data models."""

import os
from enum import Enum

from pydantic import BaseModel, Field, field_validator


class RenameStatus(str, Enum):
    """Outcome of a single entry in a batch."""

    RENAMED = "renamed"
    SKIPPED = "skipped"
    FAILED = "failed"


class RenameReason(str, Enum):
    """Why an entry was skipped or failed."""

    UNCHANGED = "unchanged"
    BLANK_RESULT = "blank_result"
    NAME_COLLISION = "name_collision"
    SOURCE_MISSING = "source_missing"
    INVALID_NAME = "invalid_name"
    IO_FAILURE = "io_failure"


def is_plain_name(name: str) -> bool:
    """Check that a name refers to a direct entry of a directory."""
    if name in ("", ".", "..") or "\0" in name:
        return False
    separators = {os.sep, "/"}
    if os.altsep:
        separators.add(os.altsep)
    return not any(sep in name for sep in separators)


class RenameOptions(BaseModel):
    """Configuration for a rename batch."""

    skip_if_result_blank: bool = Field(
        description="Skip entries whose base name would be empty after substitution",
        default=True,
    )
    include_directories: bool = Field(
        description="Treat subdirectories as renamable entries",
        default=False,
    )


class RenameEvent(BaseModel):
    """A single reported outcome of a rename attempt."""

    source: str = Field(description="Entry name before the rename")
    target: str = Field(description="Entry name the rename aimed for")
    status: RenameStatus
    reason: RenameReason | None = None
    detail: str = Field(description="Underlying cause of an I/O failure", default="")

    def __str__(self) -> str:
        text = f"RenameEvent('{self.source}' -> '{self.target}', status={self.status.value}"
        if self.reason is not None:
            text += f", reason={self.reason.value}"
        return text + ")"


class RenameRecord(BaseModel):
    """Backup of the most recent rename batch in a directory."""

    directory: str = Field(description="Sanitized key derived from the directory's absolute path")
    pairs: list[tuple[str, str]] = Field(
        description="(original name, new name) for every successful rename, in order",
        default_factory=list,
    )

    @field_validator("pairs")
    @classmethod
    def _check_plain_names(cls, pairs: list[tuple[str, str]]) -> list[tuple[str, str]]:
        for original, renamed in pairs:
            for name in (original, renamed):
                if not is_plain_name(name):
                    raise ValueError(f"'{name}' is not a plain file name")
        return pairs

    def __len__(self) -> int:
        return len(self.pairs)
