"""Data models for parsed status listings."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class FileState(str, Enum):
    UNMODIFIED = "unmodified"
    MODIFIED = "modified"
    TYPE_CHANGED = "type_changed"
    ADDED = "added"
    DELETED = "deleted"
    RENAMED = "renamed"
    COPIED = "copied"
    UPDATED_BUT_UNMERGED = "updated_but_unmerged"
    UNTRACKED = "untracked"
    IGNORED = "ignored"
    MISSING = "missing"


@dataclass(frozen=True, slots=True)
class FileStatusRecord:
    """One file's state as reported by a status listing.

    ``file_state1`` is the index (staged) column and ``file_state2`` the
    working-tree column. ``name2`` is only set for renames and copies, where
    ``name1`` is the source path and ``name2`` the destination.
    """

    name1: str
    file_state1: FileState = FileState.UNMODIFIED
    file_state2: FileState = FileState.UNMODIFIED
    name2: str = ""

    @property
    def path(self) -> str:
        """Path of the file as it exists in the working tree."""

        return self.name2 or self.name1

    @property
    def is_untracked(self) -> bool:
        return self.file_state1 is FileState.UNTRACKED and self.file_state2 is FileState.UNTRACKED

    @property
    def is_ignored(self) -> bool:
        return self.file_state1 is FileState.IGNORED and self.file_state2 is FileState.IGNORED

    def to_dict(self) -> dict[str, Any]:
        return {
            "name1": self.name1,
            "name2": self.name2,
            "file_state1": self.file_state1.value,
            "file_state2": self.file_state2.value,
        }


__all__ = ["FileState", "FileStatusRecord"]
