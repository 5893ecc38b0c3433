"""Version control command helpers."""

from .client import (
    VcsCommandError,
    VcsError,
    VcsNotFoundError,
    VcsType,
    VersionControl,
    empty_handler,
    find_repository_root,
)

__all__ = [
    "VcsCommandError",
    "VcsError",
    "VcsNotFoundError",
    "VcsType",
    "VersionControl",
    "empty_handler",
    "find_repository_root",
]
