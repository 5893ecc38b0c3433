"""Queued git/hg command execution and status parsing."""

__version__ = "0.1.0"

from .process import ProcessHandle, ProcessResult, ProcessScheduler
from .status import FileState, FileStatusRecord, parse_files
from .vcs import VcsType, VersionControl

__all__ = [
    "__version__",
    "FileState",
    "FileStatusRecord",
    "ProcessHandle",
    "ProcessResult",
    "ProcessScheduler",
    "VcsType",
    "VersionControl",
    "parse_files",
]
