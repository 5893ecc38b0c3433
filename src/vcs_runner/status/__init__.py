"""Status listing models and parsers."""

from .models import FileState, FileStatusRecord
from .parser import GitStatusParser, HgStatusParser, StatusParser, get_parser, parse_files

__all__ = [
    "FileState",
    "FileStatusRecord",
    "GitStatusParser",
    "HgStatusParser",
    "StatusParser",
    "get_parser",
    "parse_files",
]
