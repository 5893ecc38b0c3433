"""Parsers for ``git status --porcelain`` and ``hg status`` listings.

Both dialects share one table-driven engine: a subclass describes how a line
splits into status codes and path text, and which state each code maps to.
Unknown codes degrade to ``UNMODIFIED`` and lines that do not fit the grammar
are skipped, so parsing never raises on unexpected output.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import ClassVar, Mapping

from .models import FileState, FileStatusRecord

_RENAME_STATES = frozenset({FileState.RENAMED, FileState.COPIED})

_C_ESCAPES = {"a": 7, "b": 8, "t": 9, "n": 10, "v": 11, "f": 12, "r": 13, '"': 34, "\\": 92}


class StatusParser(ABC):
    """Turn raw status output into ordered :class:`FileStatusRecord` values."""

    dialect: ClassVar[str] = ""
    status_arguments: ClassVar[str] = ""
    codes: ClassVar[Mapping[str, FileState]] = {}
    separator: ClassVar[str] = " -> "

    def parse_files(self, text: str | None) -> list[FileStatusRecord]:
        records: list[FileStatusRecord] = []
        if not text:
            return records

        for line in text.splitlines():
            if not line.strip():
                continue
            fields = self.split_line(line)
            if fields is None:
                self.handle_unmatched(line, records)
                continue

            code1, code2, rest = fields
            state1 = self.codes.get(code1, FileState.UNMODIFIED)
            state2 = self.codes.get(code2, FileState.UNMODIFIED)
            name1, name2 = self.split_names(rest, state1, state2)
            if not name1:
                continue
            records.append(FileStatusRecord(name1=name1, file_state1=state1, file_state2=state2, name2=name2))

        return records

    @abstractmethod
    def split_line(self, line: str) -> tuple[str, str, str] | None:
        """Return ``(index_code, worktree_code, path_text)`` or ``None`` to skip."""

    def split_names(self, text: str, state1: FileState, state2: FileState) -> tuple[str, str]:
        if _RENAME_STATES.intersection((state1, state2)) and self.separator in text:
            source, _, destination = text.partition(self.separator)
            return source, destination
        return text, ""

    def handle_unmatched(self, line: str, records: list[FileStatusRecord]) -> None:
        """Hook for dialect lines outside the status grammar. Ignored by default."""


class GitStatusParser(StatusParser):
    """``git status --porcelain`` (v1): ``XY PATH`` or ``XY ORIG -> PATH``."""

    dialect = "git"
    status_arguments = "status --porcelain"
    codes = {
        " ": FileState.UNMODIFIED,
        "M": FileState.MODIFIED,
        "T": FileState.TYPE_CHANGED,
        "A": FileState.ADDED,
        "D": FileState.DELETED,
        "R": FileState.RENAMED,
        "C": FileState.COPIED,
        "U": FileState.UPDATED_BUT_UNMERGED,
        "?": FileState.UNTRACKED,
        "!": FileState.IGNORED,
    }

    def split_line(self, line: str) -> tuple[str, str, str] | None:
        # "## branch...upstream" headers share the column layout
        if len(line) < 4 or line[2] != " " or line.startswith("##"):
            return None
        return line[0], line[1], line[3:]

    def split_names(self, text: str, state1: FileState, state2: FileState) -> tuple[str, str]:
        renamed = bool(_RENAME_STATES.intersection((state1, state2)))
        if text.startswith('"'):
            end = _closing_quote(text)
            if end is not None:
                source = unquote_path(text[: end + 1])
                remainder = text[end + 1 :]
                if renamed and remainder.startswith(self.separator):
                    return source, unquote_path(remainder[len(self.separator) :])
                return source, ""
        if renamed and self.separator in text:
            source, _, destination = text.partition(self.separator)
            return source, unquote_path(destination)
        return text, ""


class HgStatusParser(StatusParser):
    """``hg status -C``: ``X PATH`` with copy origins on indented lines."""

    dialect = "hg"
    status_arguments = "status -C"
    codes = {
        "M": FileState.MODIFIED,
        "A": FileState.ADDED,
        "R": FileState.DELETED,
        "C": FileState.UNMODIFIED,
        "!": FileState.MISSING,
        "?": FileState.UNTRACKED,
        "I": FileState.IGNORED,
    }

    def split_line(self, line: str) -> tuple[str, str, str] | None:
        if len(line) < 3 or line[0] == " " or line[1] != " ":
            return None
        # no staging area: one code describes both slots
        return line[0], line[0], line[2:]

    def handle_unmatched(self, line: str, records: list[FileStatusRecord]) -> None:
        origin = line[2:] if line.startswith("  ") else ""
        if not origin.strip() or not records:
            return
        previous = records[-1]
        if previous.file_state1 is not FileState.ADDED or previous.name2:
            return
        records[-1] = FileStatusRecord(
            name1=origin,
            file_state1=FileState.COPIED,
            file_state2=FileState.COPIED,
            name2=previous.name1,
        )

    def parse_files(self, text: str | None) -> list[FileStatusRecord]:
        """Parse ``hg status -C`` output, folding ``A new`` / ``  old`` / ``R old`` into one rename."""

        records = super().parse_files(text)
        removed = {record.name1 for record in records if record.file_state1 is FileState.DELETED}
        moved: set[str] = set()
        folded: list[FileStatusRecord] = []
        for record in records:
            if record.file_state1 is FileState.COPIED and record.name1 in removed and record.name1 not in moved:
                moved.add(record.name1)
                folded.append(
                    FileStatusRecord(
                        name1=record.name1,
                        file_state1=FileState.RENAMED,
                        file_state2=FileState.RENAMED,
                        name2=record.name2,
                    )
                )
            else:
                folded.append(record)
        return [
            record
            for record in folded
            if not (record.file_state1 is FileState.DELETED and record.name1 in moved)
        ]


_PARSERS: dict[str, type[StatusParser]] = {
    "git": GitStatusParser,
    "hg": HgStatusParser,
    "mercurial": HgStatusParser,
}


def get_parser(dialect: str | Enum = "git") -> StatusParser:
    """Return the parser for ``dialect`` (``git`` or ``hg``)."""

    key = str(dialect.value if isinstance(dialect, Enum) else dialect).strip().lower()
    try:
        return _PARSERS[key]()
    except KeyError as exc:
        raise ValueError(f"Unsupported VCS dialect '{dialect}'") from exc


def parse_files(text: str | None, dialect: str | Enum = "git") -> list[FileStatusRecord]:
    """Parse a status listing produced by ``dialect``."""

    return get_parser(dialect).parse_files(text)


def unquote_path(token: str) -> str:
    """Decode a C-style quoted path as emitted by git; other text is returned as is."""

    if len(token) < 2 or token[0] != '"' or token[-1] != '"':
        return token

    body = token[1:-1]
    decoded = bytearray()
    index = 0
    while index < len(body):
        char = body[index]
        if char == "\\" and index + 1 < len(body):
            escape = body[index + 1]
            if escape in _C_ESCAPES:
                decoded.append(_C_ESCAPES[escape])
                index += 2
                continue
            octal = body[index + 1 : index + 4]
            if len(octal) == 3 and all(digit in "01234567" for digit in octal):
                decoded.append(int(octal, 8) & 0xFF)
                index += 4
                continue
        decoded.extend(char.encode("utf-8", errors="replace"))
        index += 1
    return decoded.decode("utf-8", errors="replace")


def _closing_quote(text: str) -> int | None:
    index = 1
    while index < len(text):
        if text[index] == "\\":
            index += 2
            continue
        if text[index] == '"':
            return index
        index += 1
    return None


__all__ = [
    "GitStatusParser",
    "HgStatusParser",
    "StatusParser",
    "get_parser",
    "parse_files",
    "unquote_path",
]
