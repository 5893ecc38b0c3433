from __future__ import annotations

import pytest

from vcs_runner.status import FileState, FileStatusRecord, GitStatusParser, HgStatusParser, get_parser, parse_files
from vcs_runner.status.parser import StatusParser, unquote_path
from vcs_runner.vcs import VcsType


def test_empty_input_yields_no_records() -> None:
    assert parse_files("") == []
    assert parse_files(None) == []
    assert parse_files("\n\n   \n") == []


def test_staged_modification() -> None:
    records = parse_files("M  file.txt")

    assert records == [
        FileStatusRecord(
            name1="file.txt",
            file_state1=FileState.MODIFIED,
            file_state2=FileState.UNMODIFIED,
            name2="",
        )
    ]


def test_index_and_worktree_columns_are_independent() -> None:
    records = parse_files(" M unstaged.py\nAM both.py\nMD gone.py\n")

    assert [(r.file_state1, r.file_state2) for r in records] == [
        (FileState.UNMODIFIED, FileState.MODIFIED),
        (FileState.ADDED, FileState.MODIFIED),
        (FileState.MODIFIED, FileState.DELETED),
    ]
    assert [r.name1 for r in records] == ["unstaged.py", "both.py", "gone.py"]


def test_rename_line_splits_source_and_destination() -> None:
    (record,) = parse_files("R  old.txt -> new.txt")

    assert record.name1 == "old.txt"
    assert record.name2 == "new.txt"
    assert record.file_state1 is FileState.RENAMED
    assert record.path == "new.txt"


def test_copy_line_splits_names() -> None:
    (record,) = parse_files("C  base.cfg -> copy.cfg")

    assert (record.name1, record.name2) == ("base.cfg", "copy.cfg")
    assert record.file_state1 is FileState.COPIED


def test_untracked_and_ignored_set_both_slots() -> None:
    untracked, ignored = parse_files("?? notes.md\n!! build/\n")

    assert untracked.file_state1 == untracked.file_state2 == FileState.UNTRACKED
    assert untracked.is_untracked
    assert ignored.file_state1 == ignored.file_state2 == FileState.IGNORED
    assert ignored.is_ignored


def test_branch_header_is_skipped() -> None:
    records = parse_files("## main...origin/main [ahead 1]\nUU conflict.txt\nT  link\n")

    assert [r.name1 for r in records] == ["conflict.txt", "link"]
    assert records[0].file_state1 is FileState.UPDATED_BUT_UNMERGED
    assert records[0].file_state2 is FileState.UPDATED_BUT_UNMERGED
    assert records[1].file_state1 is FileState.TYPE_CHANGED


def test_unknown_codes_degrade_to_unmodified() -> None:
    (record,) = parse_files("XZ mystery.bin")

    assert record.name1 == "mystery.bin"
    assert record.file_state1 is FileState.UNMODIFIED
    assert record.file_state2 is FileState.UNMODIFIED


def test_records_keep_input_order() -> None:
    text = "?? z.txt\nM  a.txt\n D m.txt\n"

    assert [r.name1 for r in parse_files(text)] == ["z.txt", "a.txt", "m.txt"]


def test_arrow_only_splits_renames() -> None:
    (modified,) = parse_files("M  docs/a -> b.md")
    (renamed,) = parse_files("R  a -> b -> c")

    assert modified.name1 == "docs/a -> b.md"
    assert modified.name2 == ""
    assert (renamed.name1, renamed.name2) == ("a", "b -> c")


def test_quoted_paths_are_unquoted() -> None:
    records = parse_files('?? "tab\\there.txt"\n?? "caf\\303\\251.txt"\nR  "old name.txt" -> "new\\"q.txt"\n')

    assert records[0].name1 == "tab\there.txt"
    assert records[1].name1 == "café.txt"
    assert (records[2].name1, records[2].name2) == ("old name.txt", 'new"q.txt')


def test_unquote_path_leaves_plain_text() -> None:
    assert unquote_path("plain.txt") == "plain.txt"
    assert unquote_path('"unterminated') == '"unterminated'


@pytest.mark.parametrize(
    "text",
    [
        "garbage",
        "\x00\x01\x02 \x03",
        '?? "unterminated\\',
        "R   -> \nR  -> \n-> ->",
        "##\n#\n!\n??\n",
        "M" * 500,
        "  orphan origin line",
        "☃☃ snow\r\n\r\n",
    ],
)
def test_garbage_never_raises(text: str) -> None:
    for dialect in ("git", "hg"):
        records = parse_files(text, dialect)
        assert isinstance(records, list)
        assert all(record.name1 for record in records)


def test_parsing_is_idempotent() -> None:
    text = "## main\nM  a.txt\nR  b -> c\n?? d\n"

    assert parse_files(text) == parse_files(text)


def test_hg_status_codes() -> None:
    text = "M changed.py\nR removed.py\nC clean.py\n! missing.py\n? new.py\nI ignored.pyc\n"

    records = parse_files(text, "hg")

    assert [(r.name1, r.file_state1) for r in records] == [
        ("changed.py", FileState.MODIFIED),
        ("removed.py", FileState.DELETED),
        ("clean.py", FileState.UNMODIFIED),
        ("missing.py", FileState.MISSING),
        ("new.py", FileState.UNTRACKED),
        ("ignored.pyc", FileState.IGNORED),
    ]
    assert all(r.file_state1 is r.file_state2 for r in records)
    assert all(r.name2 == "" for r in records)


def test_hg_copy_origin_becomes_copied_record() -> None:
    text = "  orphan.txt\nA copy.txt\n  original.txt\nA added.txt\n"

    records = parse_files(text, "hg")

    assert records == [
        FileStatusRecord(
            name1="original.txt",
            file_state1=FileState.COPIED,
            file_state2=FileState.COPIED,
            name2="copy.txt",
        ),
        FileStatusRecord(name1="added.txt", file_state1=FileState.ADDED, file_state2=FileState.ADDED),
    ]


def test_hg_rename_folds_copy_and_removal() -> None:
    text = "A new.txt\n  old.txt\nR old.txt\n"

    assert parse_files(text, "hg") == [
        FileStatusRecord(
            name1="old.txt",
            file_state1=FileState.RENAMED,
            file_state2=FileState.RENAMED,
            name2="new.txt",
        )
    ]


def test_hg_copy_without_removal_stays_copied() -> None:
    text = "A one.txt\n  base.txt\nA two.txt\n  base.txt\nR base.txt\nR gone.txt\n"

    records = parse_files(text, "hg")

    assert [(r.name1, r.file_state1, r.name2) for r in records] == [
        ("base.txt", FileState.RENAMED, "one.txt"),
        ("base.txt", FileState.COPIED, "two.txt"),
        ("gone.txt", FileState.DELETED, ""),
    ]


def test_status_parser_base_is_abstract() -> None:
    with pytest.raises(TypeError):
        StatusParser()


def test_get_parser_selects_dialect() -> None:
    assert isinstance(get_parser("git"), GitStatusParser)
    assert isinstance(get_parser("Mercurial"), HgStatusParser)
    assert isinstance(get_parser(VcsType.HG), HgStatusParser)
    assert get_parser("hg").status_arguments == "status -C"
    assert get_parser("git").status_arguments == "status --porcelain"

    with pytest.raises(ValueError):
        get_parser("svn")


def test_record_to_dict() -> None:
    (record,) = parse_files("R  a -> b")

    assert record.to_dict() == {
        "name1": "a",
        "name2": "b",
        "file_state1": "renamed",
        "file_state2": "unmodified",
    }
