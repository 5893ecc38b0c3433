"""vcs-runner diagnostics CLI."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Iterable

from vcs_runner.config import VcsRunnerSettings
from vcs_runner.process import ProcessSchedulerError
from vcs_runner.process.utils import default_capacity
from vcs_runner.status import FileStatusRecord, get_parser
from vcs_runner.vcs import VcsError, VersionControl


def load_client(settings: VcsRunnerSettings) -> VersionControl:
    return VersionControl(settings)


def _print_records(records: Iterable[FileStatusRecord], as_json: bool) -> None:
    records = list(records)
    if as_json:
        print(json.dumps([record.to_dict() for record in records], indent=2))
        return
    for record in records:
        line = f"[{record.file_state1.value}/{record.file_state2.value}] {record.name1}"
        if record.name2:
            line += f" -> {record.name2}"
        print(line)


def cmd_status(args: argparse.Namespace) -> None:
    settings = VcsRunnerSettings()
    if args.repo:
        settings.repository_path = Path(args.repo).expanduser().resolve()
    if args.dialect:
        settings.vcs_type = args.dialect
    client = load_client(settings)
    try:
        records = asyncio.run(client.status())
    except (VcsError, ProcessSchedulerError) as exc:
        print(f"VCS error: {exc}")
        raise SystemExit(1)
    _print_records(records, args.json)


def cmd_parse(args: argparse.Namespace) -> None:
    try:
        parser = get_parser(args.dialect)
    except ValueError as exc:
        print(str(exc))
        raise SystemExit(2)

    if args.path == "-":
        text = sys.stdin.read()
    else:
        text = Path(args.path).read_text(encoding="utf-8", errors="replace")
    _print_records(parser.parse_files(text), args.json)


def cmd_settings(args: argparse.Namespace) -> None:
    settings = VcsRunnerSettings()
    payload = settings.model_dump(mode="json")
    payload["effective_capacity"] = settings.max_processes or default_capacity()
    print(json.dumps(payload, indent=2))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="vcs-runner diagnostics")
    sub = parser.add_subparsers(dest="cmd")

    p_status = sub.add_parser("status", help="Run the VCS status command and list files")
    p_status.add_argument("--repo", help="Repository path (defaults to VCS_REPOSITORY_PATH)")
    p_status.add_argument("--dialect", choices=["git", "hg"])
    p_status.add_argument("--json", action="store_true", help="Output JSON")
    p_status.set_defaults(func=cmd_status)

    p_parse = sub.add_parser("parse", help="Parse saved status output ('-' reads stdin)")
    p_parse.add_argument("path")
    p_parse.add_argument("--dialect", default="git")
    p_parse.add_argument("--json", action="store_true", help="Output JSON")
    p_parse.set_defaults(func=cmd_parse)

    p_settings = sub.add_parser("settings", help="Show effective configuration")
    p_settings.set_defaults(func=cmd_settings)

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        return
    args.func(args)


if __name__ == "__main__":
    main()
