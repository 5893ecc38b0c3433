"""Git and Mercurial command helpers built on the process scheduler."""

from __future__ import annotations

import logging
import os
import shlex
import shutil
import sys
from enum import Enum
from pathlib import Path

from ..config import VcsRunnerSettings, get_settings
from ..process import ProcessHandle, ProcessResult, ProcessScheduler
from ..process.scheduler import CompletionCallback
from ..status import FileStatusRecord, StatusParser, get_parser

logger = logging.getLogger(__name__)


class VcsType(str, Enum):
    GIT = "git"
    HG = "hg"


class VcsError(RuntimeError):
    """Base class for version control errors."""


class VcsNotFoundError(VcsError):
    """Raised when the VCS executable cannot be located."""


class VcsCommandError(VcsError):
    """Raised when a VCS command exits unsuccessfully."""

    def __init__(self, message: str, result: ProcessResult) -> None:
        super().__init__(message)
        self.result = result


def empty_handler(handle: ProcessHandle) -> None:
    """Completion callback that does nothing. Passing it still captures output."""


def find_repository_root(path: Path) -> tuple[Path, VcsType] | None:
    """Walk up from ``path`` looking for a ``.git`` or ``.hg`` directory."""

    start = Path(path).expanduser().resolve()
    for candidate in (start, *start.parents):
        if (candidate / ".git").exists():
            return candidate, VcsType.GIT
        if (candidate / ".hg").exists():
            return candidate, VcsType.HG
    return None


def resolve_executable(configured: str) -> str:
    candidate = Path(configured).expanduser()
    has_separator = os.sep in configured or bool(os.altsep and os.altsep in configured)
    if candidate.is_absolute() or has_separator:
        if candidate.is_file():
            return str(candidate)
        raise VcsNotFoundError(f"VCS executable not found at {candidate}")

    binary = shutil.which(configured)
    if binary is None:
        raise VcsNotFoundError(f"{configured} executable not found on PATH")
    return binary


def _quote(value: str) -> str:
    if sys.platform == "win32":
        return f'"{value}"'
    return shlex.quote(value)


class VersionControl:
    """Run commands for the repository's VCS through a shared scheduler."""

    def __init__(
        self,
        settings: VcsRunnerSettings | None = None,
        scheduler: ProcessScheduler | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.scheduler = scheduler or ProcessScheduler(
            capacity=self.settings.max_processes,
            timeout=self.settings.process_timeout,
        )

        detected = find_repository_root(self.settings.repository_path)
        if self.settings.vcs_type:
            self.vcs_type = VcsType(self.settings.vcs_type)
        elif detected is not None:
            self.vcs_type = detected[1]
        else:
            self.vcs_type = VcsType.GIT
        self._root = detected[0] if detected is not None else None
        self._parser: StatusParser = get_parser(self.vcs_type)
        self._executable: str | None = None

    @property
    def parser(self) -> StatusParser:
        return self._parser

    @property
    def executable(self) -> str:
        if self._executable is None:
            configured = self.settings.git_path if self.vcs_type is VcsType.GIT else self.settings.hg_path
            self._executable = resolve_executable(configured)
        return self._executable

    def repository_location(self) -> Path:
        """Return the repository root, or the configured path outside a repository."""

        if self._root is not None:
            return self._root
        return Path(self.settings.repository_path).expanduser().resolve()

    def run(self, arguments: str, on_complete: CompletionCallback | None = None) -> ProcessHandle:
        """Queue a command for the active VCS."""

        logger.info(
            "Queueing VCS command",
            extra={"vcs": self.vcs_type.value, "arguments": arguments},
        )
        return self.scheduler.submit(
            self.executable,
            arguments,
            on_complete,
            cwd=self.repository_location(),
        )

    def initialize(self, on_complete: CompletionCallback | None = None) -> ProcessHandle:
        return self.run("init", on_complete)

    def find_files(self, on_complete: CompletionCallback) -> ProcessHandle:
        """Queue the status listing; ``on_complete`` receives the finished handle."""

        return self.run(self._parser.status_arguments, on_complete)

    def parse(self, handle: ProcessHandle) -> list[FileStatusRecord]:
        """Parse the captured standard output of a finished status command."""

        return self._parser.parse_files(handle.read_stdout())

    async def run_command(self, arguments: str) -> ProcessResult:
        """Run a command to completion, ticking the scheduler while waiting."""

        handle = self.run(arguments, empty_handler)
        await self.scheduler.pump(handle, poll_interval=self.settings.poll_interval)
        return await handle.wait()

    async def status(self) -> list[FileStatusRecord]:
        """Return the parsed status listing of the repository."""

        handle = self.find_files(empty_handler)
        await self.scheduler.pump(handle, poll_interval=self.settings.poll_interval)
        result = await handle.wait()
        if not result.ok:
            stderr = handle.read_stderr().strip()
            reason = "timed out" if result.timed_out else f"exited with code {result.returncode}"
            message = f"{self.vcs_type.value} status {reason}"
            if stderr:
                message = f"{message}: {stderr}"
            raise VcsCommandError(message, result)
        records = self.parse(handle)
        logger.debug("Parsed status listing", extra={"vcs": self.vcs_type.value, "count": len(records)})
        return records

    def open_terminal(self) -> ProcessHandle:
        """Open a terminal window in the repository. Output is not captured."""

        cwd = self.repository_location()
        if self.settings.terminal:
            return self.scheduler.submit(self.settings.terminal, "", None, cwd=cwd)
        if sys.platform == "win32":
            return self.scheduler.submit("cmd.exe", "/c start cmd.exe", None, cwd=cwd)
        if sys.platform == "darwin":
            return self.scheduler.submit("open", "-n -b com.apple.Terminal", None, cwd=cwd)
        return self.scheduler.submit("x-terminal-emulator", "", None, cwd=cwd)

    def open_file_in_text_editor(self, path: str | Path) -> ProcessHandle:
        """Open ``path`` in the configured text editor. Output is not captured."""

        target = _quote(str(path))
        editor = self.settings.text_editor
        if sys.platform == "darwin":
            if editor:
                return self.scheduler.submit("open", f"-a {_quote(editor)} {target}", None)
            return self.scheduler.submit("open", f"-t {target}", None)
        if editor:
            return self.scheduler.submit(editor, target, None)
        if sys.platform == "win32":
            return self.scheduler.submit("notepad.exe", target, None)
        return self.scheduler.submit("xdg-open", target, None)


__all__ = [
    "VcsCommandError",
    "VcsError",
    "VcsNotFoundError",
    "VcsType",
    "VersionControl",
    "empty_handler",
    "find_repository_root",
    "resolve_executable",
]
