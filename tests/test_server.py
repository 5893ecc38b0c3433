from __future__ import annotations

import json
from pathlib import Path

import pytest

from vcs_runner import __version__
from vcs_runner.config import VcsRunnerSettings
from vcs_runner.process import ProcessScheduler
from vcs_runner.process.scheduler import FakeLauncher
from vcs_runner.server import create_server
from vcs_runner.vcs import VersionControl


class StubFastMCP:
    def __init__(self, *args, **kwargs):
        self.kwargs = kwargs
        self.tools: dict[str, object] = {}
        self.resources: dict[str, object] = {}

    def resource(self, uri, **kwargs):
        def decorator(fn):
            self.resources[uri] = fn
            return fn

        return decorator

    def tool(self, *args, **kwargs):
        def decorator(fn):
            self.tools[kwargs.get("name", fn.__name__)] = fn
            return fn

        return decorator


def make_settings(tmp_path: Path, git_path: str) -> VcsRunnerSettings:
    return VcsRunnerSettings(
        VCS_TYPE="git",
        VCS_GIT_PATH=git_path,
        VCS_REPOSITORY_PATH=str(tmp_path),
    )


def test_create_server_registers_tools_and_resource(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("vcs_runner.server.FastMCP", StubFastMCP)
    git = tmp_path / "git-bin"
    git.write_text("#!/bin/sh\n", encoding="utf-8")
    git.chmod(0o755)
    settings = make_settings(tmp_path, str(git))
    client = VersionControl(settings, ProcessScheduler(capacity=3, launcher=FakeLauncher()))

    server = create_server(settings, client)

    assert set(server.tools) == {"vcs_status", "run_vcs_command", "parse_status", "scheduler_status"}
    assert server.vcs_metadata["available"] is True
    assert server.vcs_metadata["executable"] == str(git)

    payload = json.loads(server.resources["resource://vcs-runner/scheduler"]())
    assert payload["server_version"] == __version__
    assert payload["scheduler"]["capacity"] == 3
    assert payload["vcs"]["type"] == "git"


def test_create_server_reports_missing_executable(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("vcs_runner.server.FastMCP", StubFastMCP)
    settings = make_settings(tmp_path, str(tmp_path / "nowhere" / "git"))

    server = create_server(settings)

    assert server.vcs_metadata["available"] is False
    assert "not found" in server.vcs_metadata["error"]
