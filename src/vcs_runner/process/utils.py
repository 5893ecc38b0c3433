"""Utility helpers for launching external processes."""

from __future__ import annotations

import os
import shlex
from typing import Mapping

_SANITIZED_VARS = {
    "PYTHONHOME",
    "PYTHONPATH",
    "VIRTUAL_ENV",
    "PIP_RESPECT_VIRTUALENV",
    "GIT_DIR",
    "GIT_WORK_TREE",
    "GIT_INDEX_FILE",
}


def sanitize_environment(additional: Mapping[str, str] | None = None) -> dict[str, str]:
    """Return a sanitized environment suitable for subprocess execution."""

    env = dict(os.environ)
    for key in _SANITIZED_VARS:
        env.pop(key, None)
    if additional:
        env.update(additional)
    return env


def split_arguments(arguments: str) -> list[str]:
    """Split a command-line argument string into argv entries."""

    if not arguments or not arguments.strip():
        return []
    if os.name != "nt":
        return shlex.split(arguments)
    # non-posix mode keeps backslashes but also keeps the quotes
    return [
        token[1:-1] if len(token) >= 2 and token[0] == token[-1] == '"' else token
        for token in shlex.split(arguments, posix=False)
    ]


def default_capacity() -> int:
    """One process slot per logical processor."""

    return os.cpu_count() or 1
