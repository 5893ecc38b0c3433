"""Tool registration for the vcs-runner MCP server."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from fastmcp import Context, FastMCP

from ..config import VcsRunnerSettings
from ..status import get_parser
from ..vcs import VcsError, VersionControl
from ..process import ProcessSchedulerError

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ToolHandles:
    vcs_status: Any
    run_vcs_command: Any
    parse_status: Any
    scheduler_status: Any


def register_tools(
    server: FastMCP,
    *,
    settings: VcsRunnerSettings,
    client: VersionControl,
) -> ToolHandles:
    """Register the VCS tools on the server."""

    async def _vcs_status(context: Context | None = None) -> dict[str, Any]:
        """Run the repository status command and return parsed file records."""

        try:
            records = await client.status()
        except (VcsError, ProcessSchedulerError) as exc:
            _emit_log(context, "warning", "Status listing failed", extra={"error": str(exc)})
            return {"vcs": client.vcs_type.value, "error": str(exc)}

        _emit_log(context, "debug", "Status listing parsed", extra={"count": len(records)})
        return {
            "vcs": client.vcs_type.value,
            "repository": str(client.repository_location()),
            "files": [record.to_dict() for record in records],
        }

    async def _run_vcs_command(arguments: str, context: Context | None = None) -> dict[str, Any]:
        """Run an arbitrary command for the repository's VCS."""

        try:
            result = await client.run_command(arguments)
        except (VcsError, ProcessSchedulerError) as exc:
            _emit_log(context, "warning", "VCS command failed to run", extra={"arguments": arguments, "error": str(exc)})
            return {"vcs": client.vcs_type.value, "arguments": arguments, "error": str(exc)}

        if not result.ok:
            _emit_log(
                context,
                "info",
                "VCS command exited unsuccessfully",
                extra={"arguments": arguments, "returncode": result.returncode},
            )
        return {
            "vcs": client.vcs_type.value,
            "arguments": arguments,
            "returncode": result.returncode,
            "timed_out": result.timed_out,
            "stdout": result.stdout[:4000],
            "stderr": result.stderr[:2000],
        }

    def _parse_status(text: str, dialect: str | None = None, context: Context | None = None) -> dict[str, Any]:
        """Parse status output captured elsewhere."""

        chosen = dialect or client.vcs_type.value
        try:
            parser = get_parser(chosen)
        except ValueError as exc:
            return {"dialect": chosen, "error": str(exc)}
        records = parser.parse_files(text)
        _emit_log(context, "debug", "Parsed supplied status text", extra={"dialect": chosen, "count": len(records)})
        return {"dialect": parser.dialect, "files": [record.to_dict() for record in records]}

    def _scheduler_status(context: Context | None = None) -> dict[str, Any]:
        """Report queue depth and running processes."""

        return {
            "vcs": client.vcs_type.value,
            "poll_interval": settings.poll_interval,
            **client.scheduler.snapshot(),
        }

    tool_status = server.tool(
        name="vcs_status",
        description=(
            "List changed, untracked and ignored files in the repository with their "
            "index and working-tree states."
        ),
    )(_vcs_status)

    tool_run = server.tool(
        name="run_vcs_command",
        description=(
            "Run a git or hg command (argument string only, the executable is chosen "
            "from the repository type) and return its exit code and output."
        ),
        annotations={
            "safety": {
                "level": "caution",
                "notes": "Commands run against the working repository and may modify it",
            }
        },
    )(_run_vcs_command)

    tool_parse = server.tool(
        name="parse_status",
        description="Parse raw git porcelain or hg status output into file records.",
    )(_parse_status)

    tool_scheduler = server.tool(
        name="scheduler_status",
        description="Show process scheduler capacity, pending and running commands.",
    )(_scheduler_status)

    return ToolHandles(
        vcs_status=tool_status,
        run_vcs_command=tool_run,
        parse_status=tool_parse,
        scheduler_status=tool_scheduler,
    )


__all__ = ["register_tools", "ToolHandles"]


def _emit_log(
    context: Context | None,
    level: str,
    message: str,
    *,
    extra: dict[str, Any] | None = None,
) -> None:
    """Best-effort logging that prefers the MCP context logger when available."""

    payload = extra or {}

    if context is not None:
        ctx_logger = getattr(context, "logger", None)
        if ctx_logger is not None:
            log_method = getattr(ctx_logger, level, None)
            if callable(log_method):
                log_method(message, extra=payload)
                return

    fallback = getattr(logger, level, logger.info)
    fallback(message, extra=payload)
