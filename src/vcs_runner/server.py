"""FastMCP server bootstrap for vcs-runner."""

import json
import logging
from datetime import datetime, timezone
from typing import Optional

from fastmcp import FastMCP

from . import __version__
from .config import VcsRunnerSettings, get_settings
from .tools import register_tools
from .vcs import VcsNotFoundError, VersionControl


def configure_logging(level: str) -> None:
    """Configure root logging for the vcs-runner server."""

    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="[%(asctime)s] [%(levelname)s] %(name)s: %(message)s",
    )


def create_server(
    settings: Optional[VcsRunnerSettings] = None,
    client: VersionControl | None = None,
) -> FastMCP:
    """Instantiate the FastMCP server with the VCS tools registered."""

    settings = settings or get_settings()
    client = client or VersionControl(settings)

    vcs_metadata = {
        "type": client.vcs_type.value,
        "repository": str(client.repository_location()),
        "available": False,
        "executable": None,
        "error": None,
    }
    try:
        vcs_metadata["executable"] = client.executable
        vcs_metadata["available"] = True
    except VcsNotFoundError as exc:
        vcs_metadata["error"] = str(exc)

    server = FastMCP(
        name="VCS Runner",
        instructions=(
            "VCS Runner queues git and mercurial commands with bounded concurrency and "
            "reports parsed file status. Use vcs_status to list changed files and "
            "run_vcs_command for other commands."
        ),
    )

    handles = register_tools(server, settings=settings, client=client)

    @server.resource(
        "resource://vcs-runner/scheduler",
        name="vcs_runner_scheduler",
        description="Current process scheduler state and VCS availability.",
        mime_type="application/json",
    )
    def scheduler_resource() -> str:
        """Return a JSON string summarizing scheduler and VCS state."""

        payload = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "server_version": __version__,
            "log_level": settings.log_level,
            "vcs": vcs_metadata,
            "scheduler": client.scheduler.snapshot(),
        }
        return json.dumps(payload)

    setattr(server, "vcs_client", client)
    setattr(server, "vcs_metadata", vcs_metadata)
    setattr(server, "tool_handles", handles)
    return server


def main() -> None:
    """Entry point for running the vcs-runner MCP server via CLI."""

    settings = get_settings()
    configure_logging(settings.log_level)

    server = create_server(settings)
    metadata = getattr(server, "vcs_metadata", {})
    logging.getLogger(__name__).info(
        "Launching VCS Runner MCP server",
        extra={
            "version": __version__,
            "log_level": settings.log_level,
            "vcs": metadata.get("type"),
            "vcs_available": metadata.get("available"),
        },
    )
    server.run()


if __name__ == "__main__":
    main()
