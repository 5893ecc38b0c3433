"""Bounded FIFO scheduler for external processes."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections import deque
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Awaitable, Callable, Iterable, Mapping, Protocol

from .utils import default_capacity, sanitize_environment, split_arguments

logger = logging.getLogger(__name__)


class ProcessSchedulerError(RuntimeError):
    """Base class for process scheduler errors."""


class ProcessStartError(ProcessSchedulerError):
    """Raised when a queued process could not be started."""


class OutputConsumedError(ProcessSchedulerError):
    """Raised when a captured output stream is read a second time."""


class LaunchedProcess(Protocol):
    returncode: int | None

    async def communicate(self, input: bytes | None = None) -> tuple[bytes | None, bytes | None]: ...

    async def wait(self) -> int: ...

    def kill(self) -> None: ...


CompletionCallback = Callable[["ProcessHandle"], Any]
Launcher = Callable[["CommandRequest"], Awaitable[LaunchedProcess]]


@dataclass(frozen=True, slots=True)
class CommandRequest:
    """A command waiting to be run by the scheduler."""

    executable: str
    arguments: str = ""
    on_complete: CompletionCallback | None = None
    cwd: Path | None = None
    env: Mapping[str, str] | None = None

    @property
    def redirect(self) -> bool:
        """Streams are captured only when somebody will read them."""

        return self.on_complete is not None

    @property
    def argv(self) -> tuple[str, ...]:
        return (self.executable, *split_arguments(self.arguments))


@dataclass(slots=True)
class ProcessResult:
    """Holds the outcome of a finished process."""

    args: tuple[str, ...]
    returncode: int | None
    stdout: str
    stderr: str
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return self.returncode == 0 and not self.timed_out


class ProcessHandle:
    """Tracks one submitted command from the queue to its exit."""

    def __init__(self, request: CommandRequest) -> None:
        self.request = request
        self.state = "pending"
        self.process: LaunchedProcess | None = None
        self.result: ProcessResult | None = None
        self.error: ProcessStartError | None = None
        self._task: asyncio.Task[None] | None = None
        self._done = asyncio.Event()
        self._consumed: set[str] = set()

    def __repr__(self) -> str:
        return f"<ProcessHandle {self.request.executable!r} {self.request.arguments!r} state={self.state}>"

    @property
    def done(self) -> bool:
        return self.state in {"finished", "failed"}

    @property
    def returncode(self) -> int | None:
        return self.result.returncode if self.result is not None else None

    @property
    def timed_out(self) -> bool:
        return self.result is not None and self.result.timed_out

    def read_stdout(self) -> str:
        """Return captured standard output. Each stream can be read once."""

        return self._read("stdout")

    def read_stderr(self) -> str:
        """Return captured standard error. Each stream can be read once."""

        return self._read("stderr")

    def _read(self, stream: str) -> str:
        if self.result is None:
            raise ProcessSchedulerError(f"{stream} is not available before the process exits")
        if not self.request.redirect:
            raise ProcessSchedulerError(
                f"{stream} of {self.request.executable} was not redirected (no completion callback)"
            )
        if stream in self._consumed:
            raise OutputConsumedError(f"{stream} of {self.request.executable} has already been read")
        self._consumed.add(stream)
        return getattr(self.result, stream)

    async def wait(self) -> ProcessResult:
        """Wait for the process to exit and return its result."""

        await self._done.wait()
        if self.error is not None:
            raise self.error
        assert self.result is not None
        return self.result


class ProcessScheduler:
    """Queue external commands and run at most ``capacity`` of them at once.

    ``tick()`` must be called periodically from the event loop that owns the
    scheduler. Each tick admits the head of the pending queue when a slot is
    free and then sweeps finished processes out of the running set.
    """

    def __init__(
        self,
        capacity: int | None = None,
        launcher: Launcher | None = None,
        *,
        timeout: float | None = None,
    ) -> None:
        if capacity is not None and capacity < 1:
            raise ValueError("capacity must be >= 1")
        if timeout is not None and timeout <= 0:
            raise ValueError("timeout must be > 0")
        self._capacity = capacity or default_capacity()
        self._launcher = launcher or launch_process
        self._timeout = timeout
        self._pending: deque[ProcessHandle] = deque()
        self._running: list[ProcessHandle] = []

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def timeout(self) -> float | None:
        return self._timeout

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def running_count(self) -> int:
        return len(self._running)

    @property
    def running(self) -> tuple[ProcessHandle, ...]:
        return tuple(self._running)

    @property
    def is_idle(self) -> bool:
        return not self._pending and not self._running

    def submit(
        self,
        executable: str,
        arguments: str = "",
        on_complete: CompletionCallback | None = None,
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
    ) -> ProcessHandle:
        """Queue a command and return its handle without waiting."""

        request = CommandRequest(
            executable=executable,
            arguments=arguments,
            on_complete=on_complete,
            cwd=Path(cwd) if cwd is not None else None,
            env=env,
        )
        handle = ProcessHandle(request)
        self._pending.append(handle)
        logger.debug(
            "Queued command",
            extra={"executable": executable, "arguments": arguments, "pending": len(self._pending)},
        )
        return handle

    def tick(self) -> None:
        """Admit the next pending command if a slot is free, then sweep finished ones."""

        if self._pending and len(self._running) < self._capacity:
            handle = self._pending.popleft()
            handle.state = "running"
            handle._task = asyncio.get_running_loop().create_task(self._execute(handle))
            self._running.append(handle)

        self._running = [handle for handle in self._running if not handle.done]

    async def pump(self, until: ProcessHandle | None = None, *, poll_interval: float = 0.05) -> None:
        """Tick until ``until`` is done, or until the scheduler is idle."""

        while True:
            self.tick()
            if until is not None:
                if until.done:
                    return
            elif self.is_idle:
                return
            await asyncio.sleep(poll_interval)

    def snapshot(self) -> dict[str, Any]:
        return {
            "capacity": self._capacity,
            "timeout": self._timeout,
            "pending": len(self._pending),
            "running": len(self._running),
            "pending_commands": [_describe(handle.request) for handle in self._pending],
            "running_commands": [_describe(handle.request) for handle in self._running],
        }

    async def _execute(self, handle: ProcessHandle) -> None:
        request = handle.request
        try:
            process = await self._launcher(request)
        except Exception as exc:
            error = ProcessStartError(f"Failed to start {request.executable}: {exc}")
            error.__cause__ = exc
            handle.error = error
            handle.state = "failed"
            handle._done.set()
            logger.warning(
                "Process failed to start",
                extra={"executable": request.executable, "arguments": request.arguments, "error": str(exc)},
            )
            return

        handle.process = process
        logger.debug("Process started", extra={"executable": request.executable, "arguments": request.arguments})

        timed_out = False
        try:
            stdout, stderr = await asyncio.wait_for(_collect(process, request.redirect), self._timeout)
        except asyncio.TimeoutError:
            timed_out = True
            try:
                process.kill()
            except ProcessLookupError:
                pass
            await process.wait()
            stdout = stderr = None
            logger.warning(
                "Process killed after timeout",
                extra={"executable": request.executable, "timeout": self._timeout},
            )

        handle.result = ProcessResult(
            args=request.argv,
            returncode=process.returncode,
            stdout=_decode(stdout),
            stderr=_decode(stderr),
            timed_out=timed_out,
        )

        try:
            if request.on_complete is not None:
                outcome = request.on_complete(handle)
                if inspect.isawaitable(outcome):
                    await outcome
        except Exception:
            logger.exception("Completion callback failed", extra={"executable": request.executable})
        finally:
            # the slot stays occupied until the callback has returned
            handle.state = "finished"
            handle._done.set()


async def _collect(process: LaunchedProcess, redirect: bool) -> tuple[bytes | None, bytes | None]:
    if redirect:
        return await process.communicate()
    await process.wait()
    return None, None


def _decode(data: bytes | None) -> str:
    if not data:
        return ""
    return data.decode("utf-8", errors="replace")


def _describe(request: CommandRequest) -> str:
    return " ".join(part for part in (request.executable, request.arguments) if part)


async def launch_process(request: CommandRequest) -> asyncio.subprocess.Process:
    """Start ``request`` with asyncio, piping all streams when output is wanted."""

    pipe = asyncio.subprocess.PIPE if request.redirect else None
    return await asyncio.create_subprocess_exec(
        *request.argv,
        stdin=pipe,
        stdout=pipe,
        stderr=pipe,
        cwd=str(request.cwd) if request.cwd is not None else None,
        env=sanitize_environment(request.env),
    )


class FakeProcess:
    """Test double standing in for an asyncio subprocess."""

    def __init__(self, returncode: int = 0, stdout: bytes = b"", stderr: bytes = b"", *, hold: bool = False) -> None:
        self.returncode: int | None = None
        self.killed = False
        self._exit_code = returncode
        self._stdout = stdout
        self._stderr = stderr
        self._released = asyncio.Event()
        if not hold:
            self._released.set()

    def release(self) -> None:
        self._released.set()

    async def wait(self) -> int:
        await self._released.wait()
        if self.returncode is None:
            self.returncode = self._exit_code
        return self.returncode

    async def communicate(self, input: bytes | None = None) -> tuple[bytes, bytes]:
        await self.wait()
        return self._stdout, self._stderr

    def kill(self) -> None:
        self.killed = True
        self.returncode = -9
        self._released.set()


class FakeLauncher:
    """Test double that records launches instead of spawning processes.

    ``outputs`` maps an argument string to ``(returncode, stdout, stderr)``.
    Executables listed in ``missing`` fail to start.
    """

    def __init__(
        self,
        outputs: Mapping[str, tuple[int, str, str]] | None = None,
        *,
        hold: bool = False,
        missing: Iterable[str] = (),
    ) -> None:
        self._outputs = dict(outputs or {})
        self._hold = hold
        self._missing = set(missing)
        self.launched: list[CommandRequest] = []
        self.processes: list[FakeProcess] = []

    async def __call__(self, request: CommandRequest) -> FakeProcess:
        if request.executable in self._missing:
            raise FileNotFoundError(2, "No such file or directory", request.executable)
        returncode, stdout, stderr = self._outputs.get(request.arguments, (0, "", ""))
        process = FakeProcess(returncode, stdout.encode("utf-8"), stderr.encode("utf-8"), hold=self._hold)
        self.launched.append(request)
        self.processes.append(process)
        return process


__all__ = [
    "CommandRequest",
    "CompletionCallback",
    "FakeLauncher",
    "FakeProcess",
    "LaunchedProcess",
    "Launcher",
    "OutputConsumedError",
    "ProcessHandle",
    "ProcessResult",
    "ProcessScheduler",
    "ProcessSchedulerError",
    "ProcessStartError",
    "launch_process",
]
