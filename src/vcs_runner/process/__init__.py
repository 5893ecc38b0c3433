"""External process queueing and execution."""

from .scheduler import (
    CommandRequest,
    OutputConsumedError,
    ProcessHandle,
    ProcessResult,
    ProcessScheduler,
    ProcessSchedulerError,
    ProcessStartError,
)

__all__ = [
    "CommandRequest",
    "OutputConsumedError",
    "ProcessHandle",
    "ProcessResult",
    "ProcessScheduler",
    "ProcessSchedulerError",
    "ProcessStartError",
]
