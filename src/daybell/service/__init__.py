"""Process management for the scheduler server."""

from daybell.service.pid import (
    PidFile,
    ServerProcess,
    is_process_alive,
    signal_process,
)

__all__ = [
    "PidFile",
    "ServerProcess",
    "is_process_alive",
    "signal_process",
]
