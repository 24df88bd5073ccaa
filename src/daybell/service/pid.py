"""PID file for a running `daybell serve`.

Line one holds the PID, line two the start time as a Unix timestamp.
`daybell reload` and `daybell status` find the server through it.
"""

import os
import signal
import time
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class ServerProcess:
    pid: int
    started_at: float
    alive: bool

    @property
    def uptime(self) -> float:
        if not self.started_at:
            return 0.0
        return max(0.0, time.time() - self.started_at)


def is_process_alive(pid: int) -> bool:
    try:
        os.kill(pid, 0)
    except OSError:
        return False
    return True


def signal_process(pid: int, sig: signal.Signals) -> bool:
    """Deliver sig to pid. False if the process is gone or not ours."""
    try:
        os.kill(pid, sig)
    except OSError:
        return False
    return True


class PidFile:
    def __init__(self, path: Path):
        self.path = path

    def write(self, pid: int | None = None) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(f"{pid or os.getpid()}\n{time.time()}\n")

    def read(self) -> ServerProcess | None:
        """The recorded process, or None when the file is missing or unreadable."""
        try:
            pid_line, _, started_line = self.path.read_text().partition("\n")
            pid = int(pid_line)
            started_at = float(started_line) if started_line.strip() else 0.0
        except (OSError, ValueError):
            return None
        return ServerProcess(pid, started_at, is_process_alive(pid))

    def remove(self) -> None:
        self.path.unlink(missing_ok=True)
