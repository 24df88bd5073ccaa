"""Daily task scheduling.

Public API:
- TaskScheduler: Polls the clock and fires tasks on their minute
"""

from daybell.scheduling.watcher import DEFAULT_POLL_INTERVAL, TaskScheduler, minute_key

__all__ = ["DEFAULT_POLL_INTERVAL", "TaskScheduler", "minute_key"]
