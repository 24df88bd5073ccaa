"""Countdown queries over the task registry.

Everything here is derived on demand from the registry and the clock;
nothing is cached. The placeholder names are what display integrations
(status bars, MOTD scripts, chat bots) ask for.
"""

from __future__ import annotations

import logging
from datetime import time
from typing import TYPE_CHECKING

from daybell.tasks.models import Task

if TYPE_CHECKING:
    from daybell.clock import ClockSource
    from daybell.tasks.registry import TaskRegistry

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60

NOT_AVAILABLE = "N/A"
TASK_NOT_FOUND = "Task not found"
NO_MESSAGE = "No message set"
INVALID_TASK_ID = "Invalid task ID"


def _seconds_of_day(value: time) -> int:
    return value.hour * 3600 + value.minute * 60 + value.second


def seconds_until(current: time, target: time) -> int:
    """Seconds from current to the next occurrence of target.

    A target at or before current is tomorrow's, so the result is always
    in 1..86400.
    """
    diff = _seconds_of_day(target) - _seconds_of_day(current)
    if diff <= 0:
        diff += SECONDS_PER_DAY
    return diff


def next_task(registry: TaskRegistry, clock: ClockSource) -> tuple[Task, int] | None:
    """Return the task with the smallest wait and that wait, or None."""
    tasks = registry.get_all_tasks()
    if not tasks:
        return None

    now = clock.now()
    best: tuple[Task, int] | None = None
    for task in tasks.values():
        wait = seconds_until(now, task.time)
        if best is None or wait < best[1]:
            best = (task, wait)
    return best


def format_countdown(seconds: int) -> str:
    """HH:MM:SS, or 00:00:00 once elapsed."""
    if seconds <= 0:
        return "00:00:00"
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def format_simple_countdown(seconds: int) -> str:
    """Two most significant units: "1h 30m", "5m 3s", "42s", or "Now"."""
    if seconds <= 0:
        return "Now"
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    if hours > 0:
        return f"{hours}h {minutes}m"
    if minutes > 0:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


def format_detailed_countdown(seconds: int, task: Task) -> str:
    return f"Task {task.id} in {format_simple_countdown(seconds)}"


class PlaceholderResolver:
    """Answers named countdown queries as display strings.

    Example:
        resolver = PlaceholderResolver(registry, clock)
        resolver.resolve("countdown_simple")  # "1h 30m"
        resolver.resolve("task_3_msg")        # "Server restart"
    """

    def __init__(self, registry: TaskRegistry, clock: ClockSource):
        self._registry = registry
        self._clock = clock

    def resolve(self, name: str) -> str | None:
        """Resolve a placeholder name.

        Every name answers "N/A" while no tasks are configured. Otherwise
        unknown names return None.
        """
        name = name.strip().lower()

        tasks = self._registry.get_all_tasks()
        if not tasks:
            return NOT_AVAILABLE
        if name == "tasks_total":
            return str(len(tasks))

        if name.startswith("task_") and name.endswith("_msg"):
            return self._task_message(name[len("task_") : -len("_msg")])
        if name.startswith("task_") and name.endswith("_countdown"):
            return self._task_countdown(name[len("task_") : -len("_countdown")])

        if name not in _NEXT_TASK_FIELDS:
            return None

        found = next_task(self._registry, self._clock)
        if found is None:
            return NOT_AVAILABLE
        task, seconds = found
        return _NEXT_TASK_FIELDS[name](task, seconds)

    def _task_message(self, raw_id: str) -> str:
        task_id = _parse_task_id(raw_id)
        if task_id is None:
            return INVALID_TASK_ID
        task = self._registry.get_task(task_id)
        if task is None:
            return TASK_NOT_FOUND
        return task.message if task.has_message else NO_MESSAGE

    def _task_countdown(self, raw_id: str) -> str:
        task_id = _parse_task_id(raw_id)
        if task_id is None:
            return INVALID_TASK_ID
        task = self._registry.get_task(task_id)
        if task is None:
            return TASK_NOT_FOUND

        countdown = format_countdown(seconds_until(self._clock.now(), task.time))
        if task.has_message:
            return f"{task.message} {countdown}"
        return countdown


def _parse_task_id(raw: str) -> int | None:
    if not raw.isdigit():
        return None
    return int(raw)


def _next_taskmsg(task: Task, seconds: int) -> str:
    if not task.has_message:
        return ""
    return f"{task.message} {format_countdown(seconds)}"


_NEXT_TASK_FIELDS = {
    "next_task_id": lambda task, s: str(task.id),
    "next_task_time": lambda task, s: task.formatted_time,
    "countdown_seconds": lambda task, s: str(s),
    "countdown_minutes": lambda task, s: str(s // 60),
    "countdown_hours": lambda task, s: str(s // 3600),
    "countdown_formatted": lambda task, s: format_countdown(s),
    "countdown_simple": lambda task, s: format_simple_countdown(s),
    "countdown_detailed": lambda task, s: format_detailed_countdown(s, task),
    "next_task_commands": lambda task, s: str(len(task.commands)),
    "time_until_hours_only": lambda task, s: str((s // 3600) % 24),
    "time_until_minutes_only": lambda task, s: str((s // 60) % 60),
    "time_until_seconds_only": lambda task, s: str(s % 60),
    "next_taskmsg": _next_taskmsg,
}
