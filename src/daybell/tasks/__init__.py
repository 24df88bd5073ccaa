"""Task definitions, the registry that runs them, and countdown queries."""

from daybell.tasks.countdown import PlaceholderResolver, next_task, seconds_until
from daybell.tasks.models import Task, TaskEntry, parse_task_entry, parse_task_time
from daybell.tasks.registry import TaskRegistry

__all__ = [
    "PlaceholderResolver",
    "Task",
    "TaskEntry",
    "TaskRegistry",
    "next_task",
    "parse_task_entry",
    "parse_task_time",
    "seconds_until",
]
