"""Task model and config-entry validation."""

from dataclasses import dataclass, field, replace
from datetime import datetime, time
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator

TIME_FORMAT = "%H:%M"


def parse_task_time(value: str) -> time:
    """Parse a strict two-digit HH:MM task time.

    Raises:
        ValueError: If value is not a valid 00:00-23:59 time.
    """
    value = value.strip()
    if len(value) != 5 or value[2] != ":":
        raise ValueError(f"Invalid time {value!r} (expected HH:MM)")
    return datetime.strptime(value, TIME_FORMAT).time()


@dataclass(slots=True)
class Task:
    """A daily trigger time plus an ordered command batch."""

    id: int
    time: time
    commands: list[str] = field(default_factory=list)
    message: str | None = None

    @property
    def formatted_time(self) -> str:
        return f"{self.time.hour:02d}:{self.time.minute:02d}"

    @property
    def has_message(self) -> bool:
        return bool(self.message and self.message.strip())

    def copy(self) -> "Task":
        return replace(self, commands=list(self.commands))

    def __str__(self) -> str:
        return f"Task(id={self.id}, time={self.formatted_time}, commands={len(self.commands)})"


def _scalar_text(value: Any) -> str | None:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str | int | float):
        return str(value)
    return None


class TaskEntry(BaseModel):
    """One [tasks."<id>"] entry as written in the config file."""

    time: str
    commands: list[str]
    message: str | None = None

    @field_validator("time")
    @classmethod
    def _valid_time(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("missing time configuration")
        parse_task_time(value)
        return value.strip()

    @field_validator("commands", mode="before")
    @classmethod
    def _coerce_commands(cls, value: Any) -> Any:
        # Numbers and booleans become strings; nested tables and lists are dropped
        if not isinstance(value, list):
            return value
        return [text for item in value if (text := _scalar_text(item)) is not None]

    @field_validator("message", mode="before")
    @classmethod
    def _coerce_message(cls, value: Any) -> Any:
        text = _scalar_text(value)
        return value if text is None else text

    @field_validator("commands")
    @classmethod
    def _has_commands(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("no commands configured")
        return value

    def to_task(self, task_id: int) -> Task:
        return Task(
            id=task_id,
            time=parse_task_time(self.time),
            commands=list(self.commands),
            message=self.message,
        )


def parse_task_entry(key: str, raw: Any) -> Task:
    """Validate one config entry.

    Raises:
        ValueError: If the id is not a positive integer or the entry is invalid.
    """
    try:
        task_id = int(key)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid task ID (must be a number): {key}") from None
    if task_id <= 0:
        raise ValueError(f"Invalid task ID (must be positive): {key}")

    if not isinstance(raw, dict):
        raise ValueError(f"Invalid task configuration for ID: {task_id}")

    try:
        entry = TaskEntry.model_validate(raw)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ValueError(f"Task {task_id} is invalid: {problems}") from None
    return entry.to_task(task_id)
