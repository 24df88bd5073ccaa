"""Configuration models using Pydantic."""

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator

from daybell.config.paths import get_database_path

DEFAULT_TIME_QUERY = "%servertime%"


class SchedulerConfig(BaseModel):
    """Configuration for the clock-polling loop and command batches."""

    # Must stay well under a minute so no minute boundary is missed
    poll_interval: float = Field(default=10.0, ge=1.0, le=59.0)
    command_delay: float = Field(default=0.05, ge=0.0)


class ClockConfig(BaseModel):
    """Configuration for the external time-of-day provider.

    When source_file is unset the scheduler uses the local system clock.
    """

    query: str = DEFAULT_TIME_QUERY
    source_file: Path | None = None


class LedgerConfig(BaseModel):
    """Configuration for the execution ledger."""

    database_path: Path = Field(default_factory=get_database_path)

    @field_validator("database_path")
    @classmethod
    def _expand(cls, value: Path) -> Path:
        return value.expanduser()


class ShellConfig(BaseModel):
    """Configuration for the shell command host."""

    # 0 disables the timeout; a hung command then holds its task guard
    timeout: float = Field(default=0.0, ge=0.0)


class ConfigError(Exception):
    """Configuration error."""

    pass


class DaybellConfig(BaseModel):
    """Root configuration model.

    The [tasks] table is kept raw here. Task entries are validated one by one
    when the registry loads them, so a malformed entry never rejects the
    whole file.
    """

    debug: bool = False
    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)
    clock: ClockConfig = Field(default_factory=ClockConfig)
    ledger: LedgerConfig = Field(default_factory=LedgerConfig)
    shell: ShellConfig = Field(default_factory=ShellConfig)
    tasks: dict[str, Any] = Field(default_factory=dict)
