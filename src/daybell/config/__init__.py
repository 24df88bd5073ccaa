"""Configuration module."""

from daybell.config.loader import get_default_config, load_config, resolve_config_path
from daybell.config.models import (
    ClockConfig,
    ConfigError,
    DaybellConfig,
    LedgerConfig,
    SchedulerConfig,
    ShellConfig,
)
from daybell.config.paths import (
    get_config_path,
    get_database_path,
    get_daybell_home,
    get_logs_path,
    get_pid_path,
)
from daybell.config.store import TaskConfigStore, TaskStoreError

__all__ = [
    "ClockConfig",
    "ConfigError",
    "DaybellConfig",
    "LedgerConfig",
    "SchedulerConfig",
    "ShellConfig",
    "TaskConfigStore",
    "TaskStoreError",
    "get_config_path",
    "get_database_path",
    "get_daybell_home",
    "get_default_config",
    "get_logs_path",
    "get_pid_path",
    "load_config",
    "resolve_config_path",
]
