"""Where daybell keeps its files.

Everything lives under one home directory, `~/.daybell` unless the
DAYBELL_HOME environment variable points elsewhere. Only the home lookup
is cached.
"""

import os
from functools import lru_cache
from pathlib import Path

ENV_VAR = "DAYBELL_HOME"


@lru_cache(maxsize=1)
def get_daybell_home() -> Path:
    """Get the base directory for all Daybell data.

    Resolution order:
    1. DAYBELL_HOME environment variable (if set)
    2. Platform default (~/.daybell)
    """
    if env_home := os.environ.get(ENV_VAR):
        return Path(env_home).expanduser().resolve()

    return Path.home() / ".daybell"


def get_config_path() -> Path:
    """Get the default config file path."""
    return get_daybell_home() / "config.toml"


def get_database_path() -> Path:
    """Get the default execution ledger database path."""
    return get_daybell_home() / "tasks.db"


def get_logs_path() -> Path:
    """Get the default logs directory path."""
    return get_daybell_home() / "logs"


def get_run_path() -> Path:
    """Get the runtime directory path (PID files)."""
    return get_daybell_home() / "run"


def get_pid_path() -> Path:
    """Get the scheduler PID file path."""
    return get_run_path() / "daybell.pid"


def get_all_paths() -> dict[str, Path]:
    """Get all standard paths for debugging/display."""
    return {
        "home": get_daybell_home(),
        "config": get_config_path(),
        "database": get_database_path(),
        "logs": get_logs_path(),
        "run": get_run_path(),
        "pid": get_pid_path(),
    }
