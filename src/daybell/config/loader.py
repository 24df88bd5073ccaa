"""Finding and loading the daybell TOML file."""

import tomllib
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from daybell.config.models import ConfigError, DaybellConfig
from daybell.config.paths import get_config_path

SYSTEM_CONFIG_PATH = Path("/etc/daybell/config.toml")


def config_search_paths() -> list[Path]:
    """Where to look when no --config is given, first match wins."""
    return [Path("daybell.toml"), get_config_path(), SYSTEM_CONFIG_PATH]


def resolve_config_path(path: Path | None = None) -> Path:
    """Return the config file to load.

    Raises:
        FileNotFoundError: If path is given and missing, or no search path exists.
    """
    if path is not None:
        explicit = Path(path).expanduser()
        if explicit.exists():
            return explicit
        raise FileNotFoundError(f"Config file not found: {explicit}")

    candidates = [p.expanduser() for p in config_search_paths()]
    found = next((p for p in candidates if p.exists()), None)
    if found is None:
        searched = ", ".join(str(p) for p in candidates)
        raise FileNotFoundError(f"No config file found. Searched: {searched}")
    return found


def read_toml(path: Path) -> dict[str, Any]:
    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {path}: {e}") from e


def load_config(path: Path | None = None) -> DaybellConfig:
    """Load and validate settings.

    Task entries are kept raw here; the task registry validates them one by
    one so a single bad task never rejects the whole file.

    Raises:
        FileNotFoundError: If no config file is found.
        ConfigError: If the file is not valid TOML or fails validation.
    """
    config_path = resolve_config_path(path)
    try:
        return DaybellConfig.model_validate(read_toml(config_path))
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {config_path}:\n{e}") from e


def get_default_config() -> DaybellConfig:
    """Settings with every default, as if the file were empty."""
    return DaybellConfig()
