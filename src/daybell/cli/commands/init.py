"""Init command for creating a starter configuration file."""

from pathlib import Path
from typing import Annotated

import typer

from daybell.cli.console import console, error, success

CONFIG_TEMPLATE = """\
# Daybell configuration

debug = false

[scheduler]
# Seconds between clock checks (1-59)
poll_interval = 10.0
# Seconds to wait between commands of one task
command_delay = 0.05

[clock]
# Set source_file to a file holding the current time (HH:MM, HHMM,
# HH:MM:SS or HHMMSS) to follow an external clock instead of this host's.
query = "%servertime%"
# source_file = "/run/daybell/servertime"

[shell]
# Seconds before a command is killed, 0 for no limit
timeout = 0

# Tasks run once a day at their time. Prefix a command with [console],
# [op] or [player] to choose who runs it.
#
# [tasks."1"]
# time = "04:00"
# commands = ["[console] echo restarting", "systemctl restart app"]
# message = "Daily restart"
"""


def register(app: typer.Typer) -> None:
    """Register the init command."""

    @app.command()
    def init(
        path: Annotated[
            Path | None,
            typer.Option(
                "--path",
                "-p",
                help="Path to config file (default: ~/.daybell/config.toml)",
            ),
        ] = None,
    ) -> None:
        """Create a configuration file with sensible defaults."""
        from daybell.config.paths import get_config_path

        config_path = path.expanduser() if path else get_config_path()

        if config_path.exists():
            error(f"Config file already exists at {config_path}")
            console.print("Use --path to specify a different location")
            raise typer.Exit(1)

        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text(CONFIG_TEMPLATE)
        success(f"Created config file at {config_path}")
        console.print("Add a task, then run: [cyan]daybell serve[/cyan]")
