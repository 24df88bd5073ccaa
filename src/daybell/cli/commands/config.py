"""Inspecting the settings file."""

from pathlib import Path
from typing import Annotated

import typer
from rich.text import Text

from daybell.cli.console import console, create_table, error, success, warning

PathOption = Annotated[
    Path | None,
    typer.Option(
        "--path",
        "-p",
        help="Path to config file (default: $DAYBELL_HOME/config.toml)",
    ),
]


def _existing_config(path: Path | None) -> Path:
    from daybell.config.paths import get_config_path

    config_path = path.expanduser() if path else get_config_path()
    if not config_path.exists():
        error(f"Config file not found: {config_path}")
        console.print("Run 'daybell init' to create one")
        raise typer.Exit(1)
    return config_path


def _task_problems(raw_tasks: dict) -> tuple[int, list[str]]:
    from daybell.tasks.models import parse_task_entry

    valid = 0
    problems: list[str] = []
    for key, raw in raw_tasks.items():
        try:
            parse_task_entry(key, raw)
        except ValueError as e:
            problems.append(str(e))
        else:
            valid += 1
    return valid, problems


def register(app: typer.Typer) -> None:
    """Register config subcommands."""
    config_app = typer.Typer(help="Inspect configuration", no_args_is_help=True)
    app.add_typer(config_app, name="config")

    @config_app.command("show")
    def config_show(path: PathOption = None) -> None:
        """Print the config file with syntax highlighting."""
        from rich.syntax import Syntax

        config_path = _existing_config(path)
        console.print(Text(f"Config file: {config_path}", style="bold"))
        console.print()
        console.print(
            Syntax(config_path.read_text(), "toml", theme="monokai", line_numbers=True)
        )

    @config_app.command("validate")
    def config_validate(path: PathOption = None) -> None:
        """Check settings and report task entries that would be skipped."""
        from daybell.config import ConfigError, load_config

        config_path = _existing_config(path)
        try:
            settings = load_config(config_path)
        except ConfigError as e:
            error("Configuration validation failed:")
            console.print(str(e), markup=False)
            raise typer.Exit(1) from None

        valid, problems = _task_problems(settings.tasks)
        shell_timeout = settings.shell.timeout

        table = create_table(
            "Configuration Summary", {"Setting": "cyan", "Value": "green"}
        )
        table.add_row("Poll interval", f"{settings.scheduler.poll_interval:g}s")
        table.add_row("Command delay", f"{settings.scheduler.command_delay:g}s")
        table.add_row("Clock", str(settings.clock.source_file or "system"))
        table.add_row("Ledger", str(settings.ledger.database_path))
        table.add_row("Shell timeout", f"{shell_timeout:g}s" if shell_timeout else "none")
        table.add_row("Tasks", str(valid))

        success("Configuration is valid!")
        console.print()
        console.print(table)
        for problem in problems:
            warning(f"  skipped: {problem}")

    @config_app.command("paths")
    def config_paths() -> None:
        """Show where daybell keeps its files."""
        from daybell.config.paths import get_all_paths

        table = create_table("Daybell Paths", {"Name": "cyan", "Path": None})
        for name, value in get_all_paths().items():
            table.add_row(name, str(value))
        console.print(table)
