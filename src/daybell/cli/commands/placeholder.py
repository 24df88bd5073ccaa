"""Read-only countdown queries for status bars and scripts."""

from pathlib import Path
from typing import Annotated

import typer
from rich.markup import escape

from daybell.cli.console import console, error
from daybell.runtime import Runtime

PLACEHOLDER_HELP = """\
next_task_id, next_task_time, next_task_commands, tasks_total,
countdown_seconds, countdown_minutes, countdown_hours,
countdown_formatted (HH:MM:SS), countdown_simple (1h 30m),
countdown_detailed (Task 3 in 1h 30m), time_until_hours_only,
time_until_minutes_only, time_until_seconds_only, next_taskmsg,
task_<id>_msg, task_<id>_countdown"""


def register(app: typer.Typer) -> None:
    """Register the placeholder command."""
    from daybell.cli.runtime import run_with_runtime

    @app.command(epilog=PLACEHOLDER_HELP)
    def placeholder(
        names: Annotated[list[str], typer.Argument(help="Placeholder name(s)")],
        config: Annotated[
            Path | None,
            typer.Option(
                "--config",
                "-c",
                help="Path to configuration file",
            ),
        ] = None,
    ) -> None:
        """Print the value of one or more countdown placeholders.

        Values are printed one per line, in order.
        """

        async def action(runtime: Runtime) -> None:
            resolver = runtime.resolver
            unknown: list[str] = []
            for name in names:
                value = resolver.resolve(name)
                if value is None:
                    unknown.append(name)
                    continue
                console.print(escape(value), highlight=False)
            if unknown:
                error(f"Unknown placeholder: {', '.join(unknown)}")
                raise typer.Exit(1)

        run_with_runtime(config, action)
