"""Execution ledger inspection commands."""

from datetime import date, datetime
from pathlib import Path
from typing import Annotated

import typer

from daybell.cli.console import console, create_table, dim, error, warning
from daybell.runtime import Runtime


def _parse_day(value: str | None) -> date | None:
    if value is None:
        return None
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        error(f"Invalid date: {value} (expected YYYY-MM-DD)")
        raise typer.Exit(1) from None


def register(app: typer.Typer) -> None:
    """Register the ledger command."""
    from daybell.cli.runtime import run_with_runtime

    @app.command()
    def ledger(
        day: Annotated[
            str | None,
            typer.Option("--date", "-d", help="Day to show (YYYY-MM-DD, default today)"),
        ] = None,
        config: Annotated[
            Path | None,
            typer.Option(
                "--config",
                "-c",
                help="Path to configuration file",
            ),
        ] = None,
    ) -> None:
        """Show which tasks have run on a day."""
        parsed = _parse_day(day)

        async def action(runtime: Runtime) -> None:
            target = parsed or date.today()
            executed = await runtime.ledger.executed_on(target)
            tasks = runtime.registry.get_all_tasks()

            dim(f"Ledger: {runtime.ledger.database.url}")
            if not tasks and not executed:
                warning(f"No tasks configured and nothing recorded for {target}")
                return

            table = create_table(
                f"Executions on {target.isoformat()}",
                {"ID": "cyan", "Time": "green", "Status": None},
            )
            for task_id in sorted(set(tasks) | set(executed)):
                task = tasks.get(task_id)
                status = "[green]ran[/green]" if task_id in executed else "not run"
                if task is None:
                    status += " [dim](task removed)[/dim]"
                table.add_row(
                    str(task_id),
                    task.formatted_time if task else "-",
                    status,
                )
            console.print(table)

        run_with_runtime(config, action)
