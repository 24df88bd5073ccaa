"""Task management commands."""

from pathlib import Path
from typing import Annotated

import typer
from rich.markup import escape

from daybell.cli.console import (
    confirm_or_cancel,
    console,
    create_table,
    dim,
    error,
    success,
    warning,
)
from daybell.runtime import Runtime
from daybell.tasks.models import parse_task_time

MAX_COMMAND_WIDTH = 80

ConfigOption = Annotated[
    Path | None,
    typer.Option(
        "--config",
        "-c",
        help="Path to configuration file",
    ),
]
TaskIdArg = Annotated[int, typer.Argument(help="Task ID", min=1)]


def _truncate(command: str, width: int = MAX_COMMAND_WIDTH) -> str:
    if len(command) <= width:
        return command
    return command[: width - 3] + "..."


def _check_time(time_str: str) -> None:
    try:
        parse_task_time(time_str)
    except ValueError:
        error("Invalid time format. Use HH:MM (24-hour format)")
        raise typer.Exit(1) from None


def _require_task(runtime: Runtime, task_id: int) -> None:
    if runtime.registry.get_task(task_id) is None:
        error(f"Task {task_id} not found")
        raise typer.Exit(1)


def _write_failed(task_id: int) -> None:
    error(f"Failed to update task {task_id}: could not write the config file")
    raise typer.Exit(1)


def register(app: typer.Typer) -> None:
    """Register task subcommands."""
    from daybell.cli.runtime import run_with_runtime

    tasks_app = typer.Typer(help="Manage scheduled tasks", no_args_is_help=True)
    app.add_typer(tasks_app, name="tasks")

    @tasks_app.command("list")
    def tasks_list(config: ConfigOption = None) -> None:
        """List all tasks with their commands and next run."""
        from daybell.tasks.countdown import format_simple_countdown, seconds_until

        async def action(runtime: Runtime) -> None:
            tasks = runtime.registry.get_all_tasks()
            if not tasks:
                warning("No tasks configured")
                return

            ran_today = set(await runtime.ledger.executed_on())
            now = runtime.clock.now()

            table = create_table(
                "Scheduled Tasks",
                {
                    "ID": "cyan",
                    "Time": "green",
                    "Commands": None,
                    "Message": "dim",
                    "Next Run": None,
                    "Today": None,
                },
            )
            for task_id in sorted(tasks):
                task = tasks[task_id]
                commands = "\n".join(
                    f"{i}. {escape(_truncate(command))}"
                    for i, command in enumerate(task.commands, 1)
                )
                table.add_row(
                    str(task.id),
                    task.formatted_time,
                    commands or "[dim]none[/dim]",
                    escape(task.message) if task.message else "",
                    format_simple_countdown(seconds_until(now, task.time)),
                    "[green]done[/green]" if task_id in ran_today else "pending",
                )

            console.print(table)
            dim(f"Total: {len(tasks)} task(s)")

        run_with_runtime(config, action)

    @tasks_app.command("add")
    def tasks_add(
        task_id: TaskIdArg,
        time: Annotated[str, typer.Argument(help="Time of day (HH:MM)")],
        commands: Annotated[list[str], typer.Argument(help="Commands to run")],
        message: Annotated[
            str | None,
            typer.Option("--message", "-m", help="Display message"),
        ] = None,
        config: ConfigOption = None,
    ) -> None:
        """Add a new task."""
        _check_time(time)

        async def action(runtime: Runtime) -> None:
            if runtime.registry.get_task(task_id) is not None:
                error(f"Task {task_id} already exists")
                raise typer.Exit(1)
            if not runtime.registry.add_task(task_id, time, commands, message):
                error(f"Failed to add task {task_id}")
                raise typer.Exit(1)
            success(f"Added task {task_id} at {time}")

        run_with_runtime(config, action)

    @tasks_app.command("time")
    def tasks_time(
        task_id: TaskIdArg,
        time: Annotated[str, typer.Argument(help="New time of day (HH:MM)")],
        config: ConfigOption = None,
    ) -> None:
        """Change when a task runs."""
        _check_time(time)

        async def action(runtime: Runtime) -> None:
            _require_task(runtime, task_id)
            if not runtime.registry.update_task_time(task_id, time):
                _write_failed(task_id)
            success(f"Updated task {task_id} time to {time}")

        run_with_runtime(config, action)

    @tasks_app.command("add-command")
    def tasks_add_command(
        task_id: TaskIdArg,
        command: Annotated[str, typer.Argument(help="Command to append")],
        config: ConfigOption = None,
    ) -> None:
        """Append a command to a task."""
        if not command.strip():
            error("Command cannot be empty")
            raise typer.Exit(1)

        async def action(runtime: Runtime) -> None:
            _require_task(runtime, task_id)
            if not runtime.registry.add_command_to_task(task_id, command):
                _write_failed(task_id)
            success(f"Added command to task {task_id}: {command.strip()}")

        run_with_runtime(config, action)

    @tasks_app.command("remove-command")
    def tasks_remove_command(
        task_id: TaskIdArg,
        index: Annotated[int, typer.Argument(help="Command number, as shown by list")],
        config: ConfigOption = None,
    ) -> None:
        """Remove a command from a task by its number."""

        async def action(runtime: Runtime) -> None:
            _require_task(runtime, task_id)
            task = runtime.registry.get_task(task_id)
            if task is None or index < 1 or index > len(task.commands):
                error(f"Invalid command index: {index}")
                raise typer.Exit(1)
            if not runtime.registry.remove_command_from_task(task_id, index):
                _write_failed(task_id)
            success(f"Removed command {index} from task {task_id}")

        run_with_runtime(config, action)

    @tasks_app.command("message")
    def tasks_message(
        task_id: TaskIdArg,
        text: Annotated[
            str | None,
            typer.Argument(help="Display message (omit to clear)"),
        ] = None,
        config: ConfigOption = None,
    ) -> None:
        """Set or clear a task's display message."""

        async def action(runtime: Runtime) -> None:
            _require_task(runtime, task_id)
            if not runtime.registry.update_task_message(task_id, text):
                _write_failed(task_id)
            if text and text.strip():
                success(f"Updated task {task_id} message")
            else:
                success(f"Cleared task {task_id} message")

        run_with_runtime(config, action)

    @tasks_app.command("test")
    def tasks_test(
        task_id: TaskIdArg,
        config: ConfigOption = None,
    ) -> None:
        """Run a task's commands now without recording it as run today."""

        async def action(runtime: Runtime) -> None:
            _require_task(runtime, task_id)
            console.print(f"Testing task {task_id}...")
            if not await runtime.registry.execute_task_for_testing(task_id):
                error(f"Task {task_id} test failed")
                raise typer.Exit(1)
            success(f"Task {task_id} test completed")

        run_with_runtime(config, action)

    @tasks_app.command("remove")
    def tasks_remove(
        task_id: TaskIdArg,
        force: Annotated[
            bool,
            typer.Option("--force", "-f", help="Remove without confirmation"),
        ] = False,
        config: ConfigOption = None,
    ) -> None:
        """Remove a task and its execution history."""

        async def action(runtime: Runtime) -> None:
            _require_task(runtime, task_id)
            if not confirm_or_cancel(f"Remove task {task_id}?", force):
                return
            if not await runtime.registry.remove_task(task_id):
                _write_failed(task_id)
            success(f"Removed task {task_id}")

        run_with_runtime(config, action)
