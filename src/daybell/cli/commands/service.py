"""Commands that talk to a running scheduler through its PID file."""

import signal
import time

import typer

from daybell.cli.console import console, dim, error, success, warning


def _format_uptime(seconds: float) -> str:
    minutes, secs = divmod(int(seconds), 60)
    hours, minutes = divmod(minutes, 60)
    days, hours = divmod(hours, 24)
    if days:
        return f"{days}d {hours}h"
    if hours:
        return f"{hours}h {minutes}m"
    if minutes:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


def register(app: typer.Typer) -> None:
    """Register the reload and status commands."""

    @app.command()
    def reload() -> None:
        """Ask the running scheduler to reload tasks from its config file."""
        from daybell.config.paths import get_pid_path
        from daybell.service.pid import PidFile, signal_process

        process = PidFile(get_pid_path()).read()
        if process is None or not process.alive:
            error("Scheduler is not running")
            raise typer.Exit(1)

        if not signal_process(process.pid, signal.SIGHUP):
            error(f"Could not signal scheduler (pid {process.pid})")
            raise typer.Exit(1)
        success("Tasks reloaded successfully!")

    @app.command()
    def status() -> None:
        """Show whether the scheduler is running."""
        from daybell.config.paths import get_pid_path
        from daybell.service.pid import PidFile

        pid_path = get_pid_path()
        process = PidFile(pid_path).read()
        if process is None:
            warning("Scheduler is not running")
            dim(f"No PID file at {pid_path}")
            return

        if not process.alive:
            warning(f"Scheduler is not running (stale PID file for {process.pid})")
            return

        started = time.strftime("%Y-%m-%d %H:%M:%S", time.localtime(process.started_at))
        success(f"Scheduler is running (pid {process.pid})")
        console.print(f"Started: {started} ({_format_uptime(process.uptime)} ago)")
