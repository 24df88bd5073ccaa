"""Server command for running the scheduler."""

import asyncio
import logging
from pathlib import Path
from typing import Annotated

import typer

logger = logging.getLogger(__name__)


def register(app: typer.Typer) -> None:
    """Register the serve command."""

    @app.command()
    def serve(
        config: Annotated[
            Path | None,
            typer.Option(
                "--config",
                "-c",
                help="Path to configuration file",
            ),
        ] = None,
    ) -> None:
        """Run the scheduler until interrupted.

        Send SIGHUP (or run 'daybell reload') to re-read tasks from the
        config file without restarting.
        """
        from daybell.cli.runtime import load_config_or_exit

        daybell_config, config_path = load_config_or_exit(config)
        try:
            asyncio.run(_run_server(daybell_config, config_path))
        except KeyboardInterrupt:
            # Use print here since logging may not be configured yet
            print("\nScheduler stopped")


async def _run_server(daybell_config, config_path: Path) -> None:
    """Run the scheduler asynchronously."""
    import signal as signal_module

    from daybell.cli.console import error
    from daybell.config.paths import get_pid_path
    from daybell.ledger import LedgerUnavailableError
    from daybell.logging import configure_logging
    from daybell.runtime import bootstrap_runtime, shutdown_runtime
    from daybell.service.pid import PidFile

    # Rich for colorful server output, plus JSONL file logs
    configure_logging(
        level="DEBUG" if daybell_config.debug else None,
        use_rich=True,
        log_to_file=True,
    )

    pid_file = PidFile(get_pid_path())
    pid_file.write()

    try:
        logger.info(f"Loading configuration from {config_path}")
        try:
            runtime = await bootstrap_runtime(
                config=daybell_config, config_path=config_path
            )
        except LedgerUnavailableError as e:
            error(str(e))
            raise typer.Exit(1) from None

        shutdown_event = asyncio.Event()
        loop = asyncio.get_running_loop()

        def handle_stop() -> None:
            shutdown_event.set()

        def handle_reload() -> None:
            count = runtime.registry.reload_tasks()
            logger.info("tasks_reloaded", extra={"tasks.count": count})

        for sig in (signal_module.SIGTERM, signal_module.SIGINT):
            loop.add_signal_handler(sig, handle_stop)
        loop.add_signal_handler(signal_module.SIGHUP, handle_reload)

        try:
            await runtime.scheduler.start()
            logger.info(
                f"Scheduler running with {len(runtime.registry.get_all_tasks())} tasks"
            )
            await shutdown_event.wait()
        finally:
            for sig in (
                signal_module.SIGTERM,
                signal_module.SIGINT,
                signal_module.SIGHUP,
            ):
                loop.remove_signal_handler(sig)
            logger.info("Shutting down")
            await shutdown_runtime(runtime)
    finally:
        pid_file.remove()
