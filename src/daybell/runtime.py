"""Runtime wiring shared by `daybell serve` and the management commands."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from daybell.clock import ClockSource, create_clock
from daybell.config import DaybellConfig, TaskConfigStore
from daybell.dispatch import CommandDispatcher, CommandHost, ShellCommandHost
from daybell.ledger import ExecutionLedger
from daybell.scheduling import TaskScheduler
from daybell.tasks import PlaceholderResolver, TaskRegistry

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Runtime:
    """Composed scheduler components for one config file."""

    config: DaybellConfig
    config_path: Path
    store: TaskConfigStore
    ledger: ExecutionLedger
    clock: ClockSource
    dispatcher: CommandDispatcher
    registry: TaskRegistry
    scheduler: TaskScheduler

    @property
    def resolver(self) -> PlaceholderResolver:
        return PlaceholderResolver(self.registry, self.clock)


async def bootstrap_runtime(
    *,
    config: DaybellConfig,
    config_path: Path,
    host: CommandHost | None = None,
) -> Runtime:
    """Open the ledger, load tasks and build an unstarted scheduler.

    Raises:
        LedgerUnavailableError: If the ledger store cannot be opened.
    """
    ledger = ExecutionLedger(config.ledger.database_path)
    await ledger.open()

    clock = create_clock(config.clock.source_file, config.clock.query)
    if host is None:
        host = ShellCommandHost(timeout=config.shell.timeout or None)
    dispatcher = CommandDispatcher(host)

    store = TaskConfigStore(config_path)
    registry = TaskRegistry(
        store,
        dispatcher,
        ledger,
        command_delay=config.scheduler.command_delay,
    )
    registry.load_tasks()

    scheduler = TaskScheduler(
        registry,
        ledger,
        clock,
        poll_interval=config.scheduler.poll_interval,
    )

    return Runtime(
        config=config,
        config_path=config_path,
        store=store,
        ledger=ledger,
        clock=clock,
        dispatcher=dispatcher,
        registry=registry,
        scheduler=scheduler,
    )


async def shutdown_runtime(runtime: Runtime) -> None:
    """Stop polling, flush pending ledger writes and close the ledger."""
    for resource, method in [
        (runtime.scheduler, "stop"),
        (runtime.registry, "drain"),
        (runtime.ledger, "close"),
    ]:
        try:
            await getattr(resource, method)()
        except Exception as e:
            logger.warning(f"Error during {method}: {e}")
