"""Runtime helpers for CLI commands that operate on the task registry."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import TypeVar

import typer

from daybell.cli.console import console, error
from daybell.config import ConfigError, DaybellConfig, load_config, resolve_config_path
from daybell.ledger import LedgerUnavailableError
from daybell.runtime import Runtime, bootstrap_runtime, shutdown_runtime

T = TypeVar("T")


def load_config_or_exit(path: Path | None) -> tuple[DaybellConfig, Path]:
    """Resolve and load the config file, exiting with code 1 on failure."""
    try:
        config_path = resolve_config_path(path)
        return load_config(config_path), config_path
    except FileNotFoundError as e:
        error(str(e))
        console.print("Run 'daybell init' to create one")
        raise typer.Exit(1) from None
    except ConfigError as e:
        error(str(e))
        raise typer.Exit(1) from None


def run_with_runtime(
    config_path: Path | None,
    action: Callable[[Runtime], Awaitable[T]],
) -> T:
    """Bootstrap a runtime, run action against it, then shut it down."""
    from daybell.logging import configure_logging

    config, resolved = load_config_or_exit(config_path)
    # Management commands stay quiet unless asked
    configure_logging(
        level="DEBUG" if config.debug else None,
        default_level="WARNING",
    )

    async def _run() -> T:
        runtime = await bootstrap_runtime(config=config, config_path=resolved)
        try:
            return await action(runtime)
        finally:
            await shutdown_runtime(runtime)

    try:
        return asyncio.run(_run())
    except LedgerUnavailableError as e:
        error(str(e))
        raise typer.Exit(1) from None
