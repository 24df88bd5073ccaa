"""CLI command modules."""

from daybell.cli.commands import (
    config,
    init,
    ledger,
    placeholder,
    serve,
    service,
    tasks,
)

__all__ = [
    "config",
    "init",
    "ledger",
    "placeholder",
    "serve",
    "service",
    "tasks",
]
